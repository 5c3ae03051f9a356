"""
SQLite adapters for the persistence ports.

All repositories share one schema and may point at the same database file.
"""

from .sqlite_author_repository import SqliteAuthorRepository
from .sqlite_book_catalog_repository import SqliteBookCatalogRepository
from .sqlite_borrower_repository import SqliteBorrowerRepository
from .sqlite_classification_repository import SqliteGenreRepository, SqliteTagRepository
from .sqlite_collection_repository import SqliteCollectionRepository
from .sqlite_loan_repository import SqliteLoanRepository

__all__ = [
    "SqliteAuthorRepository",
    "SqliteBookCatalogRepository",
    "SqliteBorrowerRepository",
    "SqliteCollectionRepository",
    "SqliteGenreRepository",
    "SqliteLoanRepository",
    "SqliteTagRepository",
]
