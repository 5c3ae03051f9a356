"""
FastAPI dependencies for dependency injection.

Provides singleton instances of repositories and services for use with
FastAPI's Depends() system. Configuration comes from the environment:

- DB_PATH: SQLite database file (default data/athenaeum.db)
- OPEN_LIBRARY_BASE_URL: override for the Open Library API root
- ATHENAEUM_*: AppSettings overrides, see AppSettings.from_env
"""

import logging
import os
from pathlib import Path
from typing import Optional

from athenaeum.domain.ports import (
    AuthorRepository,
    BookCatalogRepository,
    BorrowerRepository,
    CollectionRepository,
    ExternalCatalogProvider,
    GenreRepository,
    LoanRepository,
    TagRepository,
)
from athenaeum.domain.services import (
    BorrowerRegistry,
    CatalogService,
    ClassificationService,
    LibraryTransferService,
    LoanLedger,
    SettingsStore,
)
from athenaeum.domain.value_objects import AppSettings
from athenaeum.infrastructure.db import (
    SqliteAuthorRepository,
    SqliteBookCatalogRepository,
    SqliteBorrowerRepository,
    SqliteCollectionRepository,
    SqliteGenreRepository,
    SqliteLoanRepository,
    SqliteTagRepository,
)
from athenaeum.infrastructure.external import OpenLibraryClient

logger = logging.getLogger(__name__)

# Module-level singletons (initialized lazily)
_settings_store: Optional[SettingsStore] = None
_book_repository: Optional[BookCatalogRepository] = None
_author_repository: Optional[AuthorRepository] = None
_collection_repository: Optional[CollectionRepository] = None
_borrower_repository: Optional[BorrowerRepository] = None
_loan_repository: Optional[LoanRepository] = None
_genre_repository: Optional[GenreRepository] = None
_tag_repository: Optional[TagRepository] = None
_external_catalog: Optional[ExternalCatalogProvider] = None
_loan_ledger: Optional[LoanLedger] = None
_catalog_service: Optional[CatalogService] = None
_borrower_registry: Optional[BorrowerRegistry] = None
_classification_service: Optional[ClassificationService] = None
_library_transfer_service: Optional[LibraryTransferService] = None


def get_db_path() -> Path:
    return Path(os.getenv("DB_PATH", "data/athenaeum.db"))


def get_settings_store() -> SettingsStore:
    """Provide the process-wide settings store, loaded from the environment once."""
    global _settings_store
    if _settings_store is None:
        settings = AppSettings.from_env(os.environ)
        logger.info("Loaded settings: %s", settings.as_dict())
        _settings_store = SettingsStore(settings)
    return _settings_store


def get_book_repository() -> BookCatalogRepository:
    global _book_repository
    if _book_repository is None:
        _book_repository = SqliteBookCatalogRepository(get_db_path())
    return _book_repository


def get_author_repository() -> AuthorRepository:
    global _author_repository
    if _author_repository is None:
        _author_repository = SqliteAuthorRepository(get_db_path())
    return _author_repository


def get_collection_repository() -> CollectionRepository:
    global _collection_repository
    if _collection_repository is None:
        _collection_repository = SqliteCollectionRepository(get_db_path())
    return _collection_repository


def get_borrower_repository() -> BorrowerRepository:
    global _borrower_repository
    if _borrower_repository is None:
        _borrower_repository = SqliteBorrowerRepository(get_db_path())
    return _borrower_repository


def get_loan_repository() -> LoanRepository:
    global _loan_repository
    if _loan_repository is None:
        _loan_repository = SqliteLoanRepository(get_db_path())
    return _loan_repository


def get_genre_repository() -> GenreRepository:
    global _genre_repository
    if _genre_repository is None:
        _genre_repository = SqliteGenreRepository(get_db_path())
    return _genre_repository


def get_tag_repository() -> TagRepository:
    global _tag_repository
    if _tag_repository is None:
        _tag_repository = SqliteTagRepository(get_db_path())
    return _tag_repository


def get_external_catalog() -> ExternalCatalogProvider:
    """Open Library client that reads the API timeout from the settings store on every request."""
    global _external_catalog
    if _external_catalog is None:
        _external_catalog = OpenLibraryClient(
            base_url=os.getenv("OPEN_LIBRARY_BASE_URL"),
            timeout_seconds=lambda: get_settings_store().get().api_timeout_seconds,
        )
    return _external_catalog


def get_loan_ledger() -> LoanLedger:
    global _loan_ledger
    if _loan_ledger is None:
        _loan_ledger = LoanLedger(get_loan_repository())
    return _loan_ledger


def get_catalog_service() -> CatalogService:
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService(
            books=get_book_repository(),
            authors=get_author_repository(),
            collections=get_collection_repository(),
            loans=get_loan_repository(),
            external_catalog=get_external_catalog(),
        )
    return _catalog_service


def get_borrower_registry() -> BorrowerRegistry:
    global _borrower_registry
    if _borrower_registry is None:
        _borrower_registry = BorrowerRegistry(get_borrower_repository(), get_loan_ledger())
    return _borrower_registry


def get_classification_service() -> ClassificationService:
    global _classification_service
    if _classification_service is None:
        _classification_service = ClassificationService(
            books=get_book_repository(),
            genres=get_genre_repository(),
            tags=get_tag_repository(),
        )
    return _classification_service


def get_library_transfer_service() -> LibraryTransferService:
    global _library_transfer_service
    if _library_transfer_service is None:
        _library_transfer_service = LibraryTransferService(
            books=get_book_repository(),
            authors=get_author_repository(),
            genres=get_genre_repository(),
            tags=get_tag_repository(),
            collections=get_collection_repository(),
            borrowers=get_borrower_repository(),
            loans=get_loan_repository(),
        )
    return _library_transfer_service


def reset_dependencies() -> None:
    """
    Reset all singletons. Useful for testing.

    Lets tests point DB_PATH at a temporary file and start from a clean state.
    """
    global _settings_store, _book_repository, _author_repository
    global _collection_repository, _borrower_repository, _loan_repository
    global _genre_repository, _tag_repository, _external_catalog, _loan_ledger
    global _catalog_service, _borrower_registry, _classification_service
    global _library_transfer_service

    _settings_store = None
    _book_repository = None
    _author_repository = None
    _collection_repository = None
    _borrower_repository = None
    _loan_repository = None
    _genre_repository = None
    _tag_repository = None
    _external_catalog = None
    _loan_ledger = None
    _catalog_service = None
    _borrower_registry = None
    _classification_service = None
    _library_transfer_service = None
