"""
Domain layer: entities, value objects, errors and port protocols.

It has no dependencies on external frameworks, databases, or HTTP clients.
"""

from .entities import Author, Book, Borrower, Collection, Genre, Loan, Renewal, Tag
from .errors import (
    ConflictError,
    ExternalCatalogError,
    LibraryError,
    NotFoundError,
    PolicyError,
    StateError,
    ValidationError,
)
from .value_objects import (
    AppSettings,
    BookAvailability,
    BorrowerSummary,
    ExternalAuthorRecord,
    ExternalBookRecord,
)

__all__ = [
    # Entities
    "Author",
    "Book",
    "Borrower",
    "Collection",
    "Genre",
    "Loan",
    "Renewal",
    "Tag",
    # Value Objects
    "AppSettings",
    "BookAvailability",
    "BorrowerSummary",
    "ExternalAuthorRecord",
    "ExternalBookRecord",
    # Errors
    "LibraryError",
    "ValidationError",
    "ConflictError",
    "PolicyError",
    "StateError",
    "NotFoundError",
    "ExternalCatalogError",
]
