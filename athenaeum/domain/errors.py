"""
Error kinds raised by the domain layer.

Every error is reported synchronously to the caller. Nothing in the domain
retries; the API layer maps each kind to an HTTP status and a user-facing
message.
"""

from typing import Optional


class LibraryError(Exception):
    """Base class for all domain errors."""


class ValidationError(LibraryError, ValueError):
    """A required field is missing or a value breaks a field constraint."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field
        """Name of the offending field, when the error concerns a single field"""


class ConflictError(LibraryError):
    """The operation collides with existing state (outstanding loan, duplicate key)."""


class PolicyError(LibraryError):
    """The lending policy forbids the operation (renewal limit, closed loan, inactive borrower)."""


class StateError(LibraryError):
    """Invalid state transition, e.g. a double return or a return before checkout."""


class NotFoundError(LibraryError, LookupError):
    """A referenced record does not exist."""


class ExternalCatalogError(RuntimeError):
    """The external bibliographic catalog could not be queried."""
