"""
Translation of domain errors into HTTP errors.
"""

from fastapi import HTTPException, status

from athenaeum.domain.errors import (
    ConflictError,
    ExternalCatalogError,
    NotFoundError,
    PolicyError,
    StateError,
    ValidationError,
)

_STATUS_BY_ERROR = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StateError, status.HTTP_409_CONFLICT),
    (PolicyError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ExternalCatalogError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def to_http_exception(error: Exception) -> HTTPException:
    """
    Map a domain error to an HTTPException carrying its message.

    Errors without a mapping are re-raised unchanged.
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    raise error
