"""
Field validation functions.

Each check returns a ValidationError describing the problem, or None when the
value is acceptable. Checks never raise; callers decide what to do with the
result. Entities call `raise_first` from their constructors so an invalid
record is never observable.
"""

import re
from typing import Iterable, List, Optional

from .errors import ValidationError
from .utils.isbn import ISBN10_LENGTH, ISBN13_LENGTH, clean_isbn, is_valid_isbn_format

NAME_MAX_LENGTH = 200
TITLE_MAX_LENGTH = 500
COLLECTION_NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 200
LABEL_NAME_MAX_LENGTH = 50
PUBLISHER_MAX_LENGTH = 200
EMAIL_MAX_LENGTH = 200
PHONE_MAX_LENGTH = 50
CATALOG_KEY_MAX_LENGTH = 100

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_PATTERN = re.compile(r"^\+?[0-9 ()./-]+$")


def check_required(field: str, value: Optional[str], max_length: Optional[int] = None) -> Optional[ValidationError]:
    """A required text field must be non-blank and within its length limit."""
    if value is None or not value.strip():
        return ValidationError(f"{field} is required", field=field)
    return check_max_length(field, value, max_length)


def check_max_length(field: str, value: Optional[str], max_length: Optional[int]) -> Optional[ValidationError]:
    if value is None or max_length is None:
        return None
    if len(value) > max_length:
        return ValidationError(
            f"{field} must be at most {max_length} characters, got {len(value)}",
            field=field,
        )
    return None


def check_email(field: str, value: Optional[str]) -> Optional[ValidationError]:
    if value is None:
        return None
    error = check_max_length(field, value, EMAIL_MAX_LENGTH)
    if error is not None:
        return error
    if not _EMAIL_PATTERN.match(value):
        return ValidationError(f"{field} is not a valid email address: '{value}'", field=field)
    return None


def check_phone(field: str, value: Optional[str]) -> Optional[ValidationError]:
    if value is None:
        return None
    error = check_max_length(field, value, PHONE_MAX_LENGTH)
    if error is not None:
        return error
    if not _PHONE_PATTERN.match(value) or sum(ch.isdigit() for ch in value) < 3:
        return ValidationError(f"{field} is not a valid phone number: '{value}'", field=field)
    return None


def check_isbn(field: str, value: Optional[str], expected_length: int) -> Optional[ValidationError]:
    """Check that an ISBN has the expected length and shape (checksum not verified)."""
    if value is None:
        return None
    cleaned = clean_isbn(value)
    if len(cleaned) != expected_length or not is_valid_isbn_format(cleaned):
        kind = "ISBN-10" if expected_length == ISBN10_LENGTH else "ISBN-13"
        return ValidationError(f"{field} is not a valid {kind}: '{value}'", field=field)
    return None


def check_isbn10(field: str, value: Optional[str]) -> Optional[ValidationError]:
    return check_isbn(field, value, ISBN10_LENGTH)


def check_isbn13(field: str, value: Optional[str]) -> Optional[ValidationError]:
    return check_isbn(field, value, ISBN13_LENGTH)


def check_catalog_key(field: str, value: Optional[str]) -> Optional[ValidationError]:
    """An optional catalog key may be absent but never blank."""
    if value is None:
        return None
    if not value.strip():
        return ValidationError(f"{field} cannot be blank", field=field)
    return check_max_length(field, value, CATALOG_KEY_MAX_LENGTH)


def check_non_negative(field: str, value: int) -> Optional[ValidationError]:
    if value < 0:
        return ValidationError(f"{field} cannot be negative, got {value}", field=field)
    return None


def collect_errors(checks: Iterable[Optional[ValidationError]]) -> List[ValidationError]:
    """Keep only the failed checks, in order."""
    return [error for error in checks if error is not None]


def raise_first(checks: Iterable[Optional[ValidationError]]) -> None:
    """Raise the first failed check, if any."""
    errors = collect_errors(checks)
    if errors:
        raise errors[0]
