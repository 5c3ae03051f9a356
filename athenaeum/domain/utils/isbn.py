"""
ISBN helpers: normalisation, format and checksum validation, and
conversion between ISBN-10 and ISBN-13.
"""

from typing import Optional, Tuple

ISBN10_LENGTH = 10
ISBN13_LENGTH = 13


def clean_isbn(isbn: Optional[str]) -> str:
    """Strip dashes and spaces and upper-case the check character."""
    if not isbn or not isbn.strip():
        return ""
    return isbn.replace("-", "").replace(" ", "").upper().strip()


def is_valid_isbn_format(isbn: Optional[str]) -> bool:
    """
    Check that a string has the shape of an ISBN.

    ISBN-13 is 13 digits. ISBN-10 is 9 digits followed by a digit or 'X'.
    Checksums are not verified here.
    """
    cleaned = clean_isbn(isbn)

    if len(cleaned) == ISBN13_LENGTH:
        return cleaned.isdigit()

    if len(cleaned) == ISBN10_LENGTH:
        return cleaned[:9].isdigit() and (cleaned[9].isdigit() or cleaned[9] == "X")

    return False


def validate_isbn10(isbn: str) -> bool:
    """Verify the ISBN-10 checksum (weighted sum mod 11, 'X' counts as 10)."""
    cleaned = clean_isbn(isbn)
    if len(cleaned) != ISBN10_LENGTH or not is_valid_isbn_format(cleaned):
        return False

    total = sum(int(ch) * (10 - i) for i, ch in enumerate(cleaned[:9]))
    check = 10 if cleaned[9] == "X" else int(cleaned[9])
    return (total + check) % 11 == 0


def validate_isbn13(isbn: str) -> bool:
    """Verify the ISBN-13 checksum (alternating 1/3 weights mod 10)."""
    cleaned = clean_isbn(isbn)
    if len(cleaned) != ISBN13_LENGTH or not cleaned.isdigit():
        return False

    return int(cleaned[12]) == _isbn13_check_digit(cleaned[:12])


def is_valid_isbn(isbn: Optional[str], validate_checksum: bool = False) -> bool:
    """Validate the format and, optionally, the checksum of an ISBN."""
    if not is_valid_isbn_format(isbn):
        return False

    if not validate_checksum:
        return True

    cleaned = clean_isbn(isbn)
    if len(cleaned) == ISBN10_LENGTH:
        return validate_isbn10(cleaned)
    return validate_isbn13(cleaned)


def isbn10_to_isbn13(isbn10: str) -> Optional[str]:
    """Convert an ISBN-10 to its 978-prefixed ISBN-13, or None if malformed."""
    cleaned = clean_isbn(isbn10)
    if len(cleaned) != ISBN10_LENGTH or not cleaned[:9].isdigit():
        return None

    base = "978" + cleaned[:9]
    return base + str(_isbn13_check_digit(base))


def isbn13_to_isbn10(isbn13: str) -> Optional[str]:
    """Convert a 978-prefixed ISBN-13 to ISBN-10. Other prefixes have no ISBN-10."""
    cleaned = clean_isbn(isbn13)
    if len(cleaned) != ISBN13_LENGTH or not cleaned.isdigit():
        return None
    if not cleaned.startswith("978"):
        return None

    base = cleaned[3:12]
    total = sum(int(ch) * (10 - i) for i, ch in enumerate(base))
    check = (11 - (total % 11)) % 11
    return base + ("X" if check == 10 else str(check))


def both_isbn_formats(isbn: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Return (isbn10, isbn13) for any ISBN, converting where possible."""
    cleaned = clean_isbn(isbn)
    if not cleaned:
        return None, None

    if len(cleaned) == ISBN10_LENGTH:
        return cleaned, isbn10_to_isbn13(cleaned)
    if len(cleaned) == ISBN13_LENGTH:
        return isbn13_to_isbn10(cleaned), cleaned

    return cleaned, None


def format_isbn(isbn: str) -> str:
    """Hyphenate an ISBN for display using a fixed group layout."""
    cleaned = clean_isbn(isbn)

    if len(cleaned) == ISBN10_LENGTH:
        return f"{cleaned[0]}-{cleaned[1:4]}-{cleaned[4:9]}-{cleaned[9]}"
    if len(cleaned) == ISBN13_LENGTH:
        return f"{cleaned[:3]}-{cleaned[3]}-{cleaned[4:7]}-{cleaned[7:12]}-{cleaned[12]}"

    return isbn


def _isbn13_check_digit(first_twelve: str) -> int:
    total = sum(int(ch) * (1 if i % 2 == 0 else 3) for i, ch in enumerate(first_twelve))
    return (10 - (total % 10)) % 10
