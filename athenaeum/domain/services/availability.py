"""
Availability calculation.

A pure function of (book, copies owned, loans): it reads nothing else, has no
side effects, and can be called as often as needed. The result is a snapshot
of the loans it was given.
"""

from typing import Iterable, Optional
from uuid import UUID

from ..entities import Book, Loan
from ..errors import ValidationError
from ..validation import check_non_negative, raise_first
from ..value_objects import BookAvailability


def compute_availability(
    book: Optional[Book],
    total_copies: int,
    loans: Iterable[Loan],
    *,
    book_id: Optional[UUID] = None,
) -> BookAvailability:
    """
    Derive a book's availability from the loan ledger.

    Args:
        book: The catalogue record, or None if the book is not catalogued
        total_copies: Copies owned, supplied by the inventory layer
        loans: Loans to consider; loans for other books are ignored
        book_id: Identifier to use when book is None

    Returns:
        BookAvailability with on_loan = outstanding loans for the book and
        available = total_copies - on_loan, floored at 0

    Raises:
        ValidationError: If total_copies is negative or no book id is known
    """
    raise_first([check_non_negative("total_copies", total_copies)])

    target_id = book.id if book is not None else book_id
    if target_id is None:
        raise ValidationError("Either book or book_id must be given", field="book_id")

    on_loan = sum(
        1 for loan in loans
        if loan.book_id == target_id and loan.is_outstanding
    )

    return BookAvailability(
        book_id=target_id,
        book_exists=total_copies > 0 or book is not None,
        total_copies=total_copies,
        on_loan=on_loan,
        available=max(total_copies - on_loan, 0),
    )
