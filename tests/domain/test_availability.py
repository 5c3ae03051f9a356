"""
Tests for compute_availability.
"""

from datetime import date

import pytest

from athenaeum.domain.entities import Book, Loan
from athenaeum.domain.errors import ValidationError
from athenaeum.domain.services import compute_availability
from athenaeum.domain.utils.uuid7 import uuid7


def _loan_for(book_id, returned: bool = False) -> Loan:
    loan = Loan.create_new(
        book_id=book_id,
        borrower_id=uuid7(),
        checkout_date=date(2024, 1, 1),
        due_date=date(2024, 1, 15),
    )
    if returned:
        loan.mark_returned(date(2024, 1, 10))
    return loan


@pytest.fixture
def dune():
    return Book.create_new(title="Dune")


class TestComputeAvailability:

    def test_no_loans_means_all_copies_available(self, dune):
        availability = compute_availability(dune, 3, [])

        assert availability.book_id == dune.id
        assert availability.book_exists
        assert availability.on_loan == 0
        assert availability.available == 3
        assert availability.is_available

    def test_outstanding_loan_reduces_available(self, dune):
        availability = compute_availability(dune, 1, [_loan_for(dune.id)])

        assert availability.on_loan == 1
        assert availability.available == 0
        assert not availability.is_available

    def test_returned_loans_do_not_count(self, dune):
        loans = [_loan_for(dune.id, returned=True), _loan_for(dune.id, returned=True)]

        availability = compute_availability(dune, 1, loans)

        assert availability.on_loan == 0
        assert availability.available == 1

    def test_loans_for_other_books_are_ignored(self, dune):
        availability = compute_availability(dune, 2, [_loan_for(uuid7())])

        assert availability.on_loan == 0
        assert availability.available == 2

    def test_available_is_floored_at_zero(self, dune):
        """More outstanding loans than copies owned never yields a negative count."""
        availability = compute_availability(dune, 0, [_loan_for(dune.id)])

        assert availability.on_loan == 1
        assert availability.available == 0

    def test_uncatalogued_book_with_copies_exists(self):
        book_id = uuid7()

        availability = compute_availability(None, 2, [], book_id=book_id)

        assert availability.book_id == book_id
        assert availability.book_exists

    def test_uncatalogued_book_without_copies_does_not_exist(self):
        availability = compute_availability(None, 0, [], book_id=uuid7())

        assert not availability.book_exists
        assert availability.available == 0

    def test_negative_total_copies_is_rejected(self, dune):
        with pytest.raises(ValidationError) as exc_info:
            compute_availability(dune, -1, [])

        assert exc_info.value.field == "total_copies"

    def test_book_or_id_is_required(self):
        with pytest.raises(ValidationError):
            compute_availability(None, 1, [])

    def test_repeated_calls_give_the_same_snapshot(self, dune):
        loans = [_loan_for(dune.id)]

        assert compute_availability(dune, 2, loans) == compute_availability(dune, 2, loans)
