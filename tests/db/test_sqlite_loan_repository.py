"""
Tests for SqliteLoanRepository.

Covers the atomic checkout (at most one outstanding loan per book, also
across connections), the renewal log, returns, and the listing orders.

Test Pattern: AAA (Arrange-Act-Assert)
"""
import threading
from datetime import date

import pytest

from athenaeum.domain.entities import Book, Borrower, Loan, Renewal
from athenaeum.domain.errors import ConflictError, NotFoundError, PolicyError, StateError
from athenaeum.domain.utils.uuid7 import uuid7
from athenaeum.infrastructure.db import (
    SqliteBookCatalogRepository,
    SqliteBorrowerRepository,
    SqliteLoanRepository,
)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test_loans.db"


@pytest.fixture
def repo(db_path):
    return SqliteLoanRepository(db_path)


@pytest.fixture
def books(db_path):
    books = [Book.create_new(title=title) for title in ["Dune", "Emma", "Ulysses"]]
    repo = SqliteBookCatalogRepository(db_path)
    for book in books:
        repo.save(book)
    return books


@pytest.fixture
def borrowers(db_path):
    people = [Borrower.create_new(name=name) for name in ["Alice", "Bob"]]
    repo = SqliteBorrowerRepository(db_path)
    for person in people:
        repo.save(person)
    return people


def _loan(book, borrower, checkout=date(2024, 1, 1), due=date(2024, 1, 15)) -> Loan:
    return Loan.create_new(book.id, borrower.id, checkout, due)


# ============================================================================
# CHECKOUT
# ============================================================================

class TestAddOutstanding:

    def test_loan_round_trips(self, repo, books, borrowers):
        # Arrange
        loan = Loan.create_new(books[0].id, borrowers[0].id, date(2024, 1, 1), date(2024, 1, 15), notes="gift")

        # Act
        repo.add_outstanding(loan)
        stored = repo.get_by_id(loan.id)

        # Assert
        assert stored == loan
        assert stored.book_id == books[0].id
        assert stored.borrower_id == borrowers[0].id
        assert stored.checkout_date == date(2024, 1, 1)
        assert stored.due_date == date(2024, 1, 15)
        assert stored.return_date is None
        assert stored.notes == "gift"
        assert stored.renewals == ()

    def test_second_outstanding_loan_for_book_conflicts(self, repo, books, borrowers):
        repo.add_outstanding(_loan(books[0], borrowers[0]))

        with pytest.raises(ConflictError):
            repo.add_outstanding(_loan(books[0], borrowers[1]))

        assert len(repo.list_for_book(books[0].id)) == 1

    def test_returned_loan_frees_the_book(self, repo, books, borrowers):
        first = _loan(books[0], borrowers[0])
        repo.add_outstanding(first)
        repo.mark_returned(first.id, date(2024, 1, 10))

        repo.add_outstanding(_loan(books[0], borrowers[1], checkout=date(2024, 1, 11), due=date(2024, 1, 25)))

        assert repo.get_outstanding_for_book(books[0].id).borrower_id == borrowers[1].id

    def test_unknown_book_is_rejected(self, repo, borrowers):
        ghost = Book.create_new(title="Ghost")

        with pytest.raises(ConflictError):
            repo.add_outstanding(_loan(ghost, borrowers[0]))

    def test_concurrent_checkouts_across_connections(self, db_path, books, borrowers):
        """Separate repository instances (separate connections) still yield one loan."""
        # Arrange
        results = []
        barrier = threading.Barrier(6)

        def checkout(i):
            repo = SqliteLoanRepository(db_path)
            barrier.wait()
            try:
                repo.add_outstanding(_loan(books[0], borrowers[i % 2]))
                results.append("ok")
            except ConflictError:
                results.append("conflict")

        # Act
        threads = [threading.Thread(target=checkout, args=(i,)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Assert
        assert results.count("ok") == 1
        assert results.count("conflict") == 5


# ============================================================================
# RENEWALS AND RETURNS
# ============================================================================

class TestRenewalsAndReturns:

    def test_renewals_persist_in_order(self, repo, books, borrowers):
        # Arrange
        loan = _loan(books[0], borrowers[0])
        repo.add_outstanding(loan)
        first = Renewal(uuid7(), loan.id, date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))
        second = Renewal(uuid7(), loan.id, date(2024, 1, 21), date(2024, 1, 22), date(2024, 1, 29), notes="exam week")

        # Act
        repo.add_renewal(first, first.new_due_date, max_renewals=2)
        repo.add_renewal(second, second.new_due_date, max_renewals=2)
        stored = repo.get_by_id(loan.id)

        # Assert
        assert stored.due_date == date(2024, 1, 29)
        assert [r.id for r in stored.renewals] == [first.id, second.id]
        assert stored.renewals[1].notes == "exam week"
        assert stored.original_due_date == date(2024, 1, 15)

    def test_renewing_unknown_loan(self, repo):
        renewal = Renewal(uuid7(), uuid7(), date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))

        with pytest.raises(NotFoundError):
            repo.add_renewal(renewal, renewal.new_due_date, max_renewals=2)

    def test_renewing_returned_loan(self, repo, books, borrowers):
        loan = _loan(books[0], borrowers[0])
        repo.add_outstanding(loan)
        repo.mark_returned(loan.id, date(2024, 1, 10))
        renewal = Renewal(uuid7(), loan.id, date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))

        with pytest.raises(PolicyError):
            repo.add_renewal(renewal, renewal.new_due_date, max_renewals=2)

    def test_renewal_limit_is_checked_against_stored_renewals(self, repo, books, borrowers):
        # Arrange
        loan = _loan(books[0], borrowers[0])
        repo.add_outstanding(loan)
        first = Renewal(uuid7(), loan.id, date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))
        repo.add_renewal(first, first.new_due_date, max_renewals=1)
        second = Renewal(uuid7(), loan.id, date(2024, 1, 21), date(2024, 1, 22), date(2024, 1, 29))

        # Act / Assert
        with pytest.raises(PolicyError, match="Maximum renewals"):
            repo.add_renewal(second, second.new_due_date, max_renewals=1)
        stored = repo.get_by_id(loan.id)
        assert stored.renewal_count == 1
        assert stored.due_date == date(2024, 1, 22)

    def test_renewal_from_stale_due_date_is_rejected(self, repo, books, borrowers):
        # Arrange
        loan = _loan(books[0], borrowers[0])
        repo.add_outstanding(loan)
        first = Renewal(uuid7(), loan.id, date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))
        stale = Renewal(uuid7(), loan.id, date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))
        repo.add_renewal(first, first.new_due_date, max_renewals=2)

        # Act / Assert
        with pytest.raises(StateError):
            repo.add_renewal(stale, stale.new_due_date, max_renewals=2)
        assert [r.id for r in repo.get_by_id(loan.id).renewals] == [first.id]

    def test_concurrent_renewals_across_connections_respect_limit(self, db_path, books, borrowers):
        # Arrange
        loan = _loan(books[0], borrowers[0])
        SqliteLoanRepository(db_path).add_outstanding(loan)
        results = []
        barrier = threading.Barrier(4)

        def renew():
            repo = SqliteLoanRepository(db_path)
            renewal = Renewal(uuid7(), loan.id, date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))
            barrier.wait()
            try:
                repo.add_renewal(renewal, renewal.new_due_date, max_renewals=1)
                results.append("ok")
            except (PolicyError, StateError):
                results.append("refused")

        # Act
        threads = [threading.Thread(target=renew) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Assert
        assert results.count("ok") == 1
        assert SqliteLoanRepository(db_path).get_by_id(loan.id).renewal_count == 1

    def test_mark_returned(self, repo, books, borrowers):
        loan = _loan(books[0], borrowers[0])
        repo.add_outstanding(loan)

        repo.mark_returned(loan.id, date(2024, 1, 10))

        assert repo.get_by_id(loan.id).return_date == date(2024, 1, 10)
        assert repo.get_outstanding_for_book(books[0].id) is None

    def test_double_return(self, repo, books, borrowers):
        loan = _loan(books[0], borrowers[0])
        repo.add_outstanding(loan)
        repo.mark_returned(loan.id, date(2024, 1, 10))

        with pytest.raises(StateError):
            repo.mark_returned(loan.id, date(2024, 1, 11))

    def test_return_unknown_loan(self, repo):
        with pytest.raises(NotFoundError):
            repo.mark_returned(uuid7(), date(2024, 1, 10))


# ============================================================================
# LISTINGS
# ============================================================================

class TestListings:

    def test_list_outstanding_by_due_date(self, repo, books, borrowers):
        # Arrange
        late = _loan(books[0], borrowers[0], due=date(2024, 1, 20))
        early = _loan(books[1], borrowers[0], due=date(2024, 1, 10))
        closed = _loan(books[2], borrowers[1])
        for loan in (late, early, closed):
            repo.add_outstanding(loan)
        repo.mark_returned(closed.id, date(2024, 1, 2))

        # Act
        outstanding = repo.list_outstanding()

        # Assert
        assert [loan.id for loan in outstanding] == [early.id, late.id]

    def test_list_for_borrower_newest_first(self, repo, books, borrowers):
        older = _loan(books[0], borrowers[0], checkout=date(2024, 1, 1))
        newer = _loan(books[1], borrowers[0], checkout=date(2024, 2, 1), due=date(2024, 2, 15))
        repo.add_outstanding(older)
        repo.add_outstanding(newer)

        history = repo.list_for_borrower(borrowers[0].id)

        assert [loan.id for loan in history] == [newer.id, older.id]
        assert repo.list_for_borrower(borrowers[1].id) == []

    def test_list_all_oldest_first_with_renewals(self, repo, books, borrowers):
        # Arrange
        newer = _loan(books[0], borrowers[0], checkout=date(2024, 2, 1), due=date(2024, 2, 15))
        older = _loan(books[1], borrowers[1])
        repo.add_outstanding(newer)
        repo.add_outstanding(older)
        repo.mark_returned(older.id, date(2024, 1, 5))
        renewal = Renewal(uuid7(), newer.id, date(2024, 2, 14), date(2024, 2, 15), date(2024, 2, 22))
        repo.add_renewal(renewal, renewal.new_due_date, max_renewals=2)

        # Act
        loans = repo.list_all()

        # Assert
        assert [loan.id for loan in loans] == [older.id, newer.id]
        assert loans[1].renewals == (renewal,)


# ============================================================================
# RESTORE
# ============================================================================

class TestRestore:

    def test_restores_closed_loan_with_renewals(self, repo, books, borrowers):
        # Arrange
        loan_id = uuid7()
        renewal = Renewal(uuid7(), loan_id, date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))
        loan = Loan(
            id=loan_id, book_id=books[0].id, borrower_id=borrowers[0].id,
            checkout_date=date(2024, 1, 1), due_date=date(2024, 1, 22),
            return_date=date(2024, 1, 20), renewals=(renewal,),
        )

        # Act
        repo.restore(loan)
        stored = repo.get_by_id(loan_id)

        # Assert
        assert stored.return_date == date(2024, 1, 20)
        assert stored.renewals == (renewal,)
        assert stored.original_due_date == date(2024, 1, 15)

    def test_second_outstanding_loan_is_refused(self, repo, books, borrowers):
        repo.add_outstanding(_loan(books[0], borrowers[0]))

        with pytest.raises(ConflictError):
            repo.restore(_loan(books[0], borrowers[1]))

    def test_failed_restore_leaves_no_renewals(self, repo, borrowers):
        loan_id = uuid7()
        renewal = Renewal(uuid7(), loan_id, date(2024, 1, 14), date(2024, 1, 15), date(2024, 1, 22))
        orphan = Loan(
            id=loan_id, book_id=uuid7(), borrower_id=borrowers[0].id,
            checkout_date=date(2024, 1, 1), due_date=date(2024, 1, 22), renewals=(renewal,),
        )

        with pytest.raises(ConflictError):
            repo.restore(orphan)

        assert repo.get_by_id(loan_id) is None
        assert repo.list_all() == []
