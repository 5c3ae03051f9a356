"""
Loan ledger: the lending use cases.

The ledger creates, renews and closes loans while enforcing the lending
policy carried by AppSettings. Its repository is the single source of truth
for which loans are outstanding; availability and borrower histories are
derived from it.

Writes go through one lock so that the "at most one outstanding loan per
book" check and the insert that follows it cannot interleave with another
checkout in this process. The repository's add_outstanding repeats the check
inside its own transaction, which covers writers in other processes.
"""

from datetime import date, timedelta
import logging
import threading
from typing import List, Optional
from uuid import UUID

from ..entities import Book, Borrower, Loan, Renewal
from ..errors import ConflictError, NotFoundError, PolicyError, StateError
from ..ports import LoanRepository
from ..utils.uuid7 import uuid7
from ..value_objects import AppSettings, BookAvailability
from .availability import compute_availability

logger = logging.getLogger(__name__)


class LoanLedger:
    """
    Creates, renews and closes loans.

    Usage:
        ledger = LoanLedger(loan_repo)
        loan = ledger.create_loan(dune, alice, date(2024, 1, 1), settings)
        ledger.renew(loan, date(2024, 1, 14), settings)
        ledger.return_book(loan, date(2024, 1, 20))
    """

    def __init__(self, loans: LoanRepository) -> None:
        self._loans = loans
        self._write_lock = threading.Lock()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create_loan(
        self,
        book: Book,
        borrower: Borrower,
        checkout_date: date,
        settings: AppSettings,
        notes: Optional[str] = None,
    ) -> Loan:
        """
        Lend a book to a borrower.

        The due date is checkout_date + settings.default_loan_days.

        Raises:
            ConflictError: If the book already has an outstanding loan
            PolicyError: If the borrower is inactive
            ValidationError: If the resulting loan is invalid
        """
        if not borrower.is_active:
            logger.warning("Checkout refused: borrower %s is inactive", borrower.id)
            raise PolicyError(f"Borrower '{borrower.name}' is inactive and cannot borrow books")

        loan = Loan.create_new(
            book_id=book.id,
            borrower_id=borrower.id,
            checkout_date=checkout_date,
            due_date=checkout_date + timedelta(days=settings.default_loan_days),
            notes=notes,
        )

        with self._write_lock:
            existing = self._loans.get_outstanding_for_book(book.id)
            if existing is not None:
                logger.warning(
                    "Checkout refused: book %s already on loan (loan %s)", book.id, existing.id
                )
                raise ConflictError(
                    f"'{book.title}' is already on loan (due {existing.due_date})"
                )
            self._loans.add_outstanding(loan)

        logger.info(
            "Loan %s created: book=%s borrower=%s due=%s",
            loan.id, book.id, borrower.id, loan.due_date,
        )
        return loan

    def renew(
        self,
        loan: Loan,
        as_of: date,
        settings: AppSettings,
        notes: Optional[str] = None,
    ) -> date:
        """
        Extend an outstanding loan.

        New due date = max(current due date, as_of) + settings.renewal_period_days.
        Overdue loans may be renewed; no penalty is applied.

        Returns:
            The new due date

        Raises:
            PolicyError: If the renewal limit is reached or the loan is closed
            StateError: If as_of precedes the checkout date, or the stored loan
                was renewed since this copy was loaded
        """
        if loan.is_returned:
            logger.warning("Renewal refused: loan %s is closed", loan.id)
            raise PolicyError(f"Loan {loan.id} was returned on {loan.return_date} and cannot be renewed")

        if loan.renewal_count >= settings.max_renewals:
            logger.warning(
                "Renewal refused: loan %s reached the limit of %d", loan.id, settings.max_renewals
            )
            raise PolicyError(
                f"Maximum renewals ({settings.max_renewals}) reached for loan {loan.id}"
            )

        if as_of < loan.checkout_date:
            raise StateError(
                f"Renewal date {as_of} is before checkout date {loan.checkout_date}"
            )

        new_due_date = max(loan.due_date, as_of) + timedelta(days=settings.renewal_period_days)
        renewal = Renewal(
            id=uuid7(),
            loan_id=loan.id,
            renewed_on=as_of,
            previous_due_date=loan.due_date,
            new_due_date=new_due_date,
            notes=notes,
        )

        with self._write_lock:
            previous_renewals, previous_due_date = loan.renewals, loan.due_date
            loan.record_renewal(renewal)
            try:
                self._loans.add_renewal(renewal, new_due_date, settings.max_renewals)
            except Exception:
                loan.renewals, loan.due_date = previous_renewals, previous_due_date
                raise

        logger.info(
            "Loan %s renewed (%d/%d): due %s -> %s",
            loan.id, loan.renewal_count, settings.max_renewals,
            renewal.previous_due_date, new_due_date,
        )
        return new_due_date

    def return_book(self, loan: Loan, return_date: date) -> Loan:
        """
        Close a loan. The book becomes eligible for a new loan.

        Raises:
            StateError: If the loan was already returned or return_date precedes checkout
        """
        with self._write_lock:
            loan.mark_returned(return_date)
            try:
                self._loans.mark_returned(loan.id, return_date)
            except Exception:
                loan.return_date = None
                raise

        logger.info("Loan %s returned on %s", loan.id, return_date)
        return loan

    # =========================================================================
    # Queries
    # =========================================================================

    def get_loan(self, loan_id: UUID) -> Loan:
        """
        Raises:
            NotFoundError: If no loan has this id
        """
        loan = self._loans.get_by_id(loan_id)
        if loan is None:
            raise NotFoundError(f"Loan with id '{loan_id}' not found")
        return loan

    def outstanding_loan_for_book(self, book_id: UUID) -> Optional[Loan]:
        return self._loans.get_outstanding_for_book(book_id)

    def outstanding_loans(self) -> List[Loan]:
        return self._loans.list_outstanding()

    def loans_for_book(self, book_id: UUID) -> List[Loan]:
        return self._loans.list_for_book(book_id)

    def loans_for_borrower(self, borrower_id: UUID) -> List[Loan]:
        return self._loans.list_for_borrower(borrower_id)

    def overdue_loans(self, as_of: date) -> List[Loan]:
        """Outstanding loans past their due date, most overdue first."""
        overdue = [loan for loan in self._loans.list_outstanding() if loan.is_overdue(as_of)]
        return sorted(overdue, key=lambda loan: loan.due_date)

    def due_soon(self, as_of: date, days_ahead: int = 7) -> List[Loan]:
        """Outstanding loans due between as_of and as_of + days_ahead, inclusive."""
        horizon = as_of + timedelta(days=days_ahead)
        upcoming = [
            loan for loan in self._loans.list_outstanding()
            if as_of <= loan.due_date <= horizon
        ]
        return sorted(upcoming, key=lambda loan: loan.due_date)

    def availability(
        self,
        book: Optional[Book],
        total_copies: int,
        *,
        book_id: Optional[UUID] = None,
    ) -> BookAvailability:
        """Availability snapshot for one book, computed from the stored loans."""
        target_id = book.id if book is not None else book_id
        loans = self._loans.list_for_book(target_id) if target_id is not None else []
        return compute_availability(book, total_copies, loans, book_id=book_id)
