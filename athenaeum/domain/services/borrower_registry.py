"""
Borrower registry.

Keeps borrower records and answers loan-history questions about them. The
history itself lives in the loan ledger; the registry only looks it up.
"""

from datetime import date
import logging
from typing import List, Optional
from uuid import UUID

from ..entities import Borrower, Loan
from ..errors import NotFoundError
from ..ports import BorrowerRepository
from ..validation import check_email, check_phone, raise_first
from ..value_objects import BorrowerSummary
from .loan_ledger import LoanLedger

logger = logging.getLogger(__name__)


class BorrowerRegistry:
    """Register, look up and (de)activate borrowers."""

    def __init__(self, borrowers: BorrowerRepository, ledger: LoanLedger) -> None:
        self._borrowers = borrowers
        self._ledger = ledger

    def register(self, name: str, **kwargs) -> Borrower:
        borrower = Borrower.create_new(name=name, **kwargs)
        self._borrowers.save(borrower)
        logger.info("Borrower %s registered: %s", borrower.id, borrower.name)
        return borrower

    def get(self, borrower_id: UUID) -> Borrower:
        borrower = self._borrowers.get_by_id(borrower_id)
        if borrower is None:
            raise NotFoundError(f"Borrower with id '{borrower_id}' not found")
        return borrower

    def list_borrowers(self, active_only: bool = False) -> List[Borrower]:
        return self._borrowers.get_all(active_only=active_only)

    def update_contact(
        self,
        borrower_id: UUID,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Borrower:
        """
        Replace the contact details given; None leaves a field unchanged.

        Raises:
            ValidationError: If the email or phone is malformed
        """
        borrower = self.get(borrower_id)
        raise_first([check_email("email", email), check_phone("phone", phone)])

        if email is not None:
            borrower.email = email
        if phone is not None:
            borrower.phone = phone
        self._borrowers.save(borrower)
        return borrower

    def deactivate(self, borrower_id: UUID) -> Borrower:
        """Inactive borrowers keep their history but cannot take new loans."""
        return self._set_active(borrower_id, False)

    def reactivate(self, borrower_id: UUID) -> Borrower:
        return self._set_active(borrower_id, True)

    def loan_history(self, borrower_id: UUID) -> List[Loan]:
        """All loans of a borrower, newest checkout first."""
        self.get(borrower_id)
        return self._ledger.loans_for_borrower(borrower_id)

    def summary(self, borrower_id: UUID, as_of: date) -> BorrowerSummary:
        loans = self.loan_history(borrower_id)
        return BorrowerSummary(
            borrower_id=borrower_id,
            active_loans=sum(1 for loan in loans if loan.is_outstanding),
            total_loans=len(loans),
            overdue_loans=sum(1 for loan in loans if loan.is_overdue(as_of)),
            as_of=as_of,
        )

    def _set_active(self, borrower_id: UUID, active: bool) -> Borrower:
        borrower = self.get(borrower_id)
        if borrower.is_active != active:
            borrower.is_active = active
            self._borrowers.save(borrower)
            logger.info("Borrower %s %s", borrower_id, "reactivated" if active else "deactivated")
        return borrower
