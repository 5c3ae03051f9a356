"""
API endpoints for borrowers and loans.

Dates left out of a request default to today. Lending policy (loan length,
renewal limit) comes from the settings store at the time of the call.
"""

from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from athenaeum.api.v1 import schemas as api
from athenaeum.api.v1.converters import (
    domain_availability_to_api,
    domain_borrower_to_api,
    domain_loan_to_api,
    domain_summary_to_api,
)
from athenaeum.api.v1.dependencies import (
    get_borrower_registry,
    get_catalog_service,
    get_loan_ledger,
    get_settings_store,
)
from athenaeum.api.v1.errors import to_http_exception
from athenaeum.domain.entities import Loan
from athenaeum.domain.errors import LibraryError
from athenaeum.domain.services import BorrowerRegistry, CatalogService, LoanLedger, SettingsStore

router = APIRouter()


def _loan_to_api(loan: Loan, settings: SettingsStore, as_of: date | None = None) -> api.Loan:
    return domain_loan_to_api(loan, settings.get().max_renewals, as_of or date.today())


# =============================================================================
# Borrowers
# =============================================================================

@router.post("/borrowers", response_model=api.Borrower, status_code=status.HTTP_201_CREATED)
def register_borrower(
    request: api.BorrowerCreate,
    registry: BorrowerRegistry = Depends(get_borrower_registry),
) -> api.Borrower:
    try:
        borrower = registry.register(**request.model_dump())
    except LibraryError as e:
        raise to_http_exception(e)
    return domain_borrower_to_api(borrower)


@router.get("/borrowers", response_model=List[api.Borrower])
def list_borrowers(
    active_only: bool = Query(default=False),
    registry: BorrowerRegistry = Depends(get_borrower_registry),
) -> List[api.Borrower]:
    return [domain_borrower_to_api(b) for b in registry.list_borrowers(active_only=active_only)]


@router.get("/borrowers/{borrower_id}", response_model=api.Borrower)
def get_borrower(
    borrower_id: UUID,
    registry: BorrowerRegistry = Depends(get_borrower_registry),
) -> api.Borrower:
    try:
        return domain_borrower_to_api(registry.get(borrower_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/borrowers/{borrower_id}/loans", response_model=List[api.Loan])
def get_borrower_loans(
    borrower_id: UUID,
    registry: BorrowerRegistry = Depends(get_borrower_registry),
    settings: SettingsStore = Depends(get_settings_store),
) -> List[api.Loan]:
    """Loan history of a borrower, newest checkout first."""
    try:
        return [_loan_to_api(loan, settings) for loan in registry.loan_history(borrower_id)]
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/borrowers/{borrower_id}/summary", response_model=api.BorrowerSummary)
def get_borrower_summary(
    borrower_id: UUID,
    as_of: date | None = Query(default=None),
    registry: BorrowerRegistry = Depends(get_borrower_registry),
) -> api.BorrowerSummary:
    try:
        summary = registry.summary(borrower_id, as_of or date.today())
    except LibraryError as e:
        raise to_http_exception(e)
    return domain_summary_to_api(summary)


@router.post("/borrowers/{borrower_id}/deactivate", response_model=api.Borrower)
def deactivate_borrower(
    borrower_id: UUID,
    registry: BorrowerRegistry = Depends(get_borrower_registry),
) -> api.Borrower:
    try:
        return domain_borrower_to_api(registry.deactivate(borrower_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.post("/borrowers/{borrower_id}/reactivate", response_model=api.Borrower)
def reactivate_borrower(
    borrower_id: UUID,
    registry: BorrowerRegistry = Depends(get_borrower_registry),
) -> api.Borrower:
    try:
        return domain_borrower_to_api(registry.reactivate(borrower_id))
    except LibraryError as e:
        raise to_http_exception(e)


# =============================================================================
# Loans
# =============================================================================

@router.post("/loans", response_model=api.Loan, status_code=status.HTTP_201_CREATED)
def create_loan(
    request: api.LoanCreate,
    catalog: CatalogService = Depends(get_catalog_service),
    registry: BorrowerRegistry = Depends(get_borrower_registry),
    ledger: LoanLedger = Depends(get_loan_ledger),
    settings: SettingsStore = Depends(get_settings_store),
) -> api.Loan:
    """
    Lend a book to a borrower.

    Raises:
        404: Unknown book or borrower
        409: Book already on loan
        422: Borrower is inactive
    """
    try:
        book = catalog.get_book(request.book_id)
        borrower = registry.get(request.borrower_id)
        loan = ledger.create_loan(
            book,
            borrower,
            request.checkout_date or date.today(),
            settings.get(),
            notes=request.notes,
        )
    except LibraryError as e:
        raise to_http_exception(e)
    return _loan_to_api(loan, settings, loan.checkout_date)


@router.get("/loans", response_model=List[api.Loan])
def list_outstanding_loans(
    as_of: date | None = Query(default=None),
    ledger: LoanLedger = Depends(get_loan_ledger),
    settings: SettingsStore = Depends(get_settings_store),
) -> List[api.Loan]:
    return [_loan_to_api(loan, settings, as_of) for loan in ledger.outstanding_loans()]


@router.get("/loans/overdue", response_model=List[api.Loan])
def list_overdue_loans(
    as_of: date | None = Query(default=None),
    ledger: LoanLedger = Depends(get_loan_ledger),
    settings: SettingsStore = Depends(get_settings_store),
) -> List[api.Loan]:
    """Overdue loans, most overdue first, with days_overdue counted from as_of."""
    as_of = as_of or date.today()
    return [_loan_to_api(loan, settings, as_of) for loan in ledger.overdue_loans(as_of)]


@router.get("/loans/due-soon", response_model=List[api.Loan])
def list_loans_due_soon(
    as_of: date | None = Query(default=None),
    days_ahead: int = Query(default=7, ge=0),
    ledger: LoanLedger = Depends(get_loan_ledger),
    settings: SettingsStore = Depends(get_settings_store),
) -> List[api.Loan]:
    as_of = as_of or date.today()
    loans = ledger.due_soon(as_of, days_ahead=days_ahead)
    return [_loan_to_api(loan, settings, as_of) for loan in loans]


@router.get("/loans/{loan_id}", response_model=api.Loan)
def get_loan(
    loan_id: UUID,
    ledger: LoanLedger = Depends(get_loan_ledger),
    as_of: date | None = Query(default=None),
    settings: SettingsStore = Depends(get_settings_store),
) -> api.Loan:
    try:
        return _loan_to_api(ledger.get_loan(loan_id), settings, as_of)
    except LibraryError as e:
        raise to_http_exception(e)


@router.post("/loans/{loan_id}/renew", response_model=api.Loan)
def renew_loan(
    loan_id: UUID,
    request: api.RenewRequest,
    ledger: LoanLedger = Depends(get_loan_ledger),
    settings: SettingsStore = Depends(get_settings_store),
) -> api.Loan:
    """
    Extend a loan by the configured renewal period.

    Raises:
        404: Loan not found
        409: Renewal date precedes checkout
        422: Renewal limit reached or loan already returned
    """
    try:
        loan = ledger.get_loan(loan_id)
        ledger.renew(loan, request.as_of or date.today(), settings.get(), notes=request.notes)
    except LibraryError as e:
        raise to_http_exception(e)
    return _loan_to_api(loan, settings, request.as_of)


@router.post("/loans/{loan_id}/return", response_model=api.Loan)
def return_loan(
    loan_id: UUID,
    request: api.ReturnRequest,
    ledger: LoanLedger = Depends(get_loan_ledger),
    settings: SettingsStore = Depends(get_settings_store),
) -> api.Loan:
    try:
        loan = ledger.get_loan(loan_id)
        ledger.return_book(loan, request.return_date or date.today())
    except LibraryError as e:
        raise to_http_exception(e)
    return _loan_to_api(loan, settings, loan.return_date)


@router.get("/books/{book_id}/availability", response_model=api.BookAvailability)
def get_book_availability(
    book_id: UUID,
    total_copies: int = Query(default=1, ge=0, description="Copies owned"),
    catalog: CatalogService = Depends(get_catalog_service),
    ledger: LoanLedger = Depends(get_loan_ledger),
) -> api.BookAvailability:
    """
    Availability snapshot for one book.

    Unknown books are reported with book_exists=False rather than 404.
    """
    try:
        availability = ledger.availability(
            catalog.find_book(book_id), total_copies, book_id=book_id
        )
    except LibraryError as e:
        raise to_http_exception(e)
    return domain_availability_to_api(availability)
