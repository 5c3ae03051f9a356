"""
Converters between domain entities/value objects and API schemas.

All mapping between the two layers lives here so endpoints stay thin.
"""

from dataclasses import asdict
from datetime import date, datetime, UTC

from athenaeum.domain import entities as domain
from athenaeum.domain import value_objects as domain_vo
from athenaeum.domain.services import ImportResult
from athenaeum.api.v1 import schemas as api


def domain_author_to_api(author: domain.Author) -> api.Author:
    return api.Author(**asdict(author))


def domain_book_to_api(book: domain.Book) -> api.Book:
    return api.Book(**asdict(book))


def domain_collection_to_api(collection: domain.Collection) -> api.Collection:
    return api.Collection(**asdict(collection))


def domain_genre_to_api(genre: domain.Genre) -> api.Genre:
    return api.Genre(id=genre.id, name=genre.name)


def domain_tag_to_api(tag: domain.Tag) -> api.Tag:
    return api.Tag(id=tag.id, name=tag.name)


def domain_borrower_to_api(borrower: domain.Borrower) -> api.Borrower:
    return api.Borrower(**asdict(borrower))


def domain_loan_to_api(loan: domain.Loan, max_renewals: int, as_of: date) -> api.Loan:
    """
    Convert a Loan, including its renewal log and derived flags.

    renewals_remaining depends on the current renewal limit and
    days_overdue on the reference date, so both are passed in.
    """
    return api.Loan(
        id=loan.id,
        book_id=loan.book_id,
        borrower_id=loan.borrower_id,
        checkout_date=loan.checkout_date,
        due_date=loan.due_date,
        return_date=loan.return_date,
        notes=loan.notes,
        is_outstanding=loan.is_outstanding,
        renewal_count=loan.renewal_count,
        renewals_remaining=loan.renewals_remaining(max_renewals),
        days_overdue=loan.days_overdue(as_of),
        renewals=[
            api.Renewal(
                id=r.id,
                renewed_on=r.renewed_on,
                previous_due_date=r.previous_due_date,
                new_due_date=r.new_due_date,
                notes=r.notes,
            )
            for r in loan.renewals
        ],
    )


def domain_availability_to_api(availability: domain_vo.BookAvailability) -> api.BookAvailability:
    return api.BookAvailability(
        book_id=availability.book_id,
        book_exists=availability.book_exists,
        total_copies=availability.total_copies,
        on_loan=availability.on_loan,
        available=availability.available,
        is_available=availability.is_available,
    )


def domain_summary_to_api(summary: domain_vo.BorrowerSummary) -> api.BorrowerSummary:
    return api.BorrowerSummary(
        borrower_id=summary.borrower_id,
        active_loans=summary.active_loans,
        total_loans=summary.total_loans,
        overdue_loans=summary.overdue_loans,
        has_overdue_loans=summary.has_overdue_loans,
        as_of=summary.as_of,
    )


def domain_settings_to_api(settings: domain_vo.AppSettings) -> api.AppSettings:
    return api.AppSettings(**settings.as_dict())


def api_settings_update_to_changes(update: api.SettingsUpdate) -> dict:
    """Only the fields the client actually sent."""
    return update.model_dump(exclude_none=True)


def domain_snapshot_to_api(snapshot: domain_vo.LibrarySnapshot) -> api.LibraryExport:
    return api.LibraryExport(
        format_version=snapshot.format_version,
        exported_at=snapshot.exported_at,
        authors=[domain_author_to_api(a) for a in snapshot.authors],
        genres=[domain_genre_to_api(g) for g in snapshot.genres],
        tags=[domain_tag_to_api(t) for t in snapshot.tags],
        books=[domain_book_to_api(b) for b in snapshot.books],
        collections=[domain_collection_to_api(c) for c in snapshot.collections],
        borrowers=[domain_borrower_to_api(b) for b in snapshot.borrowers],
        loans=[
            api.LoanExport(
                id=loan.id,
                book_id=loan.book_id,
                borrower_id=loan.borrower_id,
                checkout_date=loan.checkout_date,
                due_date=loan.due_date,
                return_date=loan.return_date,
                notes=loan.notes,
                renewals=[api.Renewal(**asdict(r)) for r in loan.renewals],
            )
            for loan in snapshot.loans
        ],
        statistics=api.ExportStatistics(**asdict(snapshot.statistics)),
    )


def api_export_to_snapshot(export: api.LibraryExport) -> domain_vo.LibrarySnapshot:
    """
    Build domain records from an uploaded export.

    Raises:
        ValidationError: If a record breaks a domain rule
    """
    return domain_vo.LibrarySnapshot(
        format_version=export.format_version,
        exported_at=export.exported_at or datetime.now(UTC),
        authors=[domain.Author(**a.model_dump()) for a in export.authors],
        genres=[domain.Genre(id=g.id, name=g.name) for g in export.genres],
        tags=[domain.Tag(id=t.id, name=t.name) for t in export.tags],
        books=[domain.Book(**b.model_dump()) for b in export.books],
        collections=[domain.Collection(**c.model_dump()) for c in export.collections],
        borrowers=[domain.Borrower(**b.model_dump()) for b in export.borrowers],
        loans=[
            domain.Loan(
                id=loan.id,
                book_id=loan.book_id,
                borrower_id=loan.borrower_id,
                checkout_date=loan.checkout_date,
                due_date=loan.due_date,
                return_date=loan.return_date,
                notes=loan.notes,
                renewals=tuple(
                    domain.Renewal(loan_id=loan.id, **r.model_dump()) for r in loan.renewals
                ),
            )
            for loan in export.loans
        ],
    )


def domain_import_result_to_api(result: ImportResult) -> api.ImportResult:
    return api.ImportResult(
        success=result.success,
        imported=dict(result.imported),
        total_imported=result.total_imported,
        items_skipped=result.items_skipped,
        errors=list(result.errors),
    )
