"""
SQLite implementation of the LoanRepository port.

Checkout runs inside a `BEGIN IMMEDIATE` transaction: the write lock is taken
before the "is this book already out?" query, so two connections cannot both
pass the check. The partial unique index on loans(book_id) WHERE
return_date IS NULL backs the rule at the storage level.

Renewals take the same lock and re-read the stored loan, so the renewal
limit holds even when callers renew from stale copies of a loan.
"""

from datetime import date
import sqlite3
from typing import List, Optional
from uuid import UUID

from athenaeum.domain.entities import Loan, Renewal
from athenaeum.domain.errors import ConflictError, NotFoundError, PolicyError, StateError
from athenaeum.domain.ports import LoanRepository

from .schema import SqliteRepository, date_to_text, text_to_date


class SqliteLoanRepository(SqliteRepository, LoanRepository):
    """Loans and their renewal log."""

    def _begin_immediate(self) -> sqlite3.Connection:
        conn = self._get_connection()
        conn.isolation_level = None
        conn.execute("BEGIN IMMEDIATE")
        return conn

    def _row_to_loan(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Loan:
        renewal_rows = conn.execute(
            "SELECT * FROM renewals WHERE loan_id = ? ORDER BY new_due_date",
            (row["id"],)
        ).fetchall()

        loan_id = UUID(row["id"])
        renewals = tuple(
            Renewal(
                id=UUID(r["id"]),
                loan_id=loan_id,
                renewed_on=text_to_date(r["renewed_on"]),
                previous_due_date=text_to_date(r["previous_due_date"]),
                new_due_date=text_to_date(r["new_due_date"]),
                notes=r["notes"],
            )
            for r in renewal_rows
        )

        return Loan(
            id=loan_id,
            book_id=UUID(row["book_id"]),
            borrower_id=UUID(row["borrower_id"]),
            checkout_date=text_to_date(row["checkout_date"]),
            due_date=text_to_date(row["due_date"]),
            return_date=text_to_date(row["return_date"]),
            notes=row["notes"],
            renewals=renewals,
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def add_outstanding(self, loan: Loan) -> None:
        """Insert a loan if its book has no outstanding loan, atomically."""
        conn = self._begin_immediate()
        try:
            existing = conn.execute(
                "SELECT id FROM loans WHERE book_id = ? AND return_date IS NULL",
                (str(loan.book_id),)
            ).fetchone()
            if existing is not None:
                raise ConflictError(
                    f"Book {loan.book_id} already has an outstanding loan ({existing['id']})"
                )

            conn.execute("""
                INSERT INTO loans
                (id, book_id, borrower_id, checkout_date, due_date, return_date, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                str(loan.id),
                str(loan.book_id),
                str(loan.borrower_id),
                date_to_text(loan.checkout_date),
                date_to_text(loan.due_date),
                date_to_text(loan.return_date),
                loan.notes,
            ))
            conn.commit()

        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Loan violates ledger constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while creating loan: {e}") from e
        finally:
            conn.rollback()
            conn.close()

    def add_renewal(self, renewal: Renewal, new_due_date: date, max_renewals: int) -> None:
        """Append a renewal after re-checking the limit and due date under the write lock."""
        conn = self._begin_immediate()
        try:
            row = conn.execute(
                "SELECT due_date, return_date FROM loans WHERE id = ?", (str(renewal.loan_id),)
            ).fetchone()
            if row is None:
                raise NotFoundError(f"Loan with id '{renewal.loan_id}' not found")
            if row["return_date"] is not None:
                raise PolicyError(f"Loan {renewal.loan_id} is closed and cannot be renewed")

            count = conn.execute(
                "SELECT COUNT(*) AS cnt FROM renewals WHERE loan_id = ?", (str(renewal.loan_id),)
            ).fetchone()["cnt"]
            if count >= max_renewals:
                raise PolicyError(
                    f"Maximum renewals ({max_renewals}) reached for loan {renewal.loan_id}"
                )

            stored_due_date = text_to_date(row["due_date"])
            if stored_due_date != renewal.previous_due_date:
                raise StateError(
                    f"Loan {renewal.loan_id} is due {stored_due_date}, "
                    f"not {renewal.previous_due_date}; it was changed by another request"
                )

            conn.execute("""
                INSERT INTO renewals (id, loan_id, renewed_on, previous_due_date, new_due_date, notes)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                str(renewal.id),
                str(renewal.loan_id),
                date_to_text(renewal.renewed_on),
                date_to_text(renewal.previous_due_date),
                date_to_text(renewal.new_due_date),
                renewal.notes,
            ))
            conn.execute(
                "UPDATE loans SET due_date = ? WHERE id = ?",
                (date_to_text(new_due_date), str(renewal.loan_id))
            )
            conn.commit()

        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while renewing loan: {e}") from e
        finally:
            conn.rollback()
            conn.close()

    def restore(self, loan: Loan) -> None:
        """Insert a loan and its renewals as they are, in one transaction."""
        conn = self._begin_immediate()
        try:
            conn.execute("""
                INSERT INTO loans
                (id, book_id, borrower_id, checkout_date, due_date, return_date, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                str(loan.id),
                str(loan.book_id),
                str(loan.borrower_id),
                date_to_text(loan.checkout_date),
                date_to_text(loan.due_date),
                date_to_text(loan.return_date),
                loan.notes,
            ))
            conn.executemany("""
                INSERT INTO renewals (id, loan_id, renewed_on, previous_due_date, new_due_date, notes)
                VALUES (?, ?, ?, ?, ?, ?)
            """, [
                (
                    str(r.id),
                    str(loan.id),
                    date_to_text(r.renewed_on),
                    date_to_text(r.previous_due_date),
                    date_to_text(r.new_due_date),
                    r.notes,
                )
                for r in loan.renewals
            ])
            conn.commit()

        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Loan {loan.id} violates ledger constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while restoring loan: {e}") from e
        finally:
            conn.rollback()
            conn.close()

    def mark_returned(self, loan_id: UUID, return_date: date) -> None:
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "UPDATE loans SET return_date = ? WHERE id = ? AND return_date IS NULL",
                    (date_to_text(return_date), str(loan_id))
                )
                if cursor.rowcount == 0:
                    exists = conn.execute(
                        "SELECT 1 FROM loans WHERE id = ?", (str(loan_id),)
                    ).fetchone()
                    if exists is None:
                        raise NotFoundError(f"Loan with id '{loan_id}' not found")
                    raise StateError(f"Loan {loan_id} was already returned")
                conn.commit()
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while returning loan: {e}") from e

    # =========================================================================
    # Reads
    # =========================================================================

    def get_by_id(self, loan_id: UUID) -> Optional[Loan]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM loans WHERE id = ?", (str(loan_id),)
            ).fetchone()
            return self._row_to_loan(conn, row) if row else None

    def get_outstanding_for_book(self, book_id: UUID) -> Optional[Loan]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM loans WHERE book_id = ? AND return_date IS NULL",
                (str(book_id),)
            ).fetchone()
            return self._row_to_loan(conn, row) if row else None

    def list_for_book(self, book_id: UUID) -> List[Loan]:
        return self._list("WHERE book_id = ? ORDER BY checkout_date DESC, id DESC", (str(book_id),))

    def list_for_borrower(self, borrower_id: UUID) -> List[Loan]:
        return self._list(
            "WHERE borrower_id = ? ORDER BY checkout_date DESC, id DESC", (str(borrower_id),)
        )

    def list_outstanding(self) -> List[Loan]:
        return self._list("WHERE return_date IS NULL ORDER BY due_date, id", ())

    def list_all(self) -> List[Loan]:
        return self._list("ORDER BY checkout_date, id", ())

    def _list(self, clause: str, params: tuple) -> List[Loan]:
        with self._get_connection() as conn:
            rows = conn.execute(f"SELECT * FROM loans {clause}", params).fetchall()
            return [self._row_to_loan(conn, row) for row in rows]
