"""
SQLite implementation of the BorrowerRepository port.
"""

import sqlite3
from typing import List, Optional
from uuid import UUID

from athenaeum.domain.entities import Borrower
from athenaeum.domain.ports import BorrowerRepository

from .schema import SqliteRepository, text_to_datetime


class SqliteBorrowerRepository(SqliteRepository, BorrowerRepository):

    def _row_to_borrower(self, row: sqlite3.Row) -> Borrower:
        return Borrower(
            id=UUID(row["id"]),
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            notes=row["notes"],
            is_active=bool(row["is_active"]),
            date_added=text_to_datetime(row["date_added"]),
        )

    def save(self, borrower: Borrower) -> None:
        row = {
            "id": str(borrower.id),
            "name": borrower.name,
            "email": borrower.email,
            "phone": borrower.phone,
            "notes": borrower.notes,
            "is_active": int(borrower.is_active),
            "date_added": borrower.date_added.isoformat(),
        }

        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO borrowers (id, name, email, phone, notes, is_active, date_added)
                    VALUES (:id, :name, :email, :phone, :notes, :is_active, :date_added)
                    ON CONFLICT(id) DO UPDATE SET
                        name=excluded.name,
                        email=excluded.email,
                        phone=excluded.phone,
                        notes=excluded.notes,
                        is_active=excluded.is_active
                """, row)
                conn.commit()
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving borrower: {e}") from e

    def get_by_id(self, borrower_id: UUID) -> Optional[Borrower]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM borrowers WHERE id = ?", (str(borrower_id),)
            ).fetchone()
            return self._row_to_borrower(row) if row else None

    def get_all(self, active_only: bool = False) -> List[Borrower]:
        query = "SELECT * FROM borrowers"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY name, id"

        with self._get_connection() as conn:
            return [self._row_to_borrower(row) for row in conn.execute(query).fetchall()]
