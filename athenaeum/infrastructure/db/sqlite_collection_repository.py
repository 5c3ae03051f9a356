"""
SQLite implementation of the CollectionRepository port.

Membership is stored in `collection_books`; saving a collection rewrites its
membership rows in the same transaction.
"""

import sqlite3
from typing import List, Optional
from uuid import UUID

from athenaeum.domain.entities import Collection
from athenaeum.domain.errors import ConflictError
from athenaeum.domain.ports import CollectionRepository

from .schema import SqliteRepository


class SqliteCollectionRepository(SqliteRepository, CollectionRepository):

    def _row_to_collection(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Collection:
        member_rows = conn.execute(
            "SELECT book_id FROM collection_books WHERE collection_id = ? ORDER BY position",
            (row["id"],)
        ).fetchall()

        return Collection(
            id=UUID(row["id"]),
            name=row["name"],
            description=row["description"],
            notes=row["notes"],
            book_ids=[UUID(r["book_id"]) for r in member_rows],
        )

    def save(self, collection: Collection) -> None:
        collection_id = str(collection.id)
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO collections (id, name, description, notes)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name=excluded.name,
                        description=excluded.description,
                        notes=excluded.notes
                """, (collection_id, collection.name, collection.description, collection.notes))

                conn.execute("DELETE FROM collection_books WHERE collection_id = ?", (collection_id,))
                conn.executemany(
                    "INSERT INTO collection_books (collection_id, book_id, position) VALUES (?, ?, ?)",
                    [(collection_id, str(book_id), i) for i, book_id in enumerate(collection.book_ids)],
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Collection violates catalog constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving collection: {e}") from e

    def get_by_id(self, collection_id: UUID) -> Optional[Collection]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM collections WHERE id = ?", (str(collection_id),)
            ).fetchone()
            return self._row_to_collection(conn, row) if row else None

    def get_all(self) -> List[Collection]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM collections ORDER BY name, id").fetchall()
            return [self._row_to_collection(conn, row) for row in rows]

    def delete(self, collection_id: UUID) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM collections WHERE id = ?", (str(collection_id),))
            conn.commit()
            return cursor.rowcount > 0
