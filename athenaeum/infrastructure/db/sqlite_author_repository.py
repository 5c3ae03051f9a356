"""
SQLite implementation of the AuthorRepository port.
"""

import sqlite3
from typing import List, Optional
from uuid import UUID

from athenaeum.domain.entities import Author
from athenaeum.domain.errors import ConflictError
from athenaeum.domain.ports import AuthorRepository

from .schema import SqliteRepository, date_to_text, text_to_date


class SqliteAuthorRepository(SqliteRepository, AuthorRepository):

    def _row_to_author(self, row: sqlite3.Row) -> Author:
        return Author(
            id=UUID(row["id"]),
            name=row["name"],
            catalog_key=row["catalog_key"],
            bio=row["bio"],
            birth_date=text_to_date(row["birth_date"]),
            photo_url=row["photo_url"],
        )

    def save(self, author: Author) -> None:
        row = {
            "id": str(author.id),
            "name": author.name,
            "catalog_key": author.catalog_key,
            "bio": author.bio,
            "birth_date": date_to_text(author.birth_date),
            "photo_url": author.photo_url,
        }

        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO authors (id, name, catalog_key, bio, birth_date, photo_url)
                    VALUES (:id, :name, :catalog_key, :bio, :birth_date, :photo_url)
                    ON CONFLICT(id) DO UPDATE SET
                        name=excluded.name,
                        catalog_key=excluded.catalog_key,
                        bio=excluded.bio,
                        birth_date=excluded.birth_date,
                        photo_url=excluded.photo_url
                """, row)
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Author violates catalog constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving author: {e}") from e

    def get_by_id(self, author_id: UUID) -> Optional[Author]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM authors WHERE id = ?", (str(author_id),)
            ).fetchone()
            return self._row_to_author(row) if row else None

    def get_by_catalog_key(self, catalog_key: str) -> Optional[Author]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM authors WHERE catalog_key = ?", (catalog_key,)
            ).fetchone()
            return self._row_to_author(row) if row else None

    def get_many(self, author_ids: List[UUID]) -> List[Author]:
        if not author_ids:
            return []

        placeholders = ", ".join(["?"] * len(author_ids))
        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM authors WHERE id IN ({placeholders})",
                [str(author_id) for author_id in author_ids],
            ).fetchall()

        by_id = {UUID(row["id"]): self._row_to_author(row) for row in rows}
        return [by_id[author_id] for author_id in author_ids if author_id in by_id]

    def get_all(self) -> List[Author]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM authors ORDER BY name, id").fetchall()
            return [self._row_to_author(row) for row in rows]
