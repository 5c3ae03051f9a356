"""
SQLite implementations of the GenreRepository and TagRepository ports.

Genres and tags share one shape (an id and a name) and one set of queries;
only the table differs. Name uniqueness is enforced by the `COLLATE NOCASE
UNIQUE` column, so 'Fantasy' and 'fantasy' cannot both exist. Deleting a
label removes its book links through `ON DELETE CASCADE`.
"""

import sqlite3
from typing import List, Optional, Type
from uuid import UUID

from athenaeum.domain.entities import Genre, Label, Tag
from athenaeum.domain.errors import ConflictError
from athenaeum.domain.ports import GenreRepository, TagRepository

from .schema import SqliteRepository


class _SqliteLabelRepository(SqliteRepository):
    _table: str
    _label_type: Type[Label]

    def _row_to_label(self, row: sqlite3.Row) -> Label:
        return self._label_type(id=UUID(row["id"]), name=row["name"])

    def save(self, label: Label) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute(f"""
                    INSERT INTO {self._table} (id, name) VALUES (?, ?)
                    ON CONFLICT(id) DO UPDATE SET name=excluded.name
                """, (str(label.id), label.name))
                conn.commit()
        except sqlite3.IntegrityError as e:
            kind = self._label_type.__name__.lower()
            raise ConflictError(f"A {kind} named '{label.name}' already exists") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving {self._table}: {e}") from e

    def get_by_id(self, label_id: UUID) -> Optional[Label]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT * FROM {self._table} WHERE id = ?", (str(label_id),)
            ).fetchone()
            return self._row_to_label(row) if row else None

    def get_by_name(self, name: str) -> Optional[Label]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT * FROM {self._table} WHERE name = ?", (name.strip(),)
            ).fetchone()
            return self._row_to_label(row) if row else None

    def get_all(self) -> List[Label]:
        with self._get_connection() as conn:
            rows = conn.execute(f"SELECT * FROM {self._table} ORDER BY name, id").fetchall()
            return [self._row_to_label(row) for row in rows]

    def delete(self, label_id: UUID) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(f"DELETE FROM {self._table} WHERE id = ?", (str(label_id),))
            conn.commit()
            return cursor.rowcount > 0


class SqliteGenreRepository(_SqliteLabelRepository, GenreRepository):
    _table = "genres"
    _label_type = Genre


class SqliteTagRepository(_SqliteLabelRepository, TagRepository):
    _table = "tags"
    _label_type = Tag
