"""
SQLite implementation of the BookCatalogRepository port.

Books live in the `books` table. Authorship lives in `book_authors` and
classification in `book_genres` and `book_tags`; each link table keeps the
book's ordering through its `position` column. The unique constraint
on catalog_key only applies to non-null keys.
"""

import sqlite3
from typing import List, Optional
from uuid import UUID

from athenaeum.domain.entities import Book
from athenaeum.domain.errors import ConflictError
from athenaeum.domain.ports import BookCatalogRepository

from .schema import SqliteRepository, date_to_text, text_to_date, text_to_datetime


class SqliteBookCatalogRepository(SqliteRepository, BookCatalogRepository):
    """Books with their author, genre and tag links."""

    def _book_to_row(self, book: Book) -> dict:
        return {
            "id": str(book.id),
            "title": book.title,
            "subtitle": book.subtitle,
            "description": book.description,
            "publisher": book.publisher,
            "publish_date": date_to_text(book.publish_date),
            "isbn10": book.isbn10,
            "isbn13": book.isbn13,
            "catalog_key": book.catalog_key,
            "cover_image_url": book.cover_image_url,
            "notes": book.notes,
            "date_added": book.date_added.isoformat(),
        }

    def _linked_ids(self, conn: sqlite3.Connection, table: str, column: str, book_id: str) -> List[UUID]:
        rows = conn.execute(
            f"SELECT {column} FROM {table} WHERE book_id = ? ORDER BY position",
            (book_id,)
        ).fetchall()
        return [UUID(r[column]) for r in rows]

    def _replace_links(
        self, conn: sqlite3.Connection, table: str, column: str, book_id: str, ids: List[UUID]
    ) -> None:
        conn.execute(f"DELETE FROM {table} WHERE book_id = ?", (book_id,))
        conn.executemany(
            f"INSERT INTO {table} (book_id, {column}, position) VALUES (?, ?, ?)",
            [(book_id, str(linked_id), i) for i, linked_id in enumerate(ids)],
        )

    def _row_to_book(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Book:
        return Book(
            id=UUID(row["id"]),
            title=row["title"],
            author_ids=self._linked_ids(conn, "book_authors", "author_id", row["id"]),
            genre_ids=self._linked_ids(conn, "book_genres", "genre_id", row["id"]),
            tag_ids=self._linked_ids(conn, "book_tags", "tag_id", row["id"]),
            subtitle=row["subtitle"],
            description=row["description"],
            publisher=row["publisher"],
            publish_date=text_to_date(row["publish_date"]),
            isbn10=row["isbn10"],
            isbn13=row["isbn13"],
            catalog_key=row["catalog_key"],
            cover_image_url=row["cover_image_url"],
            notes=row["notes"],
            date_added=text_to_datetime(row["date_added"]),
        )

    def count(self) -> int:
        with self._get_connection() as conn:
            result = conn.execute("SELECT COUNT(*) as cnt FROM books").fetchone()
            return result["cnt"]

    def get_by_id(self, book_id: UUID) -> Optional[Book]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM books WHERE id = ?",
                (str(book_id),)
            ).fetchone()

            if row is None:
                return None

            return self._row_to_book(conn, row)

    def get_by_catalog_key(self, catalog_key: str) -> Optional[Book]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM books WHERE catalog_key = ?",
                (catalog_key,)
            ).fetchone()

            if row is None:
                return None

            return self._row_to_book(conn, row)

    def find_by_isbn(self, isbn10: Optional[str], isbn13: Optional[str]) -> List[Book]:
        if isbn10 is None and isbn13 is None:
            return []

        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM books WHERE isbn10 = ? OR isbn13 = ? ORDER BY title",
                (isbn10, isbn13)
            ).fetchall()
            return [self._row_to_book(conn, row) for row in rows]

    def list_by_author(self, author_id: UUID) -> List[Book]:
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT b.* FROM books b
                JOIN book_authors ba ON ba.book_id = b.id
                WHERE ba.author_id = ?
                ORDER BY b.publish_date, b.title
            """, (str(author_id),)).fetchall()
            return [self._row_to_book(conn, row) for row in rows]

    def list_by_genre(self, genre_id: UUID) -> List[Book]:
        return self._list_linked("book_genres", "genre_id", genre_id)

    def list_by_tag(self, tag_id: UUID) -> List[Book]:
        return self._list_linked("book_tags", "tag_id", tag_id)

    def _list_linked(self, table: str, column: str, linked_id: UUID) -> List[Book]:
        with self._get_connection() as conn:
            rows = conn.execute(f"""
                SELECT b.* FROM books b
                JOIN {table} link ON link.book_id = b.id
                WHERE link.{column} = ?
                ORDER BY b.title, b.id
            """, (str(linked_id),)).fetchall()
            return [self._row_to_book(conn, row) for row in rows]

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[Book]:
        with self._get_connection() as conn:
            if limit is not None:
                rows = conn.execute(
                    "SELECT * FROM books ORDER BY title, id LIMIT ? OFFSET ?",
                    (limit, offset)
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM books ORDER BY title, id LIMIT -1 OFFSET ?",
                    (offset,)
                ).fetchall()

            return [self._row_to_book(conn, row) for row in rows]

    def save(self, book: Book) -> None:
        """Insert or update a book and replace its author, genre and tag links."""
        row = self._book_to_row(book)

        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO books
                    (id, title, subtitle, description, publisher, publish_date,
                     isbn10, isbn13, catalog_key, cover_image_url, notes, date_added)
                    VALUES
                    (:id, :title, :subtitle, :description, :publisher, :publish_date,
                     :isbn10, :isbn13, :catalog_key, :cover_image_url, :notes, :date_added)
                    ON CONFLICT(id) DO UPDATE SET
                        title=excluded.title,
                        subtitle=excluded.subtitle,
                        description=excluded.description,
                        publisher=excluded.publisher,
                        publish_date=excluded.publish_date,
                        isbn10=excluded.isbn10,
                        isbn13=excluded.isbn13,
                        catalog_key=excluded.catalog_key,
                        cover_image_url=excluded.cover_image_url,
                        notes=excluded.notes
                """, row)

                self._replace_links(conn, "book_authors", "author_id", row["id"], book.author_ids)
                self._replace_links(conn, "book_genres", "genre_id", row["id"], book.genre_ids)
                self._replace_links(conn, "book_tags", "tag_id", row["id"], book.tag_ids)
                conn.commit()

        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Book violates catalog constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving book: {e}") from e

    def delete(self, book_id: UUID) -> bool:
        """Delete a book. Returns True if deleted."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM books WHERE id = ?",
                    (str(book_id),)
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Book {book_id} is still referenced by loans: {e}") from e
