"""
SQLite schema shared by all repositories.

Every repository runs the full script on start-up (it is idempotent), so the
repositories can be created in any order against the same database file.
"""

import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

SCHEMA = """
CREATE TABLE IF NOT EXISTS authors (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    catalog_key TEXT UNIQUE,
    bio TEXT,
    birth_date TEXT,
    photo_url TEXT
);

CREATE TABLE IF NOT EXISTS books (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    subtitle TEXT,
    description TEXT,
    publisher TEXT,
    publish_date TEXT,
    isbn10 TEXT,
    isbn13 TEXT,
    catalog_key TEXT UNIQUE,
    cover_image_url TEXT,
    notes TEXT,
    date_added TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_books_isbn10 ON books(isbn10);
CREATE INDEX IF NOT EXISTS idx_books_isbn13 ON books(isbn13);

CREATE TABLE IF NOT EXISTS book_authors (
    book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    author_id TEXT NOT NULL REFERENCES authors(id),
    position INTEGER NOT NULL,
    PRIMARY KEY (book_id, author_id)
);

CREATE INDEX IF NOT EXISTS idx_book_authors_author ON book_authors(author_id);

CREATE TABLE IF NOT EXISTS genres (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL COLLATE NOCASE UNIQUE
);

CREATE TABLE IF NOT EXISTS book_genres (
    book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    genre_id TEXT NOT NULL REFERENCES genres(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    PRIMARY KEY (book_id, genre_id)
);

CREATE INDEX IF NOT EXISTS idx_book_genres_genre ON book_genres(genre_id);

CREATE TABLE IF NOT EXISTS tags (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL COLLATE NOCASE UNIQUE
);

CREATE TABLE IF NOT EXISTS book_tags (
    book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    tag_id TEXT NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    PRIMARY KEY (book_id, tag_id)
);

CREATE INDEX IF NOT EXISTS idx_book_tags_tag ON book_tags(tag_id);

CREATE TABLE IF NOT EXISTS collections (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS collection_books (
    collection_id TEXT NOT NULL REFERENCES collections(id) ON DELETE CASCADE,
    book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    PRIMARY KEY (collection_id, book_id)
);

CREATE TABLE IF NOT EXISTS borrowers (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT,
    phone TEXT,
    notes TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    date_added TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS loans (
    id TEXT PRIMARY KEY,
    book_id TEXT NOT NULL REFERENCES books(id),
    borrower_id TEXT NOT NULL REFERENCES borrowers(id),
    checkout_date TEXT NOT NULL,
    due_date TEXT NOT NULL,
    return_date TEXT,
    notes TEXT,
    CHECK (due_date >= checkout_date)
);

-- At most one outstanding loan per book.
CREATE UNIQUE INDEX IF NOT EXISTS idx_loans_one_outstanding
    ON loans(book_id) WHERE return_date IS NULL;

CREATE INDEX IF NOT EXISTS idx_loans_borrower ON loans(borrower_id);

CREATE TABLE IF NOT EXISTS renewals (
    id TEXT PRIMARY KEY,
    loan_id TEXT NOT NULL REFERENCES loans(id) ON DELETE CASCADE,
    renewed_on TEXT NOT NULL,
    previous_due_date TEXT NOT NULL,
    new_due_date TEXT NOT NULL,
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_renewals_loan ON renewals(loan_id);
"""


class SqliteRepository:
    """Connection handling and schema creation shared by the SQLite adapters."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory and foreign keys enabled."""
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)


def date_to_text(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def text_to_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def text_to_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)
