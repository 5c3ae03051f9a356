#!/usr/bin/env python3
"""
Book Import Script.

Looks ISBNs up in Open Library and adds the books (and any authors not yet
on file) to the SQLite catalog. ISBNs already catalogued are left as they are.

Usage:
    python -m scripts.import_books 9780441172719 0-441-01359-7
    python -m scripts.import_books --file isbns.txt --db-path data/athenaeum.db

Args:
    isbns: ISBN-10 or ISBN-13 values, dashes allowed
    --file: Text file with one ISBN per line (blank lines and '#' comments skipped)
    --db-path: Path to SQLite database (default: data/athenaeum.db)
    --timeout: Open Library request timeout in seconds (default: 30)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from athenaeum.domain.errors import ExternalCatalogError, LibraryError
from athenaeum.domain.services import CatalogService
from athenaeum.domain.utils.isbn import format_isbn
from athenaeum.infrastructure.db import (
    SqliteAuthorRepository,
    SqliteBookCatalogRepository,
    SqliteCollectionRepository,
    SqliteLoanRepository,
)
from athenaeum.infrastructure.external import OpenLibraryClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "data/athenaeum.db"


def read_isbn_file(path: str) -> List[str]:
    """Read ISBNs from a file, one per line."""
    isbns = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            isbns.append(line)
    return isbns


def build_catalog_service(db_path: str, timeout: int) -> CatalogService:
    return CatalogService(
        books=SqliteBookCatalogRepository(Path(db_path)),
        authors=SqliteAuthorRepository(Path(db_path)),
        collections=SqliteCollectionRepository(Path(db_path)),
        loans=SqliteLoanRepository(Path(db_path)),
        external_catalog=OpenLibraryClient(timeout_seconds=timeout),
    )


def import_books(catalog: CatalogService, isbns: List[str]) -> int:
    """
    Import each ISBN, continuing past failures.

    Returns:
        Number of ISBNs that could not be imported
    """
    failures = 0
    for isbn in isbns:
        try:
            book, created = catalog.import_from_external(isbn)
            action = "imported" if created else "already catalogued"
            logger.info(f"{format_isbn(isbn)}: {action} {book.display_title()} ({book.id})")
        except (LibraryError, ExternalCatalogError) as e:
            failures += 1
            logger.error(f"{isbn}: {e}")
    return failures


def main(isbns: List[str], db_path: str = DEFAULT_DB_PATH, timeout: int = 30) -> int:
    """
    Main entry point for the import script.

    Returns:
        Process exit code: 0 if every ISBN was imported, 1 otherwise
    """
    if not isbns:
        logger.error("No ISBNs given")
        return 1

    catalog = build_catalog_service(db_path, timeout)
    before = catalog.count_books()
    failures = import_books(catalog, isbns)
    logger.info(
        f"Imported {catalog.count_books() - before} new book(s); "
        f"{failures} of {len(isbns)} ISBN(s) failed; catalog holds {catalog.count_books()}"
    )
    return 1 if failures else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import books from Open Library by ISBN")
    parser.add_argument(
        "isbns",
        nargs="*",
        help="ISBN-10 or ISBN-13 values to import"
    )
    parser.add_argument(
        "--file", "-f",
        type=str,
        default=None,
        help="File with one ISBN per line"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=DEFAULT_DB_PATH,
        help=f"Path to SQLite database (default: {DEFAULT_DB_PATH})"
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=30,
        help="Open Library request timeout in seconds (default: 30)"
    )

    args = parser.parse_args()
    isbns = list(args.isbns)
    if args.file:
        isbns.extend(read_isbn_file(args.file))
    sys.exit(main(isbns, args.db_path, args.timeout))
