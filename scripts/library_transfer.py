#!/usr/bin/env python3
"""
Library Export/Import Script.

Writes the whole library (authors, genres, tags, books, collections,
borrowers and loans) to a JSON file, or merges such a file into a database.
The JSON document is the same one served by GET /api/v1/library/export.

Usage:
    python -m scripts.library_transfer export backup.json
    python -m scripts.library_transfer import backup.json --db-path data/other.db

Args:
    command: 'export' or 'import'
    path: JSON file to write (export) or read (import)
    --db-path: Path to SQLite database (default: data/athenaeum.db)
"""

import argparse
import logging
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from pydantic import ValidationError as SchemaError

from athenaeum.api.v1 import schemas as api
from athenaeum.api.v1.converters import api_export_to_snapshot, domain_snapshot_to_api
from athenaeum.domain.errors import LibraryError
from athenaeum.domain.services import LibraryTransferService
from athenaeum.infrastructure.db import (
    SqliteAuthorRepository,
    SqliteBookCatalogRepository,
    SqliteBorrowerRepository,
    SqliteCollectionRepository,
    SqliteGenreRepository,
    SqliteLoanRepository,
    SqliteTagRepository,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "data/athenaeum.db"


def build_transfer_service(db_path: str) -> LibraryTransferService:
    path = Path(db_path)
    return LibraryTransferService(
        books=SqliteBookCatalogRepository(path),
        authors=SqliteAuthorRepository(path),
        genres=SqliteGenreRepository(path),
        tags=SqliteTagRepository(path),
        collections=SqliteCollectionRepository(path),
        borrowers=SqliteBorrowerRepository(path),
        loans=SqliteLoanRepository(path),
    )


def export_library(transfer: LibraryTransferService, path: str) -> int:
    document = domain_snapshot_to_api(transfer.export_library())
    Path(path).write_text(document.model_dump_json(indent=2), encoding="utf-8")
    logger.info(f"Exported {document.statistics.total_books} book(s) and "
                f"{document.statistics.total_loans} loan(s) to {path}")
    return 0


def import_library(transfer: LibraryTransferService, path: str) -> int:
    try:
        document = api.LibraryExport.model_validate_json(Path(path).read_text(encoding="utf-8"))
        result = transfer.import_library(api_export_to_snapshot(document))
    except (SchemaError, LibraryError) as e:
        logger.error(f"Cannot import {path}: {e}")
        return 1

    for error in result.errors:
        logger.error(error)
    logger.info(
        f"Imported {result.total_imported} record(s) {result.imported}; "
        f"skipped {result.items_skipped}; {len(result.errors)} error(s)"
    )
    return 0 if result.success else 1


def main(command: str, path: str, db_path: str = DEFAULT_DB_PATH) -> int:
    """
    Main entry point for the transfer script.

    Returns:
        Process exit code: 0 on success, 1 if the import reported errors
    """
    transfer = build_transfer_service(db_path)
    if command == "export":
        return export_library(transfer, path)
    return import_library(transfer, path)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export or import the whole library as JSON")
    parser.add_argument(
        "command",
        choices=["export", "import"],
        help="Direction of the transfer"
    )
    parser.add_argument(
        "path",
        type=str,
        help="JSON file to write or read"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=DEFAULT_DB_PATH,
        help=f"Path to SQLite database (default: {DEFAULT_DB_PATH})"
    )

    args = parser.parse_args()
    sys.exit(main(args.command, args.path, args.db_path))
