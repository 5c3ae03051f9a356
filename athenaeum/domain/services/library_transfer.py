"""
Library export and import.

An export is a LibrarySnapshot of every record. An import merges a snapshot
into the current library:

- records are loaded in dependency order (authors, genres, tags, books,
  collections, borrowers, loans);
- a record that is already present is skipped and its exported id is mapped
  to the id on file, so later records still link to it;
- links to records that were neither imported nor matched are dropped;
- a record that fails validation or a storage constraint is reported in
  ImportResult.errors and the import carries on with the next one.

Matching rules: authors by id, catalog key or name; genres, tags,
collections and borrowers by id or name (ignoring case); books by id, ISBN
or catalog key; loans by id or by (book, borrower, checkout date).
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, UTC
import logging
from typing import Callable, Dict, Iterable, List, Optional, TypeVar
from uuid import UUID

from ..entities import Author, Book, Borrower, Collection, Entity, Genre, Loan, Tag
from ..errors import LibraryError, ValidationError
from ..ports import (
    AuthorRepository,
    BookCatalogRepository,
    BorrowerRepository,
    CollectionRepository,
    GenreRepository,
    LoanRepository,
    TagRepository,
)
from ..utils.isbn import both_isbn_formats
from ..value_objects import EXPORT_FORMAT_VERSION, LibrarySnapshot

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


@dataclass
class ImportResult:
    """What an import did. The import succeeded when no record failed."""

    imported: Dict[str, int] = field(default_factory=dict)
    items_skipped: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def total_imported(self) -> int:
        return sum(self.imported.values())


class LibraryTransferService:
    """
    Export the library to a snapshot and merge a snapshot back in.

    Usage:
        transfer = LibraryTransferService(books, authors, genres, tags, collections, borrowers, loans)
        snapshot = transfer.export_library()
        result = other_transfer.import_library(snapshot)
    """

    def __init__(
        self,
        books: BookCatalogRepository,
        authors: AuthorRepository,
        genres: GenreRepository,
        tags: TagRepository,
        collections: CollectionRepository,
        borrowers: BorrowerRepository,
        loans: LoanRepository,
    ) -> None:
        self._books = books
        self._authors = authors
        self._genres = genres
        self._tags = tags
        self._collections = collections
        self._borrowers = borrowers
        self._loans = loans

    def export_library(self) -> LibrarySnapshot:
        snapshot = LibrarySnapshot(
            exported_at=datetime.now(UTC),
            authors=self._authors.get_all(),
            genres=self._genres.get_all(),
            tags=self._tags.get_all(),
            books=self._books.get_all(),
            collections=self._collections.get_all(),
            borrowers=self._borrowers.get_all(),
            loans=self._loans.list_all(),
        )
        logger.info("Library exported: %s", snapshot.statistics)
        return snapshot

    def import_library(self, snapshot: LibrarySnapshot) -> ImportResult:
        """
        Merge a snapshot into the library.

        Raises:
            ValidationError: If the snapshot's format version is not supported
        """
        if snapshot.format_version != EXPORT_FORMAT_VERSION:
            raise ValidationError(
                f"Unsupported export format version '{snapshot.format_version}', "
                f"expected '{EXPORT_FORMAT_VERSION}'",
                field="format_version",
            )

        result = ImportResult()
        author_ids: Dict[UUID, UUID] = {}
        genre_ids: Dict[UUID, UUID] = {}
        tag_ids: Dict[UUID, UUID] = {}
        book_ids: Dict[UUID, UUID] = {}
        borrower_ids: Dict[UUID, UUID] = {}

        authors_by_name = _by_name(self._authors.get_all())
        self._import_all(result, "authors", snapshot.authors, author_ids, lambda a: (
            self._authors.get_by_id(a.id)
            or (a.catalog_key and self._authors.get_by_catalog_key(a.catalog_key))
            or authors_by_name.get(a.name.casefold())
        ), lambda a: self._save(self._authors, replace(a), authors_by_name))

        self._import_all(result, "genres", snapshot.genres, genre_ids, lambda g: (
            self._genres.get_by_id(g.id) or self._genres.get_by_name(g.name)
        ), lambda g: self._save(self._genres, replace(g)))

        self._import_all(result, "tags", snapshot.tags, tag_ids, lambda t: (
            self._tags.get_by_id(t.id) or self._tags.get_by_name(t.name)
        ), lambda t: self._save(self._tags, replace(t)))

        self._import_all(result, "books", snapshot.books, book_ids, self._find_book, lambda b: self._save(
            self._books,
            replace(
                b,
                author_ids=_remap(b.author_ids, author_ids),
                genre_ids=_remap(b.genre_ids, genre_ids),
                tag_ids=_remap(b.tag_ids, tag_ids),
            ),
        ))

        collections_by_name = _by_name(self._collections.get_all())
        self._import_all(result, "collections", snapshot.collections, {}, lambda c: (
            self._collections.get_by_id(c.id) or collections_by_name.get(c.name.casefold())
        ), lambda c: self._save(
            self._collections, replace(c, book_ids=_remap(c.book_ids, book_ids)), collections_by_name
        ))

        borrowers_by_name = _by_name(self._borrowers.get_all())
        self._import_all(result, "borrowers", snapshot.borrowers, borrower_ids, lambda b: (
            self._borrowers.get_by_id(b.id) or borrowers_by_name.get(b.name.casefold())
        ), lambda b: self._save(self._borrowers, replace(b), borrowers_by_name))

        self._import_all(
            result, "loans", snapshot.loans, {},
            lambda loan: self._find_loan(loan, book_ids, borrower_ids),
            lambda loan: self._restore_loan(loan, book_ids, borrower_ids),
        )

        logger.info(
            "Library import finished: %d imported, %d skipped, %d errors",
            result.total_imported, result.items_skipped, len(result.errors),
        )
        return result

    # =========================================================================
    # Helpers
    # =========================================================================

    def _import_all(
        self,
        result: ImportResult,
        kind: str,
        records: Iterable[E],
        id_map: Dict[UUID, UUID],
        find_existing: Callable[[E], Optional[E]],
        save: Callable[[E], E],
    ) -> None:
        result.imported.setdefault(kind, 0)
        for record in records:
            try:
                existing = find_existing(record)
                if existing:
                    id_map[record.id] = existing.id
                    result.items_skipped += 1
                    continue
                saved = save(record)
            except LibraryError as e:
                logger.warning("Import of %s %s failed: %s", kind, record.id, e)
                result.errors.append(f"{kind} {record.id}: {e}")
                continue
            id_map[record.id] = saved.id
            result.imported[kind] += 1

    @staticmethod
    def _save(repo, record: E, by_name: Optional[Dict[str, E]] = None) -> E:
        repo.save(record)
        if by_name is not None:
            by_name[record.name.casefold()] = record
        return record

    def _find_book(self, book: Book) -> Optional[Book]:
        found = self._books.get_by_id(book.id)
        if found is None and (book.isbn10 or book.isbn13):
            derived10, derived13 = both_isbn_formats(book.isbn13 or book.isbn10)
            matches = self._books.find_by_isbn(book.isbn10 or derived10, book.isbn13 or derived13)
            found = matches[0] if matches else None
        if found is None and book.catalog_key:
            found = self._books.get_by_catalog_key(book.catalog_key)
        return found

    def _find_loan(self, loan: Loan, book_ids: Dict[UUID, UUID], borrower_ids: Dict[UUID, UUID]) -> Optional[Loan]:
        found = self._loans.get_by_id(loan.id)
        if found is not None or loan.book_id not in book_ids:
            return found
        borrower_id = borrower_ids.get(loan.borrower_id)
        for candidate in self._loans.list_for_book(book_ids[loan.book_id]):
            if candidate.borrower_id == borrower_id and candidate.checkout_date == loan.checkout_date:
                return candidate
        return None

    def _restore_loan(self, loan: Loan, book_ids: Dict[UUID, UUID], borrower_ids: Dict[UUID, UUID]) -> Loan:
        if loan.book_id not in book_ids:
            raise ValidationError(f"Book {loan.book_id} is not in the library", field="book_id")
        if loan.borrower_id not in borrower_ids:
            raise ValidationError(f"Borrower {loan.borrower_id} is not in the library", field="borrower_id")

        restored = replace(
            loan,
            book_id=book_ids[loan.book_id],
            borrower_id=borrower_ids[loan.borrower_id],
        )
        self._loans.restore(restored)
        return restored


def _by_name(records: Iterable[E]) -> Dict[str, E]:
    return {record.name.casefold(): record for record in records}


def _remap(ids: List[UUID], id_map: Dict[UUID, UUID]) -> List[UUID]:
    return [id_map[old] for old in ids if old in id_map]
