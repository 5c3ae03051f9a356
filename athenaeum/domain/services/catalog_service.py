"""
Catalog use cases: authors, books and collections.

The service owns the cross-record rules the repositories cannot see on
their own: a book may only reference authors that exist, catalog keys are
unique, a book that has been lent cannot be deleted, and books imported from an
external catalog reuse authors already on file.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from ..entities import Author, Book, Collection
from ..errors import ConflictError, NotFoundError, ValidationError
from ..ports import (
    AuthorRepository,
    BookCatalogRepository,
    CollectionRepository,
    ExternalCatalogProvider,
    LoanRepository,
)
from ..utils.isbn import both_isbn_formats, clean_isbn, format_isbn, is_valid_isbn, is_valid_isbn_format
from ..value_objects import ExternalAuthorRecord, ExternalBookRecord

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Catalog query and maintenance interface.

    Lookups by id or key come in two flavours: get_* raises NotFoundError,
    find_* returns None.
    """

    def __init__(
        self,
        books: BookCatalogRepository,
        authors: AuthorRepository,
        collections: CollectionRepository,
        loans: LoanRepository,
        external_catalog: Optional[ExternalCatalogProvider] = None,
    ) -> None:
        self._books = books
        self._authors = authors
        self._collections = collections
        self._loans = loans
        self._external_catalog = external_catalog

    # =========================================================================
    # Authors
    # =========================================================================

    def add_author(self, name: str, **kwargs) -> Author:
        """
        Raises:
            ValidationError: If the author data is invalid
            ConflictError: If the catalog key is already used by another author
        """
        author = Author.create_new(name=name, **kwargs)
        if author.catalog_key is not None and self._authors.get_by_catalog_key(author.catalog_key):
            raise ConflictError(f"An author with catalog key '{author.catalog_key}' already exists")

        self._authors.save(author)
        logger.info("Author %s added: %s", author.id, author.name)
        return author

    def get_author(self, author_id: UUID) -> Author:
        author = self._authors.get_by_id(author_id)
        if author is None:
            raise NotFoundError(f"Author with id '{author_id}' not found")
        return author

    def find_author_by_key(self, catalog_key: str) -> Optional[Author]:
        return self._authors.get_by_catalog_key(catalog_key)

    def get_author_by_key(self, catalog_key: str) -> Author:
        author = self.find_author_by_key(catalog_key)
        if author is None:
            raise NotFoundError(f"Author with catalog key '{catalog_key}' not found")
        return author

    def list_authors(self) -> List[Author]:
        return self._authors.get_all()

    def books_by_author(self, author_id: UUID) -> List[Book]:
        self.get_author(author_id)
        return self._books.list_by_author(author_id)

    def authors_of(self, book: Book) -> List[Author]:
        return self._authors.get_many(book.author_ids)

    # =========================================================================
    # Books
    # =========================================================================

    def add_book(self, title: str, author_ids: Optional[List[UUID]] = None, **kwargs) -> Book:
        """
        Add a book to the catalog.

        Raises:
            ValidationError: If the book data is invalid
            NotFoundError: If an author id is unknown
            ConflictError: If the catalog key is already used by another book
        """
        book = Book.create_new(title=title, author_ids=author_ids, **kwargs)
        self._check_book_references(book)
        self._books.save(book)
        logger.info("Book %s added: %s", book.id, book.title)
        return book

    def update_book(self, book: Book) -> Book:
        """
        Store changes to an existing book.

        Raises:
            NotFoundError: If the book or one of its authors does not exist
            ConflictError: If the catalog key is already used by another book
        """
        self.get_book(book.id)
        self._check_book_references(book)
        self._books.save(book)
        logger.info("Book %s updated", book.id)
        return book

    def find_book(self, book_id: UUID) -> Optional[Book]:
        return self._books.get_by_id(book_id)

    def get_book(self, book_id: UUID) -> Book:
        book = self.find_book(book_id)
        if book is None:
            raise NotFoundError(f"Book with id '{book_id}' not found")
        return book

    def find_book_by_key(self, catalog_key: str) -> Optional[Book]:
        return self._books.get_by_catalog_key(catalog_key)

    def get_book_by_key(self, catalog_key: str) -> Book:
        book = self.find_book_by_key(catalog_key)
        if book is None:
            raise NotFoundError(f"Book with catalog key '{catalog_key}' not found")
        return book

    def find_by_isbn(self, isbn: str) -> List[Book]:
        """Books matching an ISBN given in either format; the other format is derived."""
        isbn10, isbn13 = both_isbn_formats(isbn)
        if isbn10 is None and isbn13 is None:
            return []
        return self._books.find_by_isbn(isbn10, isbn13)

    def list_books(self, limit: Optional[int] = None, offset: int = 0) -> List[Book]:
        return self._books.get_all(limit=limit, offset=offset)

    def count_books(self) -> int:
        return self._books.count()

    def delete_book(self, book_id: UUID) -> None:
        """
        Delete a book that has never been lent.

        Collection memberships go with the book in the same storage
        transaction; nothing is touched when the delete is refused.

        Raises:
            NotFoundError: If the book does not exist
            ConflictError: If the book is on loan or has loan history
        """
        book = self.get_book(book_id)
        if self._loans.get_outstanding_for_book(book_id) is not None:
            raise ConflictError(f"'{book.title}' is on loan and cannot be deleted")
        if self._loans.list_for_book(book_id):
            raise ConflictError(f"'{book.title}' has loan history and cannot be deleted")

        self._books.delete(book_id)
        logger.info("Book %s deleted", book_id)

    def _check_book_references(self, book: Book) -> None:
        known = {author.id for author in self._authors.get_many(book.author_ids)}
        missing = [author_id for author_id in book.author_ids if author_id not in known]
        if missing:
            raise NotFoundError(f"Author with id '{missing[0]}' not found")

        if book.catalog_key is not None:
            existing = self._books.get_by_catalog_key(book.catalog_key)
            if existing is not None and existing.id != book.id:
                raise ConflictError(f"A book with catalog key '{book.catalog_key}' already exists")

    # =========================================================================
    # Collections
    # =========================================================================

    def create_collection(self, name: str, **kwargs) -> Collection:
        collection = Collection.create_new(name=name, **kwargs)
        for book_id in collection.book_ids:
            self.get_book(book_id)
        self._collections.save(collection)
        logger.info("Collection %s created: %s", collection.id, collection.name)
        return collection

    def get_collection(self, collection_id: UUID) -> Collection:
        collection = self._collections.get_by_id(collection_id)
        if collection is None:
            raise NotFoundError(f"Collection with id '{collection_id}' not found")
        return collection

    def list_collections(self) -> List[Collection]:
        return self._collections.get_all()

    def add_to_collection(self, collection_id: UUID, book_id: UUID) -> Collection:
        collection = self.get_collection(collection_id)
        self.get_book(book_id)
        if collection.add_book(book_id):
            self._collections.save(collection)
        return collection

    def remove_from_collection(self, collection_id: UUID, book_id: UUID) -> Collection:
        collection = self.get_collection(collection_id)
        if collection.remove_book(book_id):
            self._collections.save(collection)
        return collection

    def books_in_collection(self, collection_id: UUID) -> List[Book]:
        collection = self.get_collection(collection_id)
        books = [self._books.get_by_id(book_id) for book_id in collection.book_ids]
        return [book for book in books if book is not None]

    def delete_collection(self, collection_id: UUID) -> None:
        if not self._collections.delete(collection_id):
            raise NotFoundError(f"Collection with id '{collection_id}' not found")
        logger.info("Collection %s deleted", collection_id)

    # =========================================================================
    # External catalog import
    # =========================================================================

    def import_from_external(self, isbn: str) -> Tuple[Book, bool]:
        """
        Add a book by ISBN using the external catalog.

        A book already on file (same ISBN or same catalog key) is returned
        unchanged. Authors are matched by catalog key and created if missing.
        The book is built and validated before anything is stored, so a
        record the catalogue cannot accept leaves no new authors behind.

        Returns:
            (book, created): created is False when the book was already on file

        Raises:
            ValidationError: If the ISBN is malformed or the record is invalid
            NotFoundError: If the external catalog does not know the ISBN
            ExternalCatalogError: If the external catalog cannot be reached
        """
        if self._external_catalog is None:
            raise RuntimeError("No external catalog is configured")

        cleaned = clean_isbn(isbn)
        if not is_valid_isbn_format(cleaned):
            raise ValidationError(f"'{isbn}' is not a valid ISBN", field="isbn")
        if not is_valid_isbn(cleaned, validate_checksum=True):
            raise ValidationError(f"'{isbn}' has an invalid ISBN check digit", field="isbn")

        existing = self.find_by_isbn(cleaned)
        if existing:
            logger.info("ISBN %s already catalogued as book %s", format_isbn(cleaned), existing[0].id)
            return existing[0], False

        source = self._external_catalog.get_source_name()
        record = self._external_catalog.lookup_isbn(cleaned)
        if record is None:
            raise NotFoundError(f"ISBN {format_isbn(cleaned)} not found in {source}")

        existing_book = self._books.get_by_catalog_key(record.catalog_key)
        if existing_book is not None:
            return existing_book, False

        authors = []
        for author_record in record.authors:
            author = self._resolve_author(author_record, pending=authors)
            if author not in authors:
                authors.append(author)

        book = self._book_from_record(record, [author.id for author in authors], cleaned)

        for author in authors:
            if self._authors.get_by_id(author.id) is None:
                self._authors.save(author)
                logger.info("Author %s created from %s: %s", author.id, source, author.name)
        self._books.save(book)
        logger.info("Imported book %s from %s: %s", book.id, source, book.title)
        return book, True

    def _resolve_author(self, record: ExternalAuthorRecord, pending: List[Author]) -> Author:
        """Match an author on file or already pending by catalog key, else build a new one (unsaved)."""
        if record.catalog_key:
            author = self._authors.get_by_catalog_key(record.catalog_key)
            if author is not None:
                return author
            for author in pending:
                if author.catalog_key == record.catalog_key:
                    return author

        return Author.create_new(
            name=record.name,
            catalog_key=record.catalog_key,
            bio=record.bio,
            birth_date=record.birth_date,
            photo_url=record.photo_url,
        )

    def _book_from_record(self, record: ExternalBookRecord, author_ids: List[UUID], isbn: str) -> Book:
        isbn10, isbn13 = record.isbn10, record.isbn13
        if isbn10 is None and isbn13 is None:
            isbn10, isbn13 = both_isbn_formats(isbn)

        return Book.create_new(
            title=record.title,
            author_ids=author_ids,
            subtitle=record.subtitle,
            description=record.description,
            publisher=record.publisher,
            publish_date=record.publish_date,
            isbn10=isbn10,
            isbn13=isbn13,
            catalog_key=record.catalog_key,
            cover_image_url=record.cover_image_url,
        )
