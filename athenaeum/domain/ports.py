"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
The domain services depend only on these protocols; SQLite repositories and
the Open Library client are adapters that implement them.
"""

from datetime import date
from typing import List, Optional, Protocol
from uuid import UUID

from .entities import Author, Book, Borrower, Collection, Genre, Loan, Renewal, Tag
from .value_objects import ExternalBookRecord


class BookCatalogRepository(Protocol):
    """
    Port for persisting and retrieving books.

    Implementations must enforce that a non-null catalog_key is unique
    across books.
    """

    def save(self, book: Book) -> None:
        """
        Insert or update a book (upsert by id).

        Author, genre and tag links are replaced by the book's id lists.

        Raises:
            ConflictError: If another book already uses the same catalog_key, or
                a linked author, genre or tag does not exist
            RuntimeError: If a storage error occurs
        """
        ...

    def get_by_id(self, book_id: UUID) -> Optional[Book]:
        ...

    def get_by_catalog_key(self, catalog_key: str) -> Optional[Book]:
        ...

    def find_by_isbn(self, isbn10: Optional[str], isbn13: Optional[str]) -> List[Book]:
        """Books matching either normalised ISBN."""
        ...

    def list_by_author(self, author_id: UUID) -> List[Book]:
        ...

    def list_by_genre(self, genre_id: UUID) -> List[Book]:
        """Books classified under a genre, ordered by title."""
        ...

    def list_by_tag(self, tag_id: UUID) -> List[Book]:
        """Books carrying a tag, ordered by title."""
        ...

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[Book]:
        """Books ordered by title."""
        ...

    def count(self) -> int:
        ...

    def delete(self, book_id: UUID) -> bool:
        """
        Delete a book together with its author links, collection memberships
        and classification links, in one transaction.

        Returns:
            True if deleted, False if not found

        Raises:
            ConflictError: If loans still reference the book
        """
        ...


class AuthorRepository(Protocol):
    """Port for persisting authors. A non-null catalog_key is unique."""

    def save(self, author: Author) -> None:
        ...

    def get_by_id(self, author_id: UUID) -> Optional[Author]:
        ...

    def get_by_catalog_key(self, catalog_key: str) -> Optional[Author]:
        ...

    def get_many(self, author_ids: List[UUID]) -> List[Author]:
        """Authors for the given ids, in the given order; unknown ids are skipped."""
        ...

    def get_all(self) -> List[Author]:
        ...


class CollectionRepository(Protocol):
    """Port for persisting collections together with their membership."""

    def save(self, collection: Collection) -> None:
        ...

    def get_by_id(self, collection_id: UUID) -> Optional[Collection]:
        ...

    def get_all(self) -> List[Collection]:
        ...

    def delete(self, collection_id: UUID) -> bool:
        ...


class GenreRepository(Protocol):
    """Port for persisting genres. Names are unique, ignoring case."""

    def save(self, genre: Genre) -> None:
        """
        Raises:
            ConflictError: If another genre already has the same name
        """
        ...

    def get_by_id(self, genre_id: UUID) -> Optional[Genre]:
        ...

    def get_by_name(self, name: str) -> Optional[Genre]:
        """Case-insensitive lookup."""
        ...

    def get_all(self) -> List[Genre]:
        """Genres ordered by name."""
        ...

    def delete(self, genre_id: UUID) -> bool:
        """Delete a genre and unlink it from every book."""
        ...


class TagRepository(Protocol):
    """Port for persisting tags. Names are unique, ignoring case."""

    def save(self, tag: Tag) -> None:
        """
        Raises:
            ConflictError: If another tag already has the same name
        """
        ...

    def get_by_id(self, tag_id: UUID) -> Optional[Tag]:
        ...

    def get_by_name(self, name: str) -> Optional[Tag]:
        """Case-insensitive lookup."""
        ...

    def get_all(self) -> List[Tag]:
        """Tags ordered by name."""
        ...

    def delete(self, tag_id: UUID) -> bool:
        """Delete a tag and unlink it from every book."""
        ...


class BorrowerRepository(Protocol):
    """Port for persisting borrowers."""

    def save(self, borrower: Borrower) -> None:
        ...

    def get_by_id(self, borrower_id: UUID) -> Optional[Borrower]:
        ...

    def get_all(self, active_only: bool = False) -> List[Borrower]:
        ...


class LoanRepository(Protocol):
    """
    Port for the loan ledger's storage.

    The repository is the source of truth for which loans are outstanding.
    """

    def add_outstanding(self, loan: Loan) -> None:
        """
        Atomically check that the loan's book has no outstanding loan and insert it.

        The check and the insert must happen in one transaction (or under
        equivalent mutual exclusion) so two concurrent checkouts of the same
        book cannot both succeed.

        Raises:
            ConflictError: If the book already has an outstanding loan
        """
        ...

    def add_renewal(self, renewal: Renewal, new_due_date: date, max_renewals: int) -> None:
        """
        Append a renewal and move the loan's due date in one transaction.

        The limit and the due date are checked against the stored loan inside
        that transaction, so two callers holding copies of the same loan
        cannot both renew past the limit.

        Raises:
            NotFoundError: If the loan does not exist
            PolicyError: If the loan is closed or already has max_renewals renewals
            StateError: If the stored due date is not renewal.previous_due_date
        """
        ...

    def mark_returned(self, loan_id: UUID, return_date: date) -> None:
        ...

    def get_by_id(self, loan_id: UUID) -> Optional[Loan]:
        ...

    def get_outstanding_for_book(self, book_id: UUID) -> Optional[Loan]:
        ...

    def list_for_book(self, book_id: UUID) -> List[Loan]:
        """Loans for a book, newest checkout first."""
        ...

    def list_for_borrower(self, borrower_id: UUID) -> List[Loan]:
        """Loans for a borrower, newest checkout first."""
        ...

    def list_outstanding(self) -> List[Loan]:
        """Outstanding loans, earliest due date first."""
        ...

    def list_all(self) -> List[Loan]:
        """Every loan with its renewals, oldest checkout first."""
        ...

    def restore(self, loan: Loan) -> None:
        """
        Insert a loan exactly as given, renewals and return date included.

        Used when loading an exported library; the loan and its renewals are
        written in one transaction.

        Raises:
            ConflictError: If the id is taken, the book or borrower is unknown,
                or an outstanding loan would make two for one book
        """
        ...


class ExternalCatalogProvider(Protocol):
    """
    Port for an external bibliographic catalog (e.g. Open Library).

    Implementations translate the external data format into
    ExternalBookRecord value objects.
    """

    def lookup_isbn(self, isbn: str) -> Optional[ExternalBookRecord]:
        """
        Fetch book metadata by ISBN.

        Returns:
            The record if the catalog knows the ISBN, None otherwise

        Raises:
            ValueError: If the ISBN is malformed
            ExternalCatalogError: If the catalog cannot be reached
        """
        ...

    def get_source_name(self) -> str:
        ...
