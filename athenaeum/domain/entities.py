"""
Domain entities for the library catalogue and lending ledger.

Entities carry a UUID identity that stays stable across persistence round
trips. Relations between them are held as identifiers with a single source
of truth for each association:

- Book.author_ids is the only record of authorship; an author's books are
  a derived lookup.
- Collection.book_ids is the only record of collection membership.
- Book.genre_ids / Book.tag_ids are the only record of classification;
  the books in a genre or with a tag are a derived lookup.
- Loan.book_id / Loan.borrower_id link a loan to its book and borrower; a
  borrower's loan history is a lookup against the loan ledger.

Every entity validates itself on construction, so an incomplete record can
never be observed.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from typing import List, Optional, Tuple
from uuid import UUID

from .errors import StateError, ValidationError
from .utils.isbn import clean_isbn
from .utils.uuid7 import uuid7
from .validation import (
    COLLECTION_NAME_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    LABEL_NAME_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PUBLISHER_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    check_catalog_key,
    check_email,
    check_isbn10,
    check_isbn13,
    check_max_length,
    check_phone,
    check_required,
    raise_first,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _add_unique(ids: List[UUID], item: UUID) -> bool:
    if item in ids:
        return False
    ids.append(item)
    return True


def _remove_present(ids: List[UUID], item: UUID) -> bool:
    if item not in ids:
        return False
    ids.remove(item)
    return True


class Entity:
    """Identity semantics shared by all entities: equal iff same type and id."""

    id: UUID

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))


@dataclass(eq=False)
class Author(Entity):
    """A person credited on one or more books."""

    id: UUID
    name: str
    catalog_key: Optional[str] = None
    """External catalog key (e.g. Open Library 'OL23919A'); unique when present"""

    bio: Optional[str] = None
    birth_date: Optional[date] = None
    photo_url: Optional[str] = None

    def __post_init__(self) -> None:
        raise_first([
            check_required("name", self.name, NAME_MAX_LENGTH),
            check_catalog_key("catalog_key", self.catalog_key),
        ])

    @staticmethod
    def create_new(name: str, **kwargs) -> "Author":
        return Author(id=uuid7(), name=name, **kwargs)


@dataclass(eq=False)
class Book(Entity):
    """
    A title in the catalogue.

    The number of physical copies owned is not a property of the book; it is
    supplied by the inventory layer when availability is computed.
    """

    id: UUID
    """Unique identifier for this book in our system"""

    title: str
    """Book title (required)"""

    author_ids: List[UUID] = field(default_factory=list)
    """Ordered author identifiers, no duplicates"""

    genre_ids: List[UUID] = field(default_factory=list)
    tag_ids: List[UUID] = field(default_factory=list)

    subtitle: Optional[str] = None
    description: Optional[str] = None
    publisher: Optional[str] = None

    publish_date: Optional[date] = None
    """Publication date; year-only sources are stored as January 1st"""

    isbn10: Optional[str] = None
    isbn13: Optional[str] = None

    catalog_key: Optional[str] = None
    """External catalog key (e.g. Open Library '/books/OL7353617M'); unique when present"""

    cover_image_url: Optional[str] = None
    """Opaque reference to a cover image; never dereferenced by the domain"""

    notes: Optional[str] = None

    date_added: datetime = field(default_factory=_utcnow)
    """When this book was added to the catalogue"""

    def __post_init__(self) -> None:
        """Validate and normalise book data."""
        raise_first([
            check_required("title", self.title, TITLE_MAX_LENGTH),
            check_max_length("subtitle", self.subtitle, TITLE_MAX_LENGTH),
            check_max_length("publisher", self.publisher, PUBLISHER_MAX_LENGTH),
            check_isbn10("isbn10", self.isbn10),
            check_isbn13("isbn13", self.isbn13),
            check_catalog_key("catalog_key", self.catalog_key),
        ])

        if len(set(self.author_ids)) != len(self.author_ids):
            raise ValidationError("author_ids cannot contain duplicates", field="author_ids")
        self.genre_ids = list(dict.fromkeys(self.genre_ids))
        self.tag_ids = list(dict.fromkeys(self.tag_ids))

        if self.isbn10 is not None:
            self.isbn10 = clean_isbn(self.isbn10)
        if self.isbn13 is not None:
            self.isbn13 = clean_isbn(self.isbn13)

    def get_published_year(self) -> Optional[int]:
        if self.publish_date:
            return self.publish_date.year
        return None

    def has_isbn(self, isbn: str) -> bool:
        """Check whether the given ISBN (either format, any punctuation) identifies this book."""
        cleaned = clean_isbn(isbn)
        return bool(cleaned) and cleaned in (self.isbn10, self.isbn13)

    def display_title(self) -> str:
        if self.subtitle:
            return f"{self.title}: {self.subtitle}"
        return self.title

    def add_genre(self, genre_id: UUID) -> bool:
        return _add_unique(self.genre_ids, genre_id)

    def remove_genre(self, genre_id: UUID) -> bool:
        return _remove_present(self.genre_ids, genre_id)

    def add_tag(self, tag_id: UUID) -> bool:
        return _add_unique(self.tag_ids, tag_id)

    def remove_tag(self, tag_id: UUID) -> bool:
        return _remove_present(self.tag_ids, tag_id)

    @staticmethod
    def create_new(title: str, author_ids: Optional[List[UUID]] = None, **kwargs) -> "Book":
        """
        Factory method to create a new book with a generated id.

        Args:
            title: Book title
            author_ids: Identifiers of the book's authors, in credit order
            **kwargs: Additional book attributes

        Returns:
            A new Book instance with a UUIDv7 id
        """
        return Book(id=uuid7(), title=title, author_ids=list(author_ids or []), **kwargs)


@dataclass(eq=False)
class Collection(Entity):
    """A named, user-defined grouping of books."""

    id: UUID
    name: str
    description: Optional[str] = None
    notes: Optional[str] = None
    book_ids: List[UUID] = field(default_factory=list)

    def __post_init__(self) -> None:
        raise_first([
            check_required("name", self.name, COLLECTION_NAME_MAX_LENGTH),
            check_max_length("description", self.description, DESCRIPTION_MAX_LENGTH),
        ])
        # Set semantics, first occurrence wins.
        self.book_ids = list(dict.fromkeys(self.book_ids))

    def add_book(self, book_id: UUID) -> bool:
        """Add a book; returns False if it was already a member."""
        if book_id in self.book_ids:
            return False
        self.book_ids.append(book_id)
        return True

    def remove_book(self, book_id: UUID) -> bool:
        """Remove a book; returns False if it was not a member."""
        if book_id not in self.book_ids:
            return False
        self.book_ids.remove(book_id)
        return True

    def contains(self, book_id: UUID) -> bool:
        return book_id in self.book_ids

    @staticmethod
    def create_new(name: str, **kwargs) -> "Collection":
        return Collection(id=uuid7(), name=name, **kwargs)


@dataclass(eq=False)
class Label(Entity):
    """
    A short name used to classify books.

    Names are unique among labels of the same kind, ignoring case; the
    repositories enforce it.
    """

    id: UUID
    name: str

    def __post_init__(self) -> None:
        raise_first([check_required("name", self.name, LABEL_NAME_MAX_LENGTH)])
        self.name = self.name.strip()

    @classmethod
    def create_new(cls, name: str):
        return cls(id=uuid7(), name=name)


class Genre(Label):
    """A broad category such as 'Science Fiction'. A book may have several."""


class Tag(Label):
    """A free-form keyword such as 'signed' or 'to-read'."""


@dataclass(eq=False)
class Borrower(Entity):
    """A person who borrows books. Loans are looked up through the ledger."""

    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True
    date_added: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        raise_first([
            check_required("name", self.name, NAME_MAX_LENGTH),
            check_email("email", self.email),
            check_phone("phone", self.phone),
        ])

    @staticmethod
    def create_new(name: str, **kwargs) -> "Borrower":
        return Borrower(id=uuid7(), name=name, **kwargs)


@dataclass(frozen=True, eq=False)
class Renewal(Entity):
    """
    An append-only record of a loan's due date being extended.

    Renewals belong to exactly one loan and are never edited after creation.
    """

    id: UUID
    loan_id: UUID
    renewed_on: date
    """Date the renewal was granted"""

    previous_due_date: date
    new_due_date: date
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.new_due_date <= self.previous_due_date:
            raise ValidationError(
                f"new_due_date ({self.new_due_date}) must be after "
                f"previous_due_date ({self.previous_due_date})",
                field="new_due_date",
            )


@dataclass(eq=False)
class Loan(Entity):
    """
    One book lent to one borrower.

    A loan is outstanding while return_date is None. Its renewals are an
    ordered, append-only tuple; due_date always reflects the latest renewal.
    """

    id: UUID
    book_id: UUID
    borrower_id: UUID
    checkout_date: date
    due_date: date
    return_date: Optional[date] = None
    notes: Optional[str] = None
    renewals: Tuple[Renewal, ...] = ()

    def __post_init__(self) -> None:
        """Validate loan invariants."""
        if self.book_id is None:
            raise ValidationError("book_id is required", field="book_id")
        if self.borrower_id is None:
            raise ValidationError("borrower_id is required", field="borrower_id")

        if self.due_date < self.checkout_date:
            raise ValidationError(
                f"due_date ({self.due_date}) cannot be before checkout_date ({self.checkout_date})",
                field="due_date",
            )

        if self.return_date is not None and self.return_date < self.checkout_date:
            raise ValidationError(
                f"return_date ({self.return_date}) cannot be before checkout_date ({self.checkout_date})",
                field="return_date",
            )

        self.renewals = tuple(self.renewals)
        for renewal in self.renewals:
            if renewal.loan_id != self.id:
                raise ValidationError(
                    f"Renewal {renewal.id} belongs to loan {renewal.loan_id}, not {self.id}",
                    field="renewals",
                )

        if self.renewals and self.renewals[-1].new_due_date != self.due_date:
            raise ValidationError(
                "due_date must match the latest renewal's new_due_date",
                field="due_date",
            )

    @property
    def is_outstanding(self) -> bool:
        return self.return_date is None

    @property
    def is_returned(self) -> bool:
        return self.return_date is not None

    @property
    def renewal_count(self) -> int:
        return len(self.renewals)

    @property
    def original_due_date(self) -> date:
        """Due date set at checkout, before any renewal."""
        if self.renewals:
            return self.renewals[0].previous_due_date
        return self.due_date

    def renewals_remaining(self, max_renewals: int) -> int:
        return max(0, max_renewals - self.renewal_count)

    def is_overdue(self, as_of: date) -> bool:
        return self.is_outstanding and as_of > self.due_date

    def days_overdue(self, as_of: date) -> int:
        if not self.is_overdue(as_of):
            return 0
        return (as_of - self.due_date).days

    def record_renewal(self, renewal: Renewal) -> None:
        """
        Append a renewal and move the due date.

        Raises:
            StateError: If the loan is closed or the renewal belongs elsewhere
        """
        if self.is_returned:
            raise StateError(f"Loan {self.id} is closed and cannot be renewed")
        if renewal.loan_id != self.id:
            raise StateError(f"Renewal {renewal.id} does not belong to loan {self.id}")
        if renewal.previous_due_date != self.due_date:
            raise StateError(
                f"Renewal starts from {renewal.previous_due_date} but loan is due {self.due_date}"
            )

        self.renewals = self.renewals + (renewal,)
        self.due_date = renewal.new_due_date

    def mark_returned(self, return_date: date) -> None:
        """
        Close the loan.

        Raises:
            StateError: If already returned or if return_date precedes checkout
        """
        if self.is_returned:
            raise StateError(f"Loan {self.id} was already returned on {self.return_date}")
        if return_date < self.checkout_date:
            raise StateError(
                f"Return date {return_date} is before checkout date {self.checkout_date}"
            )
        self.return_date = return_date

    @staticmethod
    def create_new(
        book_id: UUID,
        borrower_id: UUID,
        checkout_date: date,
        due_date: date,
        notes: Optional[str] = None,
    ) -> "Loan":
        return Loan(
            id=uuid7(),
            book_id=book_id,
            borrower_id=borrower_id,
            checkout_date=checkout_date,
            due_date=due_date,
            notes=notes,
        )
