"""
Request and response models for the v1 HTTP API.

These mirror the domain records; the domain still performs its own
validation when the converters build entities from them.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field


# Authors

class AuthorCreate(BaseModel):
    """Request body for POST /authors."""
    name: str = Field(description="Display name", max_length=200)
    catalog_key: str | None = Field(default=None, description="External catalog key, e.g. 'OL23919A'")
    bio: str | None = None
    birth_date: date | None = None
    photo_url: str | None = None


class Author(AuthorCreate):
    """API representation of an Author entity."""
    id: UUID = Field(description="Unique identifier for this author")


# Books

class BookCreate(BaseModel):
    """Request body for POST /books."""
    title: str = Field(description="Book title", max_length=500)
    author_ids: list[UUID] = Field(default_factory=list, description="Author ids in credit order")
    subtitle: str | None = Field(default=None, max_length=500)
    description: str | None = None
    publisher: str | None = Field(default=None, max_length=200)
    publish_date: date | None = None
    isbn10: str | None = Field(default=None, description="ISBN-10, dashes allowed")
    isbn13: str | None = Field(default=None, description="ISBN-13, dashes allowed")
    catalog_key: str | None = Field(default=None, description="External catalog key; unique when present")
    cover_image_url: str | None = None
    notes: str | None = None


class Book(BookCreate):
    """API representation of a Book entity."""
    id: UUID = Field(description="Unique identifier for this book")
    genre_ids: list[UUID] = Field(default_factory=list)
    tag_ids: list[UUID] = Field(default_factory=list)
    date_added: datetime = Field(description="When this book was added to the catalogue")


class BookImportRequest(BaseModel):
    """Request body for POST /books/import."""
    isbn: str = Field(description="ISBN-10 or ISBN-13 to look up in the external catalog")


class BookAvailability(BaseModel):
    """Point-in-time availability of one book."""
    book_id: UUID
    book_exists: bool
    total_copies: int = Field(ge=0)
    on_loan: int = Field(ge=0)
    available: int = Field(ge=0)
    is_available: bool


# Collections

class CollectionCreate(BaseModel):
    """Request body for POST /collections."""
    name: str = Field(description="Collection name", max_length=50)
    description: str | None = Field(default=None, max_length=200)
    notes: str | None = None
    book_ids: list[UUID] = Field(default_factory=list)


class Collection(CollectionCreate):
    id: UUID


# Genres and tags

class GenreCreate(BaseModel):
    """Request body for POST /genres and PATCH /genres/{id}."""
    name: str = Field(description="Genre name, unique ignoring case", max_length=50)


class Genre(GenreCreate):
    id: UUID


class TagCreate(BaseModel):
    """Request body for POST /tags and PATCH /tags/{id}."""
    name: str = Field(description="Tag name, unique ignoring case", max_length=50)


class Tag(TagCreate):
    id: UUID


# Borrowers

class BorrowerCreate(BaseModel):
    """Request body for POST /borrowers."""
    name: str = Field(description="Display name", max_length=200)
    email: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    notes: str | None = None


class Borrower(BorrowerCreate):
    id: UUID
    is_active: bool
    date_added: datetime


class BorrowerSummary(BaseModel):
    borrower_id: UUID
    active_loans: int
    total_loans: int
    overdue_loans: int
    has_overdue_loans: bool
    as_of: date


# Loans

class LoanCreate(BaseModel):
    """Request body for POST /loans."""
    book_id: UUID
    borrower_id: UUID
    checkout_date: date | None = Field(default=None, description="Defaults to today")
    notes: str | None = None


class RenewRequest(BaseModel):
    """Request body for POST /loans/{id}/renew."""
    as_of: date | None = Field(default=None, description="Renewal date, defaults to today")
    notes: str | None = None


class ReturnRequest(BaseModel):
    """Request body for POST /loans/{id}/return."""
    return_date: date | None = Field(default=None, description="Defaults to today")


class Renewal(BaseModel):
    id: UUID
    renewed_on: date
    previous_due_date: date
    new_due_date: date
    notes: str | None = None


class Loan(BaseModel):
    """API representation of a Loan entity."""
    id: UUID
    book_id: UUID
    borrower_id: UUID
    checkout_date: date
    due_date: date
    return_date: date | None = None
    notes: str | None = None
    is_outstanding: bool
    renewal_count: int
    renewals_remaining: int
    days_overdue: int = 0
    renewals: list[Renewal] = Field(default_factory=list)


# Export and import

class LoanExport(BaseModel):
    """A loan as written to an export, renewal log included."""
    id: UUID
    book_id: UUID
    borrower_id: UUID
    checkout_date: date
    due_date: date
    return_date: date | None = None
    notes: str | None = None
    renewals: list[Renewal] = Field(default_factory=list)


class ExportStatistics(BaseModel):
    total_authors: int
    total_genres: int
    total_tags: int
    total_books: int
    total_collections: int
    total_borrowers: int
    total_loans: int
    active_loans: int


class LibraryExport(BaseModel):
    """
    The whole library as one JSON document.

    Returned by GET /library/export and accepted by POST /library/import.
    statistics is informational and ignored on import.
    """
    format_version: str = "1.0"
    exported_at: datetime | None = None
    authors: list[Author] = Field(default_factory=list)
    genres: list[Genre] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
    books: list[Book] = Field(default_factory=list)
    collections: list[Collection] = Field(default_factory=list)
    borrowers: list[Borrower] = Field(default_factory=list)
    loans: list[LoanExport] = Field(default_factory=list)
    statistics: ExportStatistics | None = None


class ImportResult(BaseModel):
    success: bool
    imported: dict[str, int]
    total_imported: int
    items_skipped: int
    errors: list[str] = Field(default_factory=list)


# Settings

class AppSettings(BaseModel):
    """Full settings document returned by GET /settings."""
    background_scanning_enabled: bool
    max_keystroke_delay_ms: int
    api_timeout_seconds: int
    default_loan_days: int
    max_renewals: int
    renewal_period_days: int
    theme: str
    default_page_size: int


class SettingsUpdate(BaseModel):
    """Request body for PATCH /settings; omitted fields are left unchanged."""
    background_scanning_enabled: bool | None = None
    max_keystroke_delay_ms: int | None = None
    api_timeout_seconds: int | None = None
    default_loan_days: int | None = None
    max_renewals: int | None = None
    renewal_period_days: int | None = None
    theme: str | None = None
    default_page_size: int | None = None
