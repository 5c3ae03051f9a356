"""
Value objects for the domain layer.

Value objects are immutable and have no identity of their own: two instances
with the same fields are interchangeable.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from .entities import Author, Book, Borrower, Collection, Genre, Loan, Tag
from .errors import ValidationError


@dataclass(frozen=True)
class BookAvailability:
    """
    Point-in-time availability of one book.

    Derived from the loan ledger on demand and never persisted. The snapshot
    does not follow later checkouts or returns.
    """

    book_id: UUID
    """The book this snapshot describes"""

    book_exists: bool
    """True if copies are owned or the book is present in the catalogue"""

    total_copies: int
    """Copies owned, as supplied by the inventory layer"""

    on_loan: int
    """Outstanding loans referencing this book"""

    available: int
    """Copies on the shelf: total_copies - on_loan, floored at 0"""

    def __post_init__(self) -> None:
        if self.total_copies < 0:
            raise ValidationError(
                f"total_copies cannot be negative, got {self.total_copies}",
                field="total_copies",
            )
        if self.on_loan < 0 or self.available < 0:
            raise ValidationError("on_loan and available cannot be negative")

    @property
    def is_available(self) -> bool:
        return self.available > 0


@dataclass(frozen=True)
class BorrowerSummary:
    """Loan counters for one borrower at a given date."""

    borrower_id: UUID
    active_loans: int
    total_loans: int
    overdue_loans: int
    as_of: date

    @property
    def has_overdue_loans(self) -> bool:
        return self.overdue_loans > 0


_ENV_PREFIX = "ATHENAEUM_"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AppSettings:
    """
    Process-wide application settings.

    Loaded once at startup, held in memory by the SettingsStore and replaced
    wholesale when the user changes a preference. Only type constraints are
    enforced.
    """

    # Scanner
    background_scanning_enabled: bool = False
    max_keystroke_delay_ms: int = 100

    # External catalog
    api_timeout_seconds: int = 30

    # Lending policy
    default_loan_days: int = 14
    max_renewals: int = 2
    renewal_period_days: int = 7

    # UI preferences
    theme: str = "Light"
    default_page_size: int = 20

    def __post_init__(self) -> None:
        """Enforce the declared type of every field."""
        for f in fields(self):
            value = getattr(self, f.name)
            check_setting_type(f.name, f.type, value)

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def field_type(cls, name: str) -> type:
        for f in fields(cls):
            if f.name == name:
                return _resolve_type(f.type)
        raise ValidationError(f"Unknown setting '{name}'", field=name)

    def as_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.field_names()}

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "AppSettings":
        """
        Build settings from ATHENAEUM_* variables, falling back to defaults.

        Example: ATHENAEUM_DEFAULT_LOAN_DAYS=21 sets default_loan_days.

        Raises:
            ValidationError: If a variable cannot be parsed as the field's type
        """
        overrides: Dict[str, Any] = {}
        for name in cls.field_names():
            raw = environ.get(_ENV_PREFIX + name.upper())
            if raw is None:
                continue
            overrides[name] = parse_setting(name, cls.field_type(name), raw)
        return cls(**overrides)


def check_setting_type(name: str, declared: Any, value: Any) -> None:
    expected = _resolve_type(declared)
    # bool is a subclass of int; keep them apart.
    if expected is int and isinstance(value, bool):
        raise ValidationError(f"Setting '{name}' must be int, got bool", field=name)
    if not isinstance(value, expected):
        raise ValidationError(
            f"Setting '{name}' must be {expected.__name__}, got {type(value).__name__}",
            field=name,
        )


def parse_setting(name: str, expected: type, raw: str) -> Any:
    """Parse a string (environment variable, form field) into a setting value."""
    text = raw.strip()
    if expected is bool:
        if text.lower() in _TRUE_VALUES:
            return True
        if text.lower() in _FALSE_VALUES:
            return False
        raise ValidationError(f"Setting '{name}' expects a boolean, got '{raw}'", field=name)
    if expected is int:
        try:
            return int(text)
        except ValueError as e:
            raise ValidationError(f"Setting '{name}' expects an integer, got '{raw}'", field=name) from e
    return text


def _resolve_type(declared: Any) -> type:
    # Annotations may be strings under postponed evaluation.
    if isinstance(declared, str):
        return {"bool": bool, "int": int, "str": str}[declared]
    return declared


@dataclass(frozen=True)
class ExternalAuthorRecord:
    """An author as described by the external catalog."""

    name: str
    catalog_key: Optional[str] = None
    bio: Optional[str] = None
    birth_date: Optional[date] = None
    photo_url: Optional[str] = None


@dataclass(frozen=True)
class ExternalBookRecord:
    """
    Book metadata returned by an external catalog lookup.

    Nothing here is trusted yet: the catalog service validates it when it
    turns the record into Author and Book entities.
    """

    title: str
    catalog_key: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    publisher: Optional[str] = None
    publish_date: Optional[date] = None
    isbn10: Optional[str] = None
    isbn13: Optional[str] = None
    cover_image_url: Optional[str] = None
    authors: List[ExternalAuthorRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("External record title cannot be empty", field="title")
        if not self.catalog_key or not self.catalog_key.strip():
            raise ValidationError("External record catalog_key cannot be empty", field="catalog_key")


EXPORT_FORMAT_VERSION = "1.0"


@dataclass(frozen=True)
class ExportStatistics:
    """Record counts carried in an export so a reader can check it at a glance."""

    total_authors: int
    total_genres: int
    total_tags: int
    total_books: int
    total_collections: int
    total_borrowers: int
    total_loans: int
    active_loans: int


@dataclass(frozen=True)
class LibrarySnapshot:
    """
    The whole catalogue and ledger at one moment.

    Produced by an export and consumed by an import. Relations are carried
    as ids on the records themselves (Book.author_ids, Collection.book_ids,
    Loan.book_id and so on), so the snapshot is self-contained.
    """

    exported_at: datetime
    authors: List[Author] = field(default_factory=list)
    genres: List[Genre] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)
    books: List[Book] = field(default_factory=list)
    collections: List[Collection] = field(default_factory=list)
    borrowers: List[Borrower] = field(default_factory=list)
    loans: List[Loan] = field(default_factory=list)
    format_version: str = EXPORT_FORMAT_VERSION

    @property
    def statistics(self) -> ExportStatistics:
        return ExportStatistics(
            total_authors=len(self.authors),
            total_genres=len(self.genres),
            total_tags=len(self.tags),
            total_books=len(self.books),
            total_collections=len(self.collections),
            total_borrowers=len(self.borrowers),
            total_loans=len(self.loans),
            active_loans=sum(1 for loan in self.loans if loan.is_outstanding),
        )
