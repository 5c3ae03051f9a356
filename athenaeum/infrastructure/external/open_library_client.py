"""
Open Library client implementing the ExternalCatalogProvider port.

This adapter handles the HTTP and JSON side of a catalog lookup and
translates Open Library edition and author records into ExternalBookRecord
value objects. The catalog service never sees a URL or a raw response.

The constructor accepts an optional `session`: production code gets a
requests.Session, tests inject a fake session that returns canned responses.
"""

from datetime import date, datetime
import logging
import random
import re
import time
from typing import Any, Callable, List, Optional, Union

import requests

from athenaeum.domain.errors import ExternalCatalogError, ValidationError
from athenaeum.domain.ports import ExternalCatalogProvider
from athenaeum.domain.utils.isbn import clean_isbn, is_valid_isbn_format
from athenaeum.domain.value_objects import ExternalAuthorRecord, ExternalBookRecord

logger = logging.getLogger(__name__)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%B %Y",
    "%b %Y",
    "%Y-%m",
)


class OpenLibraryClient(ExternalCatalogProvider):
    """
    Open Library lookups by ISBN.

    Features:
    - Edition lookup by ISBN-10 or ISBN-13
    - Author names resolved from the edition's author keys (best effort)
    - Cover image reference built from the ISBN
    - Retries with exponential backoff on transient failures

    Usage:
        client = OpenLibraryClient(timeout_seconds=settings.api_timeout_seconds)
        record = client.lookup_isbn("9780441172719")
    """

    BASE_URL = "https://openlibrary.org"
    COVERS_URL = "https://covers.openlibrary.org"

    RETRYABLE_STATUSES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Union[int, Callable[[], int]] = 30,
        session: Optional[Any] = None,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the Open Library client.

        Args:
            base_url: Override for the API root (e.g. a local mirror)
            timeout_seconds: Per-request timeout, or a callable returning it; a
                callable is read before every request so settings changes apply
                without rebuilding the client
            session: Optional HTTP session; a requests.Session() is created if None
            max_retries: Retries after the first attempt for transient failures
            backoff_seconds: Base delay for exponential backoff
            sleep: Sleep function, replaceable in tests
        """
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep

        if session is not None:
            self._session = session
        else:
            self._session = requests.Session()
            self._session.headers.update({
                "User-Agent": "Athenaeum/1.0",
                "Accept": "application/json",
            })

    def get_source_name(self) -> str:
        return "open_library"

    def _current_timeout(self) -> int:
        return self._timeout() if callable(self._timeout) else self._timeout

    def lookup_isbn(self, isbn: str) -> Optional[ExternalBookRecord]:
        """
        Fetch an edition by ISBN.

        Returns:
            ExternalBookRecord if Open Library knows the ISBN, None on 404 or
            when the edition lacks a title or key

        Raises:
            ValidationError: If the ISBN is malformed
            ExternalCatalogError: If the request fails after retries
        """
        cleaned = clean_isbn(isbn)
        if not is_valid_isbn_format(cleaned):
            raise ValidationError(f"'{isbn}' is not a valid ISBN", field="isbn")

        data = self._get_json(f"{self._base_url}/isbn/{cleaned}.json")
        if data is None:
            return None

        return self._parse_edition(data, cleaned)

    # =========================================================================
    # HTTP
    # =========================================================================

    def _get_json(self, url: str) -> Optional[dict]:
        """GET a JSON document; None on 404."""
        response = self._get_with_retries(url)
        if response is None:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise ExternalCatalogError(f"Open Library returned invalid JSON: {e}") from e

    def _get_with_retries(self, url: str) -> Optional[Any]:
        attempt = 0
        while True:
            try:
                response = self._session.get(url, timeout=self._current_timeout())
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                return response
            except requests.exceptions.HTTPError as e:
                status_code = getattr(getattr(e, "response", None), "status_code", None)
                if status_code in self.RETRYABLE_STATUSES and attempt < self._max_retries:
                    self._wait_before_retry(attempt, f"HTTP {status_code}")
                    attempt += 1
                    continue
                raise ExternalCatalogError(f"Open Library request failed: {e}") from e
            except requests.exceptions.RequestException as e:
                if attempt < self._max_retries:
                    self._wait_before_retry(attempt, type(e).__name__)
                    attempt += 1
                    continue
                raise ExternalCatalogError(f"Open Library request failed: {e}") from e

    def _wait_before_retry(self, attempt: int, reason: str) -> None:
        sleep_s = self._backoff_seconds * (2 ** attempt) + random.uniform(0, 0.2)
        logger.warning(
            "Open Library transient failure (%s); retrying in %.2fs (attempt %s/%s)",
            reason,
            sleep_s,
            attempt + 1,
            self._max_retries,
        )
        self._sleep(sleep_s)

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse_edition(self, data: dict, isbn: str) -> Optional[ExternalBookRecord]:
        title = data.get("title")
        key = _strip_key(data.get("key"), "/books/")
        if not title or not key:
            logger.warning("Open Library edition for ISBN %s lacks title or key", isbn)
            return None

        isbn10 = _first(data.get("isbn_10"))
        isbn13 = _first(data.get("isbn_13"))
        if isbn10 is None and len(isbn) == 10:
            isbn10 = isbn
        if isbn13 is None and len(isbn) == 13:
            isbn13 = isbn

        return ExternalBookRecord(
            title=title,
            catalog_key=key,
            subtitle=data.get("subtitle"),
            description=_text_value(data.get("description")),
            publisher=_first(data.get("publishers")),
            publish_date=parse_publish_date(data.get("publish_date")),
            isbn10=clean_isbn(isbn10) or None,
            isbn13=clean_isbn(isbn13) or None,
            cover_image_url=f"{self.COVERS_URL}/b/isbn/{isbn}-M.jpg",
            authors=self._fetch_authors(data.get("authors") or []),
        )

    def _fetch_authors(self, author_refs: List[dict]) -> List[ExternalAuthorRecord]:
        """Resolve author references; an author that cannot be fetched is skipped."""
        authors = []
        for ref in author_refs:
            key = _strip_key((ref or {}).get("key"), "/authors/")
            if not key:
                continue

            try:
                data = self._get_json(f"{self._base_url}/authors/{key}.json")
            except ExternalCatalogError as e:
                logger.warning("Could not fetch Open Library author %s: %s", key, e)
                continue

            if not data or not data.get("name"):
                continue

            photos = [p for p in data.get("photos") or [] if isinstance(p, int) and p > 0]
            authors.append(ExternalAuthorRecord(
                name=data["name"],
                catalog_key=key,
                bio=_text_value(data.get("bio")),
                birth_date=parse_publish_date(data.get("birth_date")),
                photo_url=f"{self.COVERS_URL}/a/id/{photos[0]}-M.jpg" if photos else None,
            ))
        return authors


def parse_publish_date(value: Optional[str]) -> Optional[date]:
    """
    Parse the free-text dates Open Library uses.

    Handles "1965-08-01", "August 1, 1965", "Aug 1965", "1965" and similar.
    Year-only and month-only values resolve to the first day of the period.
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    match = re.search(r"\b(\d{4})\b", text)
    if match:
        return date(int(match.group(1)), 1, 1)
    return None


def _strip_key(key: Optional[str], prefix: str) -> Optional[str]:
    if not key:
        return None
    return key[len(prefix):] if key.startswith(prefix) else key


def _first(values: Optional[list]) -> Optional[str]:
    if values:
        return values[0]
    return None


def _text_value(value: Any) -> Optional[str]:
    # Open Library text fields are either a plain string or {"type": ..., "value": ...}.
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, str) and value.strip():
        return value
    return None
