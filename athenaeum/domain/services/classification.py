"""
Classification use cases: genres and tags.

Genres and tags are labels a book can carry any number of. A book's
genre_ids and tag_ids are the only record of the association; the books
under a label are looked up through the book repository. Label names are
unique per kind, ignoring case.
"""

import logging
from typing import Callable, List, Optional
from uuid import UUID

from ..entities import Book, Genre, Label, Tag
from ..errors import ConflictError, NotFoundError
from ..ports import BookCatalogRepository, GenreRepository, TagRepository

logger = logging.getLogger(__name__)


class ClassificationService:
    """
    Create, rename and delete genres and tags, and attach them to books.

    Usage:
        classification = ClassificationService(book_repo, genre_repo, tag_repo)
        scifi = classification.create_genre("Science Fiction")
        classification.add_genre_to_book(dune.id, scifi.id)
    """

    def __init__(
        self,
        books: BookCatalogRepository,
        genres: GenreRepository,
        tags: TagRepository,
    ) -> None:
        self._books = books
        self._genres = genres
        self._tags = tags

    # =========================================================================
    # Genres
    # =========================================================================

    def create_genre(self, name: str) -> Genre:
        """
        Raises:
            ValidationError: If the name is blank or too long
            ConflictError: If a genre with this name exists
        """
        return self._create(self._genres, Genre.create_new(name))

    def get_genre(self, genre_id: UUID) -> Genre:
        return self._get(self._genres, genre_id, "Genre")

    def find_genre_by_name(self, name: str) -> Optional[Genre]:
        return self._genres.get_by_name(name)

    def list_genres(self) -> List[Genre]:
        return self._genres.get_all()

    def rename_genre(self, genre_id: UUID, name: str) -> Genre:
        return self._rename(self._genres, self.get_genre(genre_id), name)

    def delete_genre(self, genre_id: UUID) -> None:
        """Delete a genre; books keep everything but the link to it."""
        self._delete(self._genres, genre_id, "Genre")

    def books_in_genre(self, genre_id: UUID) -> List[Book]:
        self.get_genre(genre_id)
        return self._books.list_by_genre(genre_id)

    def add_genre_to_book(self, book_id: UUID, genre_id: UUID) -> Book:
        self.get_genre(genre_id)
        return self._update_book(book_id, lambda book: book.add_genre(genre_id))

    def remove_genre_from_book(self, book_id: UUID, genre_id: UUID) -> Book:
        return self._update_book(book_id, lambda book: book.remove_genre(genre_id))

    # =========================================================================
    # Tags
    # =========================================================================

    def create_tag(self, name: str) -> Tag:
        """
        Raises:
            ValidationError: If the name is blank or too long
            ConflictError: If a tag with this name exists
        """
        return self._create(self._tags, Tag.create_new(name))

    def get_tag(self, tag_id: UUID) -> Tag:
        return self._get(self._tags, tag_id, "Tag")

    def find_tag_by_name(self, name: str) -> Optional[Tag]:
        return self._tags.get_by_name(name)

    def list_tags(self) -> List[Tag]:
        return self._tags.get_all()

    def rename_tag(self, tag_id: UUID, name: str) -> Tag:
        return self._rename(self._tags, self.get_tag(tag_id), name)

    def delete_tag(self, tag_id: UUID) -> None:
        self._delete(self._tags, tag_id, "Tag")

    def books_with_tag(self, tag_id: UUID) -> List[Book]:
        self.get_tag(tag_id)
        return self._books.list_by_tag(tag_id)

    def add_tag_to_book(self, book_id: UUID, tag_id: UUID) -> Book:
        self.get_tag(tag_id)
        return self._update_book(book_id, lambda book: book.add_tag(tag_id))

    def remove_tag_from_book(self, book_id: UUID, tag_id: UUID) -> Book:
        return self._update_book(book_id, lambda book: book.remove_tag(tag_id))

    # =========================================================================
    # Shared
    # =========================================================================

    def _create(self, repo, label: Label):
        kind = type(label).__name__
        if repo.get_by_name(label.name) is not None:
            raise ConflictError(f"A {kind.lower()} named '{label.name}' already exists")
        repo.save(label)
        logger.info("%s %s created: %s", kind, label.id, label.name)
        return label

    @staticmethod
    def _get(repo, label_id: UUID, kind: str):
        label = repo.get_by_id(label_id)
        if label is None:
            raise NotFoundError(f"{kind} with id '{label_id}' not found")
        return label

    def _rename(self, repo, label: Label, name: str):
        renamed = type(label)(id=label.id, name=name)
        existing = repo.get_by_name(renamed.name)
        if existing is not None and existing.id != label.id:
            raise ConflictError(
                f"A {type(label).__name__.lower()} named '{renamed.name}' already exists"
            )
        repo.save(renamed)
        logger.info("%s %s renamed: %s -> %s", type(label).__name__, label.id, label.name, renamed.name)
        return renamed

    @staticmethod
    def _delete(repo, label_id: UUID, kind: str) -> None:
        if not repo.delete(label_id):
            raise NotFoundError(f"{kind} with id '{label_id}' not found")
        logger.info("%s %s deleted", kind, label_id)

    def _update_book(self, book_id: UUID, change: Callable[[Book], bool]) -> Book:
        book = self._books.get_by_id(book_id)
        if book is None:
            raise NotFoundError(f"Book with id '{book_id}' not found")
        if change(book):
            self._books.save(book)
        return book
