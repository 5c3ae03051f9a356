"""
Tests for the genre and tag SQLite repositories and the book links to them.

Test Pattern: AAA (Arrange-Act-Assert)
"""
import pytest

from athenaeum.domain.entities import Book, Genre, Tag
from athenaeum.domain.errors import ConflictError
from athenaeum.infrastructure.db import (
    SqliteBookCatalogRepository,
    SqliteGenreRepository,
    SqliteTagRepository,
)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test_classification.db"


@pytest.fixture
def genres(db_path):
    return SqliteGenreRepository(db_path)


@pytest.fixture
def tags(db_path):
    return SqliteTagRepository(db_path)


@pytest.fixture
def books(db_path):
    return SqliteBookCatalogRepository(db_path)


# ============================================================================
# LABELS
# ============================================================================

class TestLabelRepositories:

    def test_save_and_load(self, genres):
        genre = Genre.create_new("Science Fiction")

        genres.save(genre)
        stored = genres.get_by_id(genre.id)

        assert isinstance(stored, Genre)
        assert stored.name == "Science Fiction"

    def test_lookup_by_name_ignores_case(self, genres):
        genre = Genre.create_new("Fantasy")
        genres.save(genre)

        assert genres.get_by_name("FANTASY").id == genre.id
        assert genres.get_by_name("Horror") is None

    def test_duplicate_name_in_other_case_conflicts(self, genres):
        genres.save(Genre.create_new("Fantasy"))

        with pytest.raises(ConflictError, match="genre"):
            genres.save(Genre.create_new("fantasy"))

    def test_rename_keeps_id(self, tags):
        tag = Tag.create_new("signed")
        tags.save(tag)

        tags.save(Tag(id=tag.id, name="Signed"))

        assert [t.name for t in tags.get_all()] == ["Signed"]

    def test_get_all_ordered_by_name(self, tags):
        for name in ["to-read", "gift", "signed"]:
            tags.save(Tag.create_new(name))

        assert [t.name for t in tags.get_all()] == ["gift", "signed", "to-read"]

    def test_genres_and_tags_are_separate_tables(self, genres, tags):
        genres.save(Genre.create_new("Classics"))

        tags.save(Tag.create_new("Classics"))

        assert isinstance(tags.get_by_name("classics"), Tag)

    def test_delete(self, genres):
        genre = Genre.create_new("Fantasy")
        genres.save(genre)

        assert genres.delete(genre.id) is True
        assert genres.delete(genre.id) is False
        assert genres.get_by_id(genre.id) is None


# ============================================================================
# BOOK LINKS
# ============================================================================

class TestBookClassification:

    def test_book_round_trips_genres_and_tags_in_order(self, books, genres, tags):
        # Arrange
        scifi, classics = Genre.create_new("Science Fiction"), Genre.create_new("Classics")
        signed = Tag.create_new("signed")
        for genre in (scifi, classics):
            genres.save(genre)
        tags.save(signed)
        dune = Book.create_new(title="Dune", genre_ids=[classics.id, scifi.id], tag_ids=[signed.id])

        # Act
        books.save(dune)
        stored = books.get_by_id(dune.id)

        # Assert
        assert stored.genre_ids == [classics.id, scifi.id]
        assert stored.tag_ids == [signed.id]

    def test_list_by_genre_and_tag(self, books, genres, tags):
        scifi = Genre.create_new("Science Fiction")
        signed = Tag.create_new("signed")
        genres.save(scifi)
        tags.save(signed)
        dune = Book.create_new(title="Dune", genre_ids=[scifi.id], tag_ids=[signed.id])
        emma = Book.create_new(title="Emma")
        hyperion = Book.create_new(title="Hyperion", genre_ids=[scifi.id])
        for book in (hyperion, emma, dune):
            books.save(book)

        assert [b.title for b in books.list_by_genre(scifi.id)] == ["Dune", "Hyperion"]
        assert [b.title for b in books.list_by_tag(signed.id)] == ["Dune"]

    def test_unknown_genre_link_conflicts(self, books):
        with pytest.raises(ConflictError):
            books.save(Book.create_new(title="Dune", genre_ids=[Genre.create_new("Ghost").id]))

        assert books.count() == 0

    def test_deleting_a_genre_unlinks_it_from_books(self, books, genres):
        scifi = Genre.create_new("Science Fiction")
        genres.save(scifi)
        dune = Book.create_new(title="Dune", genre_ids=[scifi.id])
        books.save(dune)

        genres.delete(scifi.id)

        assert books.get_by_id(dune.id).genre_ids == []

    def test_deleting_a_book_removes_its_links(self, books, tags):
        signed = Tag.create_new("signed")
        tags.save(signed)
        dune = Book.create_new(title="Dune", tag_ids=[signed.id])
        books.save(dune)

        books.delete(dune.id)

        assert books.list_by_tag(signed.id) == []
        assert tags.get_by_id(signed.id) is not None
