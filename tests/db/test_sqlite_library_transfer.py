"""
Tests for LibraryTransferService over real SQLite databases.

A library is built in one database, exported, and imported into a second
one; the merge rules (skip what exists, remap ids, report failures) are
checked against what lands in storage.

Test Pattern: AAA (Arrange-Act-Assert)
"""
from dataclasses import replace
from datetime import date

import pytest

from athenaeum.domain.entities import Author, Book, Borrower, Collection, Genre, Loan, Tag
from athenaeum.domain.errors import ValidationError
from athenaeum.domain.services import LibraryTransferService
from athenaeum.domain.value_objects import LibrarySnapshot
from athenaeum.infrastructure.db import (
    SqliteAuthorRepository,
    SqliteBookCatalogRepository,
    SqliteBorrowerRepository,
    SqliteCollectionRepository,
    SqliteGenreRepository,
    SqliteLoanRepository,
    SqliteTagRepository,
)


def _service(db_path) -> LibraryTransferService:
    return LibraryTransferService(
        books=SqliteBookCatalogRepository(db_path),
        authors=SqliteAuthorRepository(db_path),
        genres=SqliteGenreRepository(db_path),
        tags=SqliteTagRepository(db_path),
        collections=SqliteCollectionRepository(db_path),
        borrowers=SqliteBorrowerRepository(db_path),
        loans=SqliteLoanRepository(db_path),
    )


@pytest.fixture
def source_path(tmp_path):
    return tmp_path / "source.db"


@pytest.fixture
def target_path(tmp_path):
    return tmp_path / "target.db"


@pytest.fixture
def library(source_path):
    """A small library: Dune (on loan, renewed once) and Emma (returned)."""
    herbert = Author.create_new(name="Frank Herbert", catalog_key="OL79034A")
    scifi = Genre.create_new("Science Fiction")
    signed = Tag.create_new("signed")
    dune = Book.create_new(
        title="Dune", author_ids=[herbert.id], genre_ids=[scifi.id], tag_ids=[signed.id],
        isbn13="9780441172719",
    )
    emma = Book.create_new(title="Emma")
    shelf = Collection.create_new(name="Favourites", book_ids=[dune.id, emma.id])
    alice = Borrower.create_new(name="Alice")

    SqliteAuthorRepository(source_path).save(herbert)
    SqliteGenreRepository(source_path).save(scifi)
    SqliteTagRepository(source_path).save(signed)
    for book in (dune, emma):
        SqliteBookCatalogRepository(source_path).save(book)
    SqliteCollectionRepository(source_path).save(shelf)
    SqliteBorrowerRepository(source_path).save(alice)

    loans = SqliteLoanRepository(source_path)
    closed = Loan.create_new(emma.id, alice.id, date(2023, 12, 1), date(2023, 12, 15))
    loans.add_outstanding(closed)
    loans.mark_returned(closed.id, date(2023, 12, 10))
    outstanding = Loan.create_new(dune.id, alice.id, date(2024, 1, 1), date(2024, 1, 15))
    loans.add_outstanding(outstanding)

    return {"dune": dune, "emma": emma, "herbert": herbert, "alice": alice, "outstanding": outstanding}


# ============================================================================
# EXPORT
# ============================================================================

class TestExport:

    def test_export_contains_every_record(self, source_path, library):
        snapshot = _service(source_path).export_library()

        assert snapshot.format_version == "1.0"
        assert {b.title for b in snapshot.books} == {"Dune", "Emma"}
        assert [g.name for g in snapshot.genres] == ["Science Fiction"]
        assert [t.name for t in snapshot.tags] == ["signed"]
        assert len(snapshot.loans) == 2

    def test_statistics(self, source_path, library):
        stats = _service(source_path).export_library().statistics

        assert stats.total_books == 2
        assert stats.total_authors == 1
        assert stats.total_loans == 2
        assert stats.active_loans == 1


# ============================================================================
# IMPORT
# ============================================================================

class TestImport:

    def test_round_trip_into_empty_library(self, source_path, target_path, library):
        # Arrange
        snapshot = _service(source_path).export_library()

        # Act
        result = _service(target_path).import_library(snapshot)

        # Assert
        assert result.success
        assert result.imported == {
            "authors": 1, "genres": 1, "tags": 1, "books": 2,
            "collections": 1, "borrowers": 1, "loans": 2,
        }
        assert result.items_skipped == 0
        dune = SqliteBookCatalogRepository(target_path).get_by_id(library["dune"].id)
        assert dune.author_ids == [library["herbert"].id]
        assert len(dune.genre_ids) == 1 and len(dune.tag_ids) == 1
        outstanding = SqliteLoanRepository(target_path).get_outstanding_for_book(dune.id)
        assert outstanding.id == library["outstanding"].id

    def test_importing_twice_skips_everything(self, source_path, target_path, library):
        snapshot = _service(source_path).export_library()
        target = _service(target_path)
        target.import_library(snapshot)

        again = target.import_library(snapshot)

        assert again.success
        assert again.total_imported == 0
        assert again.items_skipped == 9

    def test_existing_records_are_matched_and_links_remapped(self, source_path, target_path, library):
        # Arrange: the target already knows Herbert (same key, other id) and Dune (same ISBN)
        snapshot = _service(source_path).export_library()
        local_herbert = Author.create_new(name="F. Herbert", catalog_key="OL79034A")
        local_dune = Book.create_new(title="Dune (local)", isbn10="0441172717")
        SqliteAuthorRepository(target_path).save(local_herbert)
        SqliteBookCatalogRepository(target_path).save(local_dune)

        # Act
        result = _service(target_path).import_library(snapshot)

        # Assert
        assert result.success
        assert result.imported["authors"] == 0
        assert result.imported["books"] == 1
        shelf = SqliteCollectionRepository(target_path).get_all()[0]
        assert shelf.book_ids == [local_dune.id, library["emma"].id]
        loan = SqliteLoanRepository(target_path).get_outstanding_for_book(local_dune.id)
        assert loan.borrower_id == library["alice"].id

    def test_names_match_ignoring_case(self, source_path, target_path, library):
        snapshot = _service(source_path).export_library()
        SqliteGenreRepository(target_path).save(Genre.create_new("science fiction"))
        SqliteBorrowerRepository(target_path).save(Borrower.create_new(name="ALICE"))

        result = _service(target_path).import_library(snapshot)

        assert result.imported["genres"] == 0
        assert result.imported["borrowers"] == 0
        assert len(SqliteBorrowerRepository(target_path).get_all()) == 1

    def test_failing_record_is_reported_and_the_rest_imported(self, source_path, target_path, library):
        # Arrange: a second outstanding loan for Dune cannot be stored
        snapshot = _service(source_path).export_library()
        clash = Loan.create_new(library["dune"].id, library["alice"].id, date(2024, 1, 3), date(2024, 1, 17))
        snapshot = replace(snapshot, loans=snapshot.loans + [clash])

        # Act
        result = _service(target_path).import_library(snapshot)

        # Assert
        assert not result.success
        assert len(result.errors) == 1
        assert str(clash.id) in result.errors[0]
        assert result.imported["loans"] == 2

    def test_loan_for_missing_borrower_is_reported(self, target_path):
        book = Book.create_new(title="Dune")
        loan = Loan.create_new(book.id, Borrower.create_new(name="Ghost").id, date(2024, 1, 1), date(2024, 1, 15))
        snapshot = LibrarySnapshot(exported_at=book.date_added, books=[book], loans=[loan])

        result = _service(target_path).import_library(snapshot)

        assert result.imported["books"] == 1
        assert result.imported["loans"] == 0
        assert "Borrower" in result.errors[0]

    def test_unsupported_format_version(self, target_path):
        snapshot = LibrarySnapshot(exported_at=Book.create_new(title="x").date_added, format_version="2.0")

        with pytest.raises(ValidationError, match="format version"):
            _service(target_path).import_library(snapshot)
