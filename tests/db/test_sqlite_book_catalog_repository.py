"""
Tests for SqliteBookCatalogRepository.

Validates the SQLite implementation of the BookCatalogRepository protocol,
including CRUD operations, author links, constraint handling, and data
serialization.

Test Pattern: AAA (Arrange-Act-Assert)
- Arrange: Set up test data and preconditions
- Act: Execute the operation being tested
- Assert: Verify the expected outcomes
"""
from datetime import date

import pytest

from athenaeum.domain.entities import Author, Book, Borrower, Loan
from athenaeum.domain.errors import ConflictError
from athenaeum.infrastructure.db import (
    SqliteAuthorRepository,
    SqliteBookCatalogRepository,
    SqliteBorrowerRepository,
    SqliteLoanRepository,
)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test_catalog.db"


@pytest.fixture
def repo(db_path):
    """
    Create a repository with a temporary database for each test.

    Uses pytest's tmp_path fixture to ensure isolation between tests.
    """
    return SqliteBookCatalogRepository(db_path)


@pytest.fixture
def author_repo(db_path):
    return SqliteAuthorRepository(db_path)


@pytest.fixture
def herbert(author_repo):
    author = Author.create_new(name="Frank Herbert", catalog_key="OL79034A")
    author_repo.save(author)
    return author


@pytest.fixture
def sample_book(herbert):
    """A fully populated Book, useful for testing serialization."""
    return Book.create_new(
        title="Dune",
        author_ids=[herbert.id],
        subtitle="Deluxe Edition",
        description="Desert planet epic",
        publisher="Ace",
        publish_date=date(1990, 9, 1),
        isbn10="0441172717",
        isbn13="9780441172719",
        catalog_key="OL7353617M",
        cover_image_url="https://covers.openlibrary.org/b/isbn/9780441172719-M.jpg",
        notes="Shelf 3",
    )


# ============================================================================
# SAVE AND LOAD
# ============================================================================

class TestSaveOperation:
    """Tests for the save() method."""

    def test_creates_schema_on_init(self, repo):
        """A new repository is empty but functional."""
        assert repo.count() == 0

    def test_save_persists_all_fields(self, repo, sample_book):
        """Saved book should retain all its fields when retrieved."""
        # Act
        repo.save(sample_book)
        retrieved = repo.get_by_id(sample_book.id)

        # Assert
        assert retrieved is not None
        assert retrieved.id == sample_book.id
        assert retrieved.title == sample_book.title
        assert retrieved.author_ids == sample_book.author_ids
        assert retrieved.subtitle == sample_book.subtitle
        assert retrieved.publisher == sample_book.publisher
        assert retrieved.publish_date == date(1990, 9, 1)
        assert retrieved.isbn10 == "0441172717"
        assert retrieved.isbn13 == "9780441172719"
        assert retrieved.catalog_key == "OL7353617M"
        assert retrieved.cover_image_url == sample_book.cover_image_url
        assert retrieved.notes == "Shelf 3"
        assert retrieved.date_added == sample_book.date_added

    def test_save_twice_updates_in_place(self, repo, sample_book):
        # Arrange
        repo.save(sample_book)
        sample_book.notes = "Lent copy returned"

        # Act
        repo.save(sample_book)

        # Assert
        assert repo.count() == 1
        assert repo.get_by_id(sample_book.id).notes == "Lent copy returned"

    def test_author_order_is_preserved(self, repo, author_repo):
        # Arrange
        pratchett = Author.create_new(name="Terry Pratchett")
        gaiman = Author.create_new(name="Neil Gaiman")
        author_repo.save(pratchett)
        author_repo.save(gaiman)
        book = Book.create_new(title="Good Omens", author_ids=[pratchett.id, gaiman.id])

        # Act
        repo.save(book)

        # Assert
        assert repo.get_by_id(book.id).author_ids == [pratchett.id, gaiman.id]

    def test_duplicate_catalog_key_raises_conflict(self, repo, sample_book):
        # Arrange
        repo.save(sample_book)
        duplicate = Book.create_new(title="Dune (copy)", catalog_key=sample_book.catalog_key)

        # Act / Assert
        with pytest.raises(ConflictError):
            repo.save(duplicate)

    def test_books_without_key_do_not_conflict(self, repo):
        repo.save(Book.create_new(title="Notebook A"))
        repo.save(Book.create_new(title="Notebook B"))

        assert repo.count() == 2


# ============================================================================
# LOOKUPS
# ============================================================================

class TestLookups:

    def test_get_by_id_missing_returns_none(self, repo, sample_book):
        assert repo.get_by_id(sample_book.id) is None

    def test_get_by_catalog_key(self, repo, sample_book):
        repo.save(sample_book)

        assert repo.get_by_catalog_key("OL7353617M").id == sample_book.id
        assert repo.get_by_catalog_key("OL0M") is None

    def test_find_by_isbn_matches_either_column(self, repo, sample_book):
        repo.save(sample_book)

        assert [b.id for b in repo.find_by_isbn("0441172717", None)] == [sample_book.id]
        assert [b.id for b in repo.find_by_isbn(None, "9780441172719")] == [sample_book.id]
        assert repo.find_by_isbn(None, None) == []

    def test_list_by_author(self, repo, sample_book, herbert):
        repo.save(sample_book)
        repo.save(Book.create_new(title="Neuromancer"))

        assert [b.id for b in repo.list_by_author(herbert.id)] == [sample_book.id]

    def test_get_all_paginates_by_title(self, repo):
        # Arrange
        for title in ["Emma", "Dune", "Beloved", "Carrie"]:
            repo.save(Book.create_new(title=title))

        # Act
        first_page = repo.get_all(limit=2)
        second_page = repo.get_all(limit=2, offset=2)

        # Assert
        assert [b.title for b in first_page] == ["Beloved", "Carrie"]
        assert [b.title for b in second_page] == ["Dune", "Emma"]
        assert len(repo.get_all()) == 4


# ============================================================================
# DELETE
# ============================================================================

class TestDelete:

    def test_delete_removes_book(self, repo, sample_book):
        repo.save(sample_book)

        assert repo.delete(sample_book.id) is True
        assert repo.get_by_id(sample_book.id) is None
        assert repo.delete(sample_book.id) is False

    def test_book_with_loan_history_cannot_be_deleted(self, repo, db_path, sample_book):
        # Arrange
        repo.save(sample_book)
        alice = Borrower.create_new(name="Alice")
        SqliteBorrowerRepository(db_path).save(alice)
        loans = SqliteLoanRepository(db_path)
        loan = Loan.create_new(sample_book.id, alice.id, date(2024, 1, 1), date(2024, 1, 15))
        loans.add_outstanding(loan)
        loans.mark_returned(loan.id, date(2024, 1, 10))

        # Act / Assert
        with pytest.raises(ConflictError):
            repo.delete(sample_book.id)
        assert repo.get_by_id(sample_book.id) is not None
