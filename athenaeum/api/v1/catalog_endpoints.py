"""
API endpoints for the catalog: authors, books and collections.

Handles HTTP concerns only and delegates to CatalogService.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from athenaeum.api.v1 import schemas as api
from athenaeum.api.v1.converters import (
    domain_author_to_api,
    domain_book_to_api,
    domain_collection_to_api,
)
from athenaeum.api.v1.dependencies import get_catalog_service, get_settings_store
from athenaeum.api.v1.errors import to_http_exception
from athenaeum.domain.errors import ExternalCatalogError, LibraryError
from athenaeum.domain.services import CatalogService, SettingsStore

router = APIRouter()


# =============================================================================
# Authors
# =============================================================================

@router.post("/authors", response_model=api.Author, status_code=status.HTTP_201_CREATED)
def create_author(
    request: api.AuthorCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Author:
    try:
        author = catalog.add_author(**request.model_dump())
    except LibraryError as e:
        raise to_http_exception(e)
    return domain_author_to_api(author)


@router.get("/authors", response_model=List[api.Author])
def list_authors(catalog: CatalogService = Depends(get_catalog_service)) -> List[api.Author]:
    return [domain_author_to_api(a) for a in catalog.list_authors()]


@router.get("/authors/{author_id}", response_model=api.Author)
def get_author(
    author_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Author:
    try:
        return domain_author_to_api(catalog.get_author(author_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/authors/{author_id}/books", response_model=List[api.Book])
def list_author_books(
    author_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[api.Book]:
    try:
        return [domain_book_to_api(b) for b in catalog.books_by_author(author_id)]
    except LibraryError as e:
        raise to_http_exception(e)


# =============================================================================
# Books
# =============================================================================

@router.post("/books", response_model=api.Book, status_code=status.HTTP_201_CREATED)
def create_book(
    request: api.BookCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Book:
    """
    Add a book to the catalog.

    Raises:
        400: Invalid book data
        404: Unknown author id
        409: Catalog key already used
    """
    try:
        book = catalog.add_book(**request.model_dump())
    except LibraryError as e:
        raise to_http_exception(e)
    return domain_book_to_api(book)


@router.get("/books", response_model=List[api.Book])
def list_books(
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1, le=500),
    catalog: CatalogService = Depends(get_catalog_service),
    settings: SettingsStore = Depends(get_settings_store),
) -> List[api.Book]:
    """List books by title; page_size defaults to the configured default_page_size."""
    size = page_size or settings.get().default_page_size
    books = catalog.list_books(limit=size, offset=(page - 1) * size)
    return [domain_book_to_api(b) for b in books]


@router.post("/books/import", response_model=api.Book, status_code=status.HTTP_201_CREATED)
def import_book(
    request: api.BookImportRequest,
    response: Response,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Book:
    """
    Add a book by ISBN using the external catalog.

    Returns 201 when the book was created and 200 when it was already
    in the catalog.

    Raises:
        400: Malformed ISBN or bad check digit
        404: ISBN unknown to the external catalog
        503: External catalog unreachable
    """
    try:
        book, created = catalog.import_from_external(request.isbn)
    except (LibraryError, ExternalCatalogError) as e:
        raise to_http_exception(e)
    if not created:
        response.status_code = status.HTTP_200_OK
    return domain_book_to_api(book)


@router.get("/books/by-key/{catalog_key}", response_model=api.Book)
def get_book_by_key(
    catalog_key: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Book:
    try:
        return domain_book_to_api(catalog.get_book_by_key(catalog_key))
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/books/{book_id}", response_model=api.Book)
def get_book_by_id(
    book_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Book:
    """
    Get a book by its unique identifier.

    Raises:
        404: Book not found
    """
    try:
        return domain_book_to_api(catalog.get_book(book_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/books/{book_id}/authors", response_model=List[api.Author])
def list_book_authors(
    book_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[api.Author]:
    """Authors of a book, in the book's author order."""
    try:
        book = catalog.get_book(book_id)
    except LibraryError as e:
        raise to_http_exception(e)
    return [domain_author_to_api(a) for a in catalog.authors_of(book)]


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    book_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> None:
    try:
        catalog.delete_book(book_id)
    except LibraryError as e:
        raise to_http_exception(e)


# =============================================================================
# Collections
# =============================================================================

@router.post("/collections", response_model=api.Collection, status_code=status.HTTP_201_CREATED)
def create_collection(
    request: api.CollectionCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Collection:
    try:
        collection = catalog.create_collection(**request.model_dump())
    except LibraryError as e:
        raise to_http_exception(e)
    return domain_collection_to_api(collection)


@router.get("/collections", response_model=List[api.Collection])
def list_collections(catalog: CatalogService = Depends(get_catalog_service)) -> List[api.Collection]:
    return [domain_collection_to_api(c) for c in catalog.list_collections()]


@router.get("/collections/{collection_id}", response_model=api.Collection)
def get_collection(
    collection_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Collection:
    try:
        return domain_collection_to_api(catalog.get_collection(collection_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.delete("/collections/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_collection(
    collection_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> None:
    """Delete a collection; its books stay in the catalog."""
    try:
        catalog.delete_collection(collection_id)
    except LibraryError as e:
        raise to_http_exception(e)


@router.put("/collections/{collection_id}/books/{book_id}", response_model=api.Collection)
def add_book_to_collection(
    collection_id: UUID,
    book_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Collection:
    try:
        return domain_collection_to_api(catalog.add_to_collection(collection_id, book_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.delete("/collections/{collection_id}/books/{book_id}", response_model=api.Collection)
def remove_book_from_collection(
    collection_id: UUID,
    book_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Collection:
    try:
        return domain_collection_to_api(catalog.remove_from_collection(collection_id, book_id))
    except LibraryError as e:
        raise to_http_exception(e)
