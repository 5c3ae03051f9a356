"""
API endpoints for genres and tags.

Handles HTTP concerns only and delegates to ClassificationService.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from athenaeum.api.v1 import schemas as api
from athenaeum.api.v1.converters import domain_book_to_api, domain_genre_to_api, domain_tag_to_api
from athenaeum.api.v1.dependencies import get_classification_service
from athenaeum.api.v1.errors import to_http_exception
from athenaeum.domain.errors import LibraryError
from athenaeum.domain.services import ClassificationService

router = APIRouter()


# =============================================================================
# Genres
# =============================================================================

@router.post("/genres", response_model=api.Genre, status_code=status.HTTP_201_CREATED)
def create_genre(
    request: api.GenreCreate,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Genre:
    """
    Raises:
        400: Blank name
        409: A genre with this name exists (ignoring case)
    """
    try:
        return domain_genre_to_api(classification.create_genre(request.name))
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/genres", response_model=List[api.Genre])
def list_genres(
    classification: ClassificationService = Depends(get_classification_service),
) -> List[api.Genre]:
    return [domain_genre_to_api(g) for g in classification.list_genres()]


@router.get("/genres/{genre_id}", response_model=api.Genre)
def get_genre(
    genre_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Genre:
    try:
        return domain_genre_to_api(classification.get_genre(genre_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.patch("/genres/{genre_id}", response_model=api.Genre)
def rename_genre(
    genre_id: UUID,
    request: api.GenreCreate,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Genre:
    try:
        return domain_genre_to_api(classification.rename_genre(genre_id, request.name))
    except LibraryError as e:
        raise to_http_exception(e)


@router.delete("/genres/{genre_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_genre(
    genre_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> None:
    try:
        classification.delete_genre(genre_id)
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/genres/{genre_id}/books", response_model=List[api.Book])
def list_genre_books(
    genre_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> List[api.Book]:
    try:
        return [domain_book_to_api(b) for b in classification.books_in_genre(genre_id)]
    except LibraryError as e:
        raise to_http_exception(e)


@router.put("/books/{book_id}/genres/{genre_id}", response_model=api.Book)
def add_genre_to_book(
    book_id: UUID,
    genre_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Book:
    try:
        return domain_book_to_api(classification.add_genre_to_book(book_id, genre_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.delete("/books/{book_id}/genres/{genre_id}", response_model=api.Book)
def remove_genre_from_book(
    book_id: UUID,
    genre_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Book:
    try:
        return domain_book_to_api(classification.remove_genre_from_book(book_id, genre_id))
    except LibraryError as e:
        raise to_http_exception(e)


# =============================================================================
# Tags
# =============================================================================

@router.post("/tags", response_model=api.Tag, status_code=status.HTTP_201_CREATED)
def create_tag(
    request: api.TagCreate,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Tag:
    try:
        return domain_tag_to_api(classification.create_tag(request.name))
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/tags", response_model=List[api.Tag])
def list_tags(
    classification: ClassificationService = Depends(get_classification_service),
) -> List[api.Tag]:
    return [domain_tag_to_api(t) for t in classification.list_tags()]


@router.get("/tags/{tag_id}", response_model=api.Tag)
def get_tag(
    tag_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Tag:
    try:
        return domain_tag_to_api(classification.get_tag(tag_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.patch("/tags/{tag_id}", response_model=api.Tag)
def rename_tag(
    tag_id: UUID,
    request: api.TagCreate,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Tag:
    try:
        return domain_tag_to_api(classification.rename_tag(tag_id, request.name))
    except LibraryError as e:
        raise to_http_exception(e)


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(
    tag_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> None:
    try:
        classification.delete_tag(tag_id)
    except LibraryError as e:
        raise to_http_exception(e)


@router.get("/tags/{tag_id}/books", response_model=List[api.Book])
def list_tag_books(
    tag_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> List[api.Book]:
    try:
        return [domain_book_to_api(b) for b in classification.books_with_tag(tag_id)]
    except LibraryError as e:
        raise to_http_exception(e)


@router.put("/books/{book_id}/tags/{tag_id}", response_model=api.Book)
def add_tag_to_book(
    book_id: UUID,
    tag_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Book:
    try:
        return domain_book_to_api(classification.add_tag_to_book(book_id, tag_id))
    except LibraryError as e:
        raise to_http_exception(e)


@router.delete("/books/{book_id}/tags/{tag_id}", response_model=api.Book)
def remove_tag_from_book(
    book_id: UUID,
    tag_id: UUID,
    classification: ClassificationService = Depends(get_classification_service),
) -> api.Book:
    try:
        return domain_book_to_api(classification.remove_tag_from_book(book_id, tag_id))
    except LibraryError as e:
        raise to_http_exception(e)
