"""Series, book, chapter and character REST endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from serieskeeper.app import get_knowledge_service
from serieskeeper.errors import KnowledgeError, http_status_for
from serieskeeper.knowledge.registry import StoryRegistry
from serieskeeper.knowledge.service import KnowledgeService
from serieskeeper.schemas.story import (
    BookResponse,
    ChapterResponse,
    CharacterResponse,
    CreateBookRequest,
    CreateChapterRequest,
    CreateCharacterRequest,
    CreateSeriesRequest,
    SeriesResponse,
)

router = APIRouter(prefix="/api")


def get_registry(service: KnowledgeService = Depends(get_knowledge_service)) -> StoryRegistry:
    return service.registry


def _http_error(e: KnowledgeError) -> HTTPException:
    return HTTPException(status_code=http_status_for(e), detail=str(e))


@router.post("/series", response_model=SeriesResponse)
async def create_series(request: CreateSeriesRequest, registry: StoryRegistry = Depends(get_registry)):
    try:
        series = await registry.create_series(request.title, request.description)
    except KnowledgeError as e:
        raise _http_error(e) from e
    return SeriesResponse.model_validate(series)


@router.get("/series", response_model=List[SeriesResponse])
async def list_series(registry: StoryRegistry = Depends(get_registry)):
    try:
        return [SeriesResponse.model_validate(s) for s in await registry.list_series()]
    except KnowledgeError as e:
        raise _http_error(e) from e


@router.get("/series/{series_id}", response_model=SeriesResponse)
async def get_series(series_id: int, registry: StoryRegistry = Depends(get_registry)):
    try:
        return SeriesResponse.model_validate(await registry.get_series(series_id))
    except KnowledgeError as e:
        raise _http_error(e) from e


@router.post("/series/{series_id}/books", response_model=BookResponse)
async def create_book(series_id: int, request: CreateBookRequest, registry: StoryRegistry = Depends(get_registry)):
    try:
        book = await registry.create_book(series_id, request.book_number, request.title)
    except KnowledgeError as e:
        raise _http_error(e) from e
    # A new book has no chapters yet; avoid touching the unloaded relationship
    return BookResponse(id=book.id, series_id=book.series_id, book_number=book.book_number, title=book.title)


@router.get("/series/{series_id}/books", response_model=List[BookResponse])
async def list_books(series_id: int, registry: StoryRegistry = Depends(get_registry)):
    """Books of a series in reading order, each with its chapters."""
    try:
        books = await registry.list_books(series_id)
    except KnowledgeError as e:
        raise _http_error(e) from e
    return [BookResponse.model_validate(b) for b in books]


@router.post("/books/{book_id}/chapters", response_model=ChapterResponse)
async def create_chapter(book_id: int, request: CreateChapterRequest, registry: StoryRegistry = Depends(get_registry)):
    try:
        chapter = await registry.create_chapter(book_id, request.chapter_number, request.title)
    except KnowledgeError as e:
        raise _http_error(e) from e
    return ChapterResponse.model_validate(chapter)


@router.post("/series/{series_id}/characters", response_model=CharacterResponse)
async def create_character(series_id: int, request: CreateCharacterRequest, registry: StoryRegistry = Depends(get_registry)):
    try:
        character = await registry.create_character(series_id, request.name, request.character_type)
    except KnowledgeError as e:
        raise _http_error(e) from e
    return CharacterResponse.model_validate(character)
