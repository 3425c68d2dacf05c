"""
Story structure registry: series, books, chapters and characters.

The knowledge engine only needs two things from here, an existence check
and chapter → position resolution. The create/list helpers back the
story-structure REST routes.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from serieskeeper.errors import NotFoundError, ValidationInputError, storage_errors
from serieskeeper.models import Book, Chapter, Character, Series
from serieskeeper.schemas.knowledge import StoryPosition

_ENTITIES = {
    "series": (Series, "Series"),
    "book": (Book, "Book"),
    "chapter": (Chapter, "Chapter"),
    "character": (Character, "Character"),
}


class StoryRegistry:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Collaborator contract
    # ------------------------------------------------------------------

    async def exists(self, entity_type: str, entity_id: int) -> bool:
        model = self._model_for(entity_type)
        with storage_errors(f"{entity_type} lookup"):
            async with self._session_factory() as db:
                result = await db.execute(select(model.id).where(model.id == entity_id))
                return result.scalar_one_or_none() is not None

    async def require(self, entity_type: str, entity_id: int) -> None:
        """Raise ``NotFoundError`` naming the entity when it does not exist."""
        if not await self.exists(entity_type, entity_id):
            raise NotFoundError(_ENTITIES[entity_type][1], entity_id)

    async def book_of(self, chapter_id: int) -> int:
        with storage_errors("chapter lookup"):
            async with self._session_factory() as db:
                result = await db.execute(select(Chapter.book_id).where(Chapter.id == chapter_id))
                book_id = result.scalar_one_or_none()
        if book_id is None:
            raise NotFoundError("Chapter", chapter_id)
        return book_id

    async def position_of(self, chapter_id: int) -> StoryPosition:
        """Translate a chapter id into its (book ordinal, chapter ordinal) position."""
        row = await self._chapter_row(chapter_id)
        return StoryPosition(book=row.book_number, chapter=row.chapter_number)

    async def series_of_book(self, book_id: int) -> int:
        with storage_errors("book lookup"):
            async with self._session_factory() as db:
                result = await db.execute(select(Book.series_id).where(Book.id == book_id))
                series_id = result.scalar_one_or_none()
        if series_id is None:
            raise NotFoundError("Book", book_id)
        return series_id

    async def series_of_chapter(self, chapter_id: int) -> int:
        return (await self._chapter_row(chapter_id)).series_id

    async def position_for(self, character_id: int, chapter_id: int) -> StoryPosition:
        """
        Position of ``chapter_id`` within the character's own series.

        Ordinals only order chapters of one series, so a chapter from any
        other series is rejected with ``ValidationInputError``.
        """
        series_id = await self.character_series(character_id)
        row = await self._chapter_row(chapter_id)
        if row.series_id != series_id:
            raise ValidationInputError(
                f"Chapter with ID {chapter_id} belongs to series {row.series_id}, "
                f"not series {series_id} of character {character_id}"
            )
        return StoryPosition(book=row.book_number, chapter=row.chapter_number)

    async def character_series(self, character_id: int) -> int:
        with storage_errors("character lookup"):
            async with self._session_factory() as db:
                result = await db.execute(
                    select(Character.series_id).where(Character.id == character_id)
                )
                series_id = result.scalar_one_or_none()
        if series_id is None:
            raise NotFoundError("Character", character_id)
        return series_id

    # ------------------------------------------------------------------
    # Story structure CRUD
    # ------------------------------------------------------------------

    async def create_series(self, title: str, description: Optional[str] = None) -> Series:
        series = Series(title=title, description=description)
        await self._add(series, "series creation")
        return series

    async def get_series(self, series_id: int) -> Series:
        with storage_errors("series lookup"):
            async with self._session_factory() as db:
                series = await db.get(Series, series_id)
        if series is None:
            raise NotFoundError("Series", series_id)
        return series

    async def list_series(self) -> list[Series]:
        with storage_errors("series listing"):
            async with self._session_factory() as db:
                result = await db.execute(select(Series).order_by(Series.id))
                return list(result.scalars().all())

    async def create_book(self, series_id: int, book_number: int, title: str) -> Book:
        await self.require("series", series_id)
        book = Book(series_id=series_id, book_number=book_number, title=title)
        await self._add(
            book, "book creation",
            duplicate=f"Book {book_number} already exists in series {series_id}",
        )
        return book

    async def list_books(self, series_id: int) -> list[Book]:
        """Books of a series in reading order, chapters eagerly loaded."""
        await self.require("series", series_id)
        with storage_errors("book listing"):
            async with self._session_factory() as db:
                result = await db.execute(
                    select(Book)
                    .where(Book.series_id == series_id)
                    .options(selectinload(Book.chapters))
                    .order_by(Book.book_number)
                )
                return list(result.scalars().all())

    async def create_chapter(self, book_id: int, chapter_number: int, title: Optional[str] = None) -> Chapter:
        await self.require("book", book_id)
        chapter = Chapter(book_id=book_id, chapter_number=chapter_number, title=title)
        await self._add(
            chapter, "chapter creation",
            duplicate=f"Chapter {chapter_number} already exists in book {book_id}",
        )
        return chapter

    async def create_character(self, series_id: int, name: str, character_type: Optional[str] = None) -> Character:
        await self.require("series", series_id)
        character = Character(series_id=series_id, name=name, character_type=character_type)
        await self._add(character, "character creation")
        return character

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _model_for(entity_type: str):
        try:
            return _ENTITIES[entity_type][0]
        except KeyError:
            raise ValidationInputError(f"Unknown entity type: {entity_type}") from None

    async def _chapter_row(self, chapter_id: int):
        with storage_errors("chapter lookup"):
            async with self._session_factory() as db:
                result = await db.execute(
                    select(Book.series_id, Book.book_number, Chapter.chapter_number)
                    .join(Book, Book.id == Chapter.book_id)
                    .where(Chapter.id == chapter_id)
                )
                row = result.one_or_none()
        if row is None:
            raise NotFoundError("Chapter", chapter_id)
        return row

    async def _add(self, instance, operation: str, duplicate: Optional[str] = None) -> None:
        with storage_errors(operation):
            async with self._session_factory() as db:
                try:
                    async with db.begin():
                        db.add(instance)
                except IntegrityError as exc:
                    if duplicate is None:
                        raise
                    raise ValidationInputError(duplicate) from exc
