"""
Knowledge ledger: durable storage of character knowledge facts.

One row per (character, book, chapter, knowledge item). Writing the same
identity again overwrites the row; rows are never deleted, so the history of
an item across chapters is preserved for the temporal resolver.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from serieskeeper.errors import InfrastructureError, ValidationInputError, storage_errors
from serieskeeper.knowledge.registry import StoryRegistry
from serieskeeper.models import Book, Chapter, CharacterKnowledgeState
from serieskeeper.schemas.knowledge import (
    KnowledgeFact,
    SetKnowledgeStatePayload,
    StoryPosition,
)

# Fields copied verbatim from the payload onto the row on insert and update.
_MUTABLE_FIELDS = (
    "knowledge_state",
    "source",
    "confidence_level",
    "can_act_on",
    "can_reference_directly",
    "can_reference_indirectly",
    "restrictions",
    "internal_thought_ok",
    "dialogue_restriction",
)


def _to_fact(row: CharacterKnowledgeState, position: StoryPosition) -> KnowledgeFact:
    return KnowledgeFact(
        id=row.id,
        character_id=row.character_id,
        book_id=row.book_id,
        chapter_id=row.chapter_id,
        position=position,
        knowledge_item=row.knowledge_item,
        created_at=row.created_at,
        updated_at=row.updated_at,
        **{field: getattr(row, field) for field in _MUTABLE_FIELDS},
    )


class KnowledgeLedger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], registry: StoryRegistry):
        self._session_factory = session_factory
        self._registry = registry

    async def set_fact(self, payload: SetKnowledgeStatePayload) -> tuple[KnowledgeFact, bool]:
        """
        Insert or overwrite the fact for (character, book, chapter, item).

        Returns the stored fact and whether a new row was created. The
        character, book and chapter must exist, the book must be in the
        character's series and the chapter must belong to the book. Either the
        whole write commits or nothing does.
        """
        series_id = await self._registry.character_series(payload.character_id)
        book_series_id = await self._registry.series_of_book(payload.book_id)
        if book_series_id != series_id:
            raise ValidationInputError(
                f"Book with ID {payload.book_id} belongs to series {book_series_id}, "
                f"not series {series_id} of character {payload.character_id}"
            )
        chapter_book_id = await self._registry.book_of(payload.chapter_id)
        if chapter_book_id != payload.book_id:
            raise ValidationInputError(
                f"Chapter with ID {payload.chapter_id} belongs to book {chapter_book_id}, "
                f"not book {payload.book_id}"
            )

        try:
            return await self._write(payload)
        except InfrastructureError as exc:
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            # A concurrent writer inserted the same identity between our read
            # and our insert; this pass finds its row and overwrites it.
            return await self._write(payload)

    async def facts_for_character(
        self,
        character_id: int,
        at_or_before: StoryPosition,
        knowledge_item: Optional[str] = None,
    ) -> list[KnowledgeFact]:
        """
        Every fact for the character at or before ``at_or_before``.

        Ordered by story position ascending, then by row id, so the last fact
        for an item is always the one in effect.
        """
        stmt = (
            select(CharacterKnowledgeState, Book.book_number, Chapter.chapter_number)
            .join(Chapter, Chapter.id == CharacterKnowledgeState.chapter_id)
            .join(Book, Book.id == Chapter.book_id)
            .where(
                CharacterKnowledgeState.character_id == character_id,
                or_(
                    Book.book_number < at_or_before.book,
                    and_(
                        Book.book_number == at_or_before.book,
                        Chapter.chapter_number <= at_or_before.chapter,
                    ),
                ),
            )
            .order_by(Book.book_number, Chapter.chapter_number, CharacterKnowledgeState.id)
        )
        if knowledge_item is not None:
            stmt = stmt.where(CharacterKnowledgeState.knowledge_item == knowledge_item)

        with storage_errors("knowledge state read"):
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return [
                    _to_fact(row, StoryPosition(book=book_number, chapter=chapter_number))
                    for row, book_number, chapter_number in result.all()
                ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _write(self, payload: SetKnowledgeStatePayload) -> tuple[KnowledgeFact, bool]:
        with storage_errors("knowledge state write"):
            async with self._session_factory() as db:
                async with db.begin():
                    row, created = await self._upsert(db, payload)
                position = await self._position(db, row.chapter_id)
        return _to_fact(row, position), created

    @staticmethod
    async def _upsert(db: AsyncSession, payload: SetKnowledgeStatePayload) -> tuple[CharacterKnowledgeState, bool]:
        result = await db.execute(
            select(CharacterKnowledgeState)
            .where(
                CharacterKnowledgeState.character_id == payload.character_id,
                CharacterKnowledgeState.book_id == payload.book_id,
                CharacterKnowledgeState.chapter_id == payload.chapter_id,
                CharacterKnowledgeState.knowledge_item == payload.knowledge_item,
            )
            .with_for_update()
        )
        row = result.scalar_one_or_none()
        values = {field: getattr(payload, field) for field in _MUTABLE_FIELDS}

        if row is not None:
            for field, value in values.items():
                setattr(row, field, value)
            await db.flush()
            await db.refresh(row)
            return row, False

        row = CharacterKnowledgeState(
            character_id=payload.character_id,
            book_id=payload.book_id,
            chapter_id=payload.chapter_id,
            knowledge_item=payload.knowledge_item,
            **values,
        )
        db.add(row)
        await db.flush()
        await db.refresh(row)
        return row, True

    @staticmethod
    async def _position(db: AsyncSession, chapter_id: int) -> StoryPosition:
        result = await db.execute(
            select(Book.book_number, Chapter.chapter_number)
            .join(Book, Book.id == Chapter.book_id)
            .where(Chapter.id == chapter_id)
        )
        row = result.one()
        return StoryPosition(book=row.book_number, chapter=row.chapter_number)
