from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, DateTime, ForeignKey, Text, Integer, Boolean, UniqueConstraint, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

class Base(DeclarativeBase):
    pass

class Series(Base):
    __tablename__ = "series"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    books: Mapped[List["Book"]] = relationship("Book", back_populates="series", order_by="Book.book_number")
    characters: Mapped[List["Character"]] = relationship("Character", back_populates="series")

class Book(Base):
    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    series_id: Mapped[int] = mapped_column(ForeignKey("series.id"), index=True)
    book_number: Mapped[int] = mapped_column(Integer)  # Ordinal within the series
    title: Mapped[str] = mapped_column(String)

    series: Mapped["Series"] = relationship("Series", back_populates="books")
    chapters: Mapped[List["Chapter"]] = relationship("Chapter", back_populates="book", order_by="Chapter.chapter_number")

    __table_args__ = (
        UniqueConstraint("series_id", "book_number", name="uix_book_series_number"),
    )

class Chapter(Base):
    __tablename__ = "chapters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    book_id: Mapped[int] = mapped_column(ForeignKey("books.id"), index=True)
    chapter_number: Mapped[int] = mapped_column(Integer)  # Ordinal within the book
    title: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    book: Mapped["Book"] = relationship("Book", back_populates="chapters")

    __table_args__ = (
        UniqueConstraint("book_id", "chapter_number", name="uix_chapter_book_number"),
    )

class Character(Base):
    __tablename__ = "characters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    series_id: Mapped[int] = mapped_column(ForeignKey("series.id"), index=True)
    name: Mapped[str] = mapped_column(String, index=True)
    character_type: Mapped[Optional[str]] = mapped_column(String, nullable=True)  # protagonist / antagonist / supporting ...

    series: Mapped["Series"] = relationship("Series", back_populates="characters")


class CharacterKnowledgeState(Base):
    """One row of the knowledge ledger.

    A row records what a character knows about ``knowledge_item`` as of one
    chapter. Rows are overwritten in place for the same
    (character, book, chapter, item) and never deleted.
    """
    __tablename__ = "character_knowledge_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))
    book_id: Mapped[int] = mapped_column(ForeignKey("books.id"))
    chapter_id: Mapped[int] = mapped_column(ForeignKey("chapters.id"))
    knowledge_item: Mapped[str] = mapped_column(String)

    knowledge_state: Mapped[str] = mapped_column(String(32))  # knows / knows_with_protection / suspects / unaware / memory_gap
    confidence_level: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)  # certain / probable / suspected
    source: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    can_act_on: Mapped[bool] = mapped_column(Boolean, default=True)
    can_reference_directly: Mapped[bool] = mapped_column(Boolean, default=True)
    can_reference_indirectly: Mapped[bool] = mapped_column(Boolean, default=True)
    internal_thought_ok: Mapped[bool] = mapped_column(Boolean, default=True)
    restrictions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dialogue_restriction: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint(
            "character_id", "book_id", "chapter_id", "knowledge_item",
            name="uix_knowledge_character_position_item",
        ),
        Index("ix_knowledge_character_item", "character_id", "knowledge_item"),
    )
