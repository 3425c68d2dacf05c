"""Request/response models for the story-structure routes."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateSeriesRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None


class CreateBookRequest(BaseModel):
    book_number: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=300)


class CreateChapterRequest(BaseModel):
    chapter_number: int = Field(..., ge=1)
    title: Optional[str] = Field(default=None, max_length=300)


class CreateCharacterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=300)
    character_type: Optional[str] = Field(default=None, max_length=100)


class SeriesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None


class ChapterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    book_id: int
    chapter_number: int
    title: Optional[str] = None


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    series_id: int
    book_number: int
    title: str
    chapters: List[ChapterResponse] = Field(default_factory=list)


class CharacterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    series_id: int
    name: str
    character_type: Optional[str] = None
