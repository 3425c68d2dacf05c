"""
Shared test fixtures for the SeriesKeeper test suite.

Provides:
- In-memory SQLite engine (aiosqlite + StaticPool) with all tables created
- A seeded series: two books, fifteen chapters, characters in two series
- KnowledgeService wired to that database
"""

import os
import sys
import tempfile
from types import SimpleNamespace

# Set test environment BEFORE any serieskeeper imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "serieskeeper-test.log"))

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from serieskeeper.database import create_tables, make_session_factory
from serieskeeper.knowledge.service import KnowledgeService
from serieskeeper.models import Book, Chapter, Character, Series

# Book 1 has chapters with ids 1..12 (chapter_number == id);
# book 2 has chapters with ids 13..15 (chapter_number 1..3).
BOOK_ONE_CHAPTERS = range(1, 13)
BOOK_TWO_CHAPTERS = {13: 1, 14: 2, 15: 3}


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def story(session_factory):
    """Seed the story structure and return its ids."""
    async with session_factory() as db:
        async with db.begin():
            db.add_all([
                Series(id=1, title="The Hollow Crown"),
                Series(id=2, title="Saltmarch Mysteries"),
            ])
            db.add_all([
                Book(id=1, series_id=1, book_number=1, title="Ash and Ink"),
                Book(id=2, series_id=1, book_number=2, title="The Quiet Heir"),
                Book(id=3, series_id=2, book_number=1, title="Low Tide"),
            ])
            db.add_all([Chapter(id=n, book_id=1, chapter_number=n) for n in BOOK_ONE_CHAPTERS])
            db.add_all([Chapter(id=cid, book_id=2, chapter_number=num) for cid, num in BOOK_TWO_CHAPTERS.items()])
            db.add(Chapter(id=16, book_id=3, chapter_number=1))
            db.add_all([
                Character(id=7, series_id=1, name="Mara Quill", character_type="protagonist"),
                Character(id=8, series_id=1, name="Tobin Reeve", character_type="supporting"),
                Character(id=20, series_id=2, name="Inspector Hale", character_type="protagonist"),
            ])
    return SimpleNamespace(series_id=1, other_series_id=2, book_one=1, book_two=2, mara=7, tobin=8, hale=20)


@pytest.fixture
def service(session_factory):
    return KnowledgeService(session_factory)
