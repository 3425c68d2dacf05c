"""
Temporal resolver: what a character knows as of a story position.

Only facts recorded at or before the query position are visible, so asking
about chapter 5 never sees what the character learns in chapter 9, whatever
order the rows were written in.
"""
from __future__ import annotations

from typing import Iterable, Optional

from serieskeeper.knowledge.ledger import KnowledgeLedger
from serieskeeper.schemas.knowledge import (
    EffectiveKnowledgeState,
    KnowledgeFact,
    StoryPosition,
)

_BUCKET_FOR_STATE = {
    "knows": "confirmed_knowledge",
    "knows_with_protection": "confirmed_knowledge",
    "suspects": "suspected_but_unconfirmed",
    "unaware": "explicitly_doesnt_know",
    "memory_gap": "memory_gaps",
}


def _recency(fact: KnowledgeFact) -> tuple:
    return (fact.position, fact.id if fact.id is not None else -1)


def latest_per_item(facts: Iterable[KnowledgeFact]) -> list[KnowledgeFact]:
    """Keep the most recent fact for each knowledge item.

    Most recent means greatest position, then greatest id. Output keeps the
    order in which items were first seen.
    """
    latest: dict[str, KnowledgeFact] = {}
    for fact in facts:
        current = latest.get(fact.knowledge_item)
        if current is None or _recency(fact) >= _recency(current):
            latest[fact.knowledge_item] = fact
    return list(latest.values())


def partition(
    facts: Iterable[KnowledgeFact],
    character_id: int,
    position: StoryPosition,
    at_chapter: Optional[int] = None,
) -> EffectiveKnowledgeState:
    state = EffectiveKnowledgeState(character_id=character_id, at_chapter=at_chapter, position=position)
    buckets = state.buckets()
    for fact in facts:
        buckets[_BUCKET_FOR_STATE[fact.knowledge_state]].append(fact)
    return state


class TemporalResolver:
    def __init__(self, ledger: KnowledgeLedger):
        self._ledger = ledger

    async def resolve(
        self,
        character_id: int,
        at_position: StoryPosition,
        at_chapter: Optional[int] = None,
    ) -> EffectiveKnowledgeState:
        """Effective knowledge state; all buckets empty when nothing is tracked yet."""
        facts = await self._ledger.facts_for_character(character_id, at_position)
        return partition(latest_per_item(facts), character_id, at_position, at_chapter)

    async def resolve_item(
        self,
        character_id: int,
        knowledge_item: str,
        at_position: StoryPosition,
    ) -> Optional[KnowledgeFact]:
        facts = await self._ledger.facts_for_character(character_id, at_position, knowledge_item)
        latest = latest_per_item(facts)
        return latest[0] if latest else None
