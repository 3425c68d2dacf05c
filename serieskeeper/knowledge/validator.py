"""
Reference validator: checks narrative content against a character's
resolved knowledge state.

Only tracked items are scanned. Anything the character must not know has to
be recorded as ``unaware`` first; an untracked item is never flagged.

Severity ladder:
    critical  referencing something the character does not know or forgot
    high      dialogue about something restricted to internal thought
    medium    direct reference to something that should stay vague (warning only)
"""
from __future__ import annotations

from typing import Optional

from serieskeeper.knowledge.scanners import ContentScanner, SubstringScanner
from serieskeeper.schemas.knowledge import (
    ContentType,
    EffectiveKnowledgeState,
    KnowledgeFact,
    KnowledgeIssue,
    ReferenceCheck,
    ValidationResult,
)

NO_KNOWLEDGE_REASON = "Character does not have this knowledge at this point in the story"


def _candidates(state: EffectiveKnowledgeState, content_type: ContentType) -> list[KnowledgeFact]:
    """Tracked items whose mention in this kind of content needs a check."""
    restricted_confirmed = [
        fact for fact in state.confirmed_knowledge
        if not fact.can_reference_directly
        or (content_type == "dialogue" and not fact.internal_thought_ok)
    ]
    uncertain_suspicions = [
        fact for fact in state.suspected_but_unconfirmed
        if fact.confidence_level != "certain"
    ]
    return [
        *state.explicitly_doesnt_know,
        *state.memory_gaps,
        *restricted_confirmed,
        *uncertain_suspicions,
    ]


class ReferenceValidator:
    def __init__(self, scanner: Optional[ContentScanner] = None):
        self.scanner = scanner or SubstringScanner()

    def validate(
        self,
        state: EffectiveKnowledgeState,
        content: str,
        content_type: ContentType = "dialogue",
    ) -> ValidationResult:
        result = ValidationResult()

        for fact in _candidates(state, content_type):
            item = fact.knowledge_item
            if not self.scanner.contains_item(content, item):
                continue

            if fact.knowledge_state in ("unaware", "memory_gap"):
                result.violations.append(KnowledgeIssue(
                    knowledge_item=item,
                    violation_type="referencing_unknown_information",
                    severity="critical",
                    suggestion=f"Character does not know about '{item}' at this point",
                ))
            elif content_type == "dialogue" and not fact.internal_thought_ok:
                result.violations.append(KnowledgeIssue(
                    knowledge_item=item,
                    violation_type="inappropriate_dialogue_reference",
                    severity="high",
                    suggestion=f"Character cannot discuss '{item}' in dialogue, only in thoughts",
                ))
            elif not fact.can_reference_directly:
                result.warnings.append(KnowledgeIssue(
                    knowledge_item=item,
                    violation_type="direct_reference_to_restricted_knowledge",
                    severity="medium",
                    suggestion=f"Character should be more vague when referencing '{item}'",
                ))

        result.valid = not result.violations
        return result


def check_reference(fact: Optional[KnowledgeFact]) -> ReferenceCheck:
    """Whether the character may reference the item, given its fact in effect (if any)."""
    if fact is None:
        return ReferenceCheck(
            can_reference=False,
            reason=NO_KNOWLEDGE_REASON,
            internal_thought_ok=False,
            dialogue_restriction="cannot_reference_at_all",
        )

    knows = fact.is_confirmed
    can_reference = knows and (fact.can_reference_directly or fact.can_reference_indirectly)
    if can_reference and fact.can_reference_directly:
        reason = f"Character knows '{fact.knowledge_item}' as of {fact.position}"
    elif can_reference:
        reason = f"Character knows '{fact.knowledge_item}' but may only reference it indirectly"
    elif knows:
        reason = f"Character knows '{fact.knowledge_item}' but may not reference it"
    else:
        reason = f"Character's knowledge of '{fact.knowledge_item}' is '{fact.knowledge_state}' as of {fact.position}"

    return ReferenceCheck(
        can_reference=can_reference,
        reason=reason,
        knowledge_state=fact.knowledge_state,
        confidence_level=fact.confidence_level,
        internal_thought_ok=fact.internal_thought_ok,
        dialogue_restriction=fact.dialogue_restriction or (None if knows else "cannot_reference"),
        limitation=fact.restrictions,
    )
