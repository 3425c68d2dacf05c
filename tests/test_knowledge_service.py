"""End-to-end tests for KnowledgeService: the four knowledge operations."""

import pytest

from serieskeeper.errors import NotFoundError, ValidationInputError
from serieskeeper.schemas.knowledge import (
    CheckReferencePayload,
    GetKnowledgeStatePayload,
    SetKnowledgeStatePayload,
    ValidateScenePayload,
)


async def record(service, **fields):
    values = {"character_id": 7, "book_id": 1}
    values.update(fields)
    return await service.set_character_knowledge_state(SetKnowledgeStatePayload(**values))


async def can_reference(service, item, at_chapter, character_id=7):
    return await service.check_character_can_reference(
        CheckReferencePayload(character_id=character_id, knowledge_item=item, at_chapter=at_chapter)
    )


async def state_at(service, chapter_id, character_id=7):
    return await service.get_character_knowledge_state(
        GetKnowledgeStatePayload(character_id=character_id, chapter_id=chapter_id)
    )


def items(bucket):
    return [f["knowledge_item"] for f in bucket]


# ---------------------------------------------------------------------------
# Tests: set_character_knowledge_state
# ---------------------------------------------------------------------------

class TestSetState:

    @pytest.mark.asyncio
    async def test_created_then_updated(self, story, service):
        created = await record(service, chapter_id=3, knowledge_item="killer's identity", knowledge_state="unaware")
        assert created["success"] is True
        assert created["message"] == "Character knowledge state for 'killer's identity' successfully created"
        assert created["knowledge_state"]["position"] == {"book": 1, "chapter": 3}

        updated = await record(service, chapter_id=3, knowledge_item="killer's identity", knowledge_state="suspects")
        assert updated["message"].endswith("successfully updated")
        assert updated["knowledge_state"]["id"] == created["knowledge_state"]["id"]


# ---------------------------------------------------------------------------
# Tests: temporal resolution
# ---------------------------------------------------------------------------

class TestTemporalKnowledge:

    @pytest.mark.asyncio
    async def test_learning_the_killer_in_chapter_nine(self, story, service):
        await record(service, chapter_id=3, knowledge_item="killer's identity", knowledge_state="unaware")
        await record(
            service, chapter_id=9, knowledge_item="killer's identity",
            knowledge_state="knows", confidence_level="certain",
        )

        before = await can_reference(service, "killer's identity", 5)
        assert before["can_reference"] is False
        assert before["knowledge_state"] == "unaware"

        after = await can_reference(service, "killer's identity", 10)
        assert after["can_reference"] is True
        assert after["knowledge_state"] == "knows"
        assert after["confidence_level"] == "certain"

    @pytest.mark.asyncio
    async def test_write_order_does_not_matter(self, story, service):
        await record(service, chapter_id=9, knowledge_item="killer's identity", knowledge_state="knows")
        await record(service, chapter_id=3, knowledge_item="killer's identity", knowledge_state="unaware")

        assert (await can_reference(service, "killer's identity", 5))["can_reference"] is False
        assert (await can_reference(service, "killer's identity", 12))["can_reference"] is True

    @pytest.mark.asyncio
    async def test_untracked_item(self, story, service):
        result = await can_reference(service, "the heir's name", 4)
        assert result["can_reference"] is False
        assert result["reason"] == "Character does not have this knowledge at this point in the story"
        assert result["dialogue_restriction"] == "cannot_reference_at_all"

    @pytest.mark.asyncio
    async def test_chapter_before_first_fact(self, story, service):
        await record(service, chapter_id=9, knowledge_item="the heir's name", knowledge_state="knows")
        assert (await can_reference(service, "the heir's name", 2))["can_reference"] is False

    @pytest.mark.asyncio
    async def test_later_book_overrides_high_chapter_number(self, story, service):
        await record(service, chapter_id=12, knowledge_item="the heir's name", knowledge_state="memory_gap")
        await record(service, book_id=2, chapter_id=13, knowledge_item="the heir's name", knowledge_state="knows")

        assert (await can_reference(service, "the heir's name", 12))["can_reference"] is False
        assert (await can_reference(service, "the heir's name", 13))["can_reference"] is True

    @pytest.mark.asyncio
    async def test_state_buckets(self, story, service):
        await record(service, chapter_id=1, knowledge_item="the vault code", knowledge_state="knows")
        await record(service, chapter_id=2, knowledge_item="the traitor", knowledge_state="suspects",
                     confidence_level="probable")
        await record(service, chapter_id=3, knowledge_item="killer's identity", knowledge_state="unaware")
        await record(service, chapter_id=4, knowledge_item="the fire at Greywater", knowledge_state="memory_gap")
        await record(service, chapter_id=11, knowledge_item="the forged will", knowledge_state="knows")

        state = await state_at(service, 6)
        assert state["character_id"] == 7
        assert state["at_chapter"] == 6
        assert items(state["confirmed_knowledge"]) == ["the vault code"]
        assert items(state["suspected_but_unconfirmed"]) == ["the traitor"]
        assert items(state["explicitly_doesnt_know"]) == ["killer's identity"]
        assert items(state["memory_gaps"]) == ["the fire at Greywater"]

    @pytest.mark.asyncio
    async def test_knowledge_of_other_characters_is_separate(self, story, service):
        await record(service, character_id=8, chapter_id=1, knowledge_item="the vault code", knowledge_state="knows")
        state = await state_at(service, 12)
        assert items(state["confirmed_knowledge"]) == []

    @pytest.mark.asyncio
    async def test_item_appears_once_at_any_position(self, story, service):
        for chapter, state in ((1, "unaware"), (4, "suspects"), (8, "knows")):
            await record(service, chapter_id=chapter, knowledge_item="the traitor", knowledge_state=state)

        for chapter_id in range(1, 13):
            state = await state_at(service, chapter_id)
            seen = [f["knowledge_item"] for bucket in (
                state["confirmed_knowledge"], state["suspected_but_unconfirmed"],
                state["explicitly_doesnt_know"], state["memory_gaps"],
            ) for f in bucket]
            assert seen == ["the traitor"]

    @pytest.mark.asyncio
    async def test_missing_character(self, story, service):
        with pytest.raises(NotFoundError, match="Character with ID 77 not found"):
            await state_at(service, 3, character_id=77)

    @pytest.mark.asyncio
    async def test_cannot_record_on_another_series_book(self, story, service):
        with pytest.raises(ValidationInputError, match="not series 2 of character 20"):
            await record(service, character_id=20, chapter_id=3, knowledge_item="the tide key",
                         knowledge_state="knows")

    @pytest.mark.asyncio
    async def test_reads_reject_chapter_of_another_series(self, story, service):
        await record(service, character_id=20, book_id=3, chapter_id=16, knowledge_item="the tide key",
                     knowledge_state="knows")

        with pytest.raises(ValidationInputError, match="Chapter with ID 5 belongs to series 1"):
            await can_reference(service, "the tide key", 5, character_id=20)
        with pytest.raises(ValidationInputError, match="Chapter with ID 5 belongs to series 1"):
            await state_at(service, 5, character_id=20)
        with pytest.raises(ValidationInputError, match="Chapter with ID 5 belongs to series 1"):
            await service.validate_scene_against_knowledge(ValidateScenePayload(
                character_id=20, chapter_id=5, scene_content="The tide key turned.",
            ))

        own = await can_reference(service, "the tide key", 16, character_id=20)
        assert own["can_reference"] is True

    @pytest.mark.asyncio
    async def test_missing_chapter(self, story, service):
        with pytest.raises(NotFoundError, match="Chapter with ID 500 not found"):
            await can_reference(service, "the traitor", 500)


# ---------------------------------------------------------------------------
# Tests: validate_scene_against_knowledge
# ---------------------------------------------------------------------------

class TestValidateScene:

    @pytest.mark.asyncio
    async def test_scene_before_discovery_is_invalid(self, story, service):
        await record(service, chapter_id=3, knowledge_item="killer's identity", knowledge_state="unaware")
        await record(service, chapter_id=9, knowledge_item="killer's identity", knowledge_state="knows")

        early = await service.validate_scene_against_knowledge(ValidateScenePayload(
            character_id=7, chapter_id=5,
            scene_content="\"I know the Killer's Identity,\" Mara said.",
        ))
        assert early["valid"] is False
        assert early["violations"][0]["severity"] == "critical"

        late = await service.validate_scene_against_knowledge(ValidateScenePayload(
            character_id=7, chapter_id=10,
            scene_content="\"I know the killer's identity,\" Mara said.",
        ))
        assert late == {"valid": True, "violations": [], "warnings": []}

    @pytest.mark.asyncio
    async def test_content_type_defaults_to_dialogue(self, story, service):
        await record(service, chapter_id=2, knowledge_item="the vault code", knowledge_state="knows",
                     internal_thought_ok=False)

        result = await service.validate_scene_against_knowledge(ValidateScenePayload(
            character_id=7, chapter_id=4, scene_content="The vault code was in her pocket.",
        ))
        assert result["valid"] is False
        assert result["violations"][0]["violation_type"] == "inappropriate_dialogue_reference"

        thought = await service.validate_scene_against_knowledge(ValidateScenePayload(
            character_id=7, chapter_id=4, scene_content="The vault code was in her pocket.",
            content_type="internal_thought",
        ))
        assert thought["valid"] is True


# ---------------------------------------------------------------------------
# Tests: call()
# ---------------------------------------------------------------------------

class TestCall:

    @pytest.mark.asyncio
    async def test_dispatches_by_tool_name(self, story, service):
        result = await service.call("get_character_knowledge_state", {"character_id": 7, "chapter_id": 1})
        assert result["confirmed_knowledge"] == []

    @pytest.mark.asyncio
    async def test_unknown_tool(self, story, service):
        with pytest.raises(ValidationInputError, match="Unknown tool: forget_everything"):
            await service.call("forget_everything", {})

    @pytest.mark.asyncio
    async def test_missing_required_field(self, story, service):
        with pytest.raises(ValidationInputError, match="knowledge_item"):
            await service.call("check_character_can_reference", {"character_id": 7, "at_chapter": 3})

    @pytest.mark.asyncio
    async def test_invalid_state_value(self, story, service):
        with pytest.raises(ValidationInputError, match="knowledge_state"):
            await service.call("set_character_knowledge_state", {
                "character_id": 7, "book_id": 1, "chapter_id": 1,
                "knowledge_item": "the vault code", "knowledge_state": "remembers",
            })

    @pytest.mark.asyncio
    async def test_empty_knowledge_item(self, story, service):
        with pytest.raises(ValidationInputError):
            await service.call("set_character_knowledge_state", {
                "character_id": 7, "book_id": 1, "chapter_id": 1,
                "knowledge_item": "", "knowledge_state": "knows",
            })
