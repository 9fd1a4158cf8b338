"""
NoteDigest Backend: Summary Store Tests
=========================================

Real SQLite storage, FakeLLM behind the gateway.
"""

import uuid

import pytest
from sqlalchemy import func, select

from notedigest.exceptions import (
    AIServiceUnavailableError,
    ContentTooLargeError,
    EmptyContentError,
    InvalidIdError,
    NotFoundError,
)
from notedigest.models.note import Summary
from notedigest.services.note_store import note_store
from notedigest.services.summary_store import summary_store

from conftest import OTHER_OWNER, OWNER


async def summary_count(db, note_id):
    result = await db.execute(
        select(func.count()).select_from(Summary).where(Summary.note_id == note_id)
    )
    return result.scalar()


class TestGenerateAndStore:

    @pytest.mark.asyncio
    async def test_stores_summary_with_usage(self, db_session, gateway, fake_llm):
        note = await note_store.create(db_session, OWNER, "Standup", "Shipped the login page")
        fake_llm.queue("- Shipped the login page")

        result = await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)

        assert result.summary.content == "- Shipped the login page"
        assert result.summary.note_id == note.id
        assert result.model == "fake-model"
        assert result.summary.model == "fake-model"
        assert result.usage.total_tokens == result.usage.prompt_tokens + result.usage.response_tokens
        assert await summary_count(db_session, note.id) == 1

    @pytest.mark.asyncio
    async def test_second_generation_replaces_first(self, db_session, gateway, fake_llm):
        note = await note_store.create(db_session, OWNER, "Standup", "Shipped the login page")
        fake_llm.queue("- first", "- second")

        await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)
        await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)

        assert await summary_count(db_session, note.id) == 1
        current = await summary_store.get_current(db_session, OWNER, str(note.id))
        assert current.content == "- second"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   \n\t"])
    async def test_blank_content_never_calls_ai(self, db_session, gateway, fake_llm, content):
        note = await note_store.create(db_session, OWNER, "Empty", content)

        with pytest.raises(EmptyContentError):
            await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)

        assert fake_llm.calls == []
        assert await summary_count(db_session, note.id) == 0

    @pytest.mark.asyncio
    async def test_token_limit_becomes_content_too_large(self, db_session, gateway, fake_llm):
        note = await note_store.create(db_session, OWNER, "Huge", "word " * 2000)
        # 2000 words fit the note limit but not a 1000-token budget
        gateway.estimator.limit = 1000

        with pytest.raises(ContentTooLargeError):
            await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)

        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_ai_failure_becomes_unavailable(self, db_session, gateway, fake_llm):
        note = await note_store.create(db_session, OWNER, "Standup", "content")
        fake_llm.queue(*[RuntimeError("503")] * 3)

        with pytest.raises(AIServiceUnavailableError):
            await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)

        assert len(fake_llm.calls) == 3
        assert await summary_count(db_session, note.id) == 0

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_summary(self, db_session, gateway, fake_llm):
        note = await note_store.create(db_session, OWNER, "Standup", "content")
        fake_llm.queue("- kept", *[RuntimeError("503")] * 3)

        await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)
        with pytest.raises(AIServiceUnavailableError):
            await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)

        current = await summary_store.get_current(db_session, OWNER, str(note.id))
        assert current.content == "- kept"

    @pytest.mark.asyncio
    async def test_note_lookup_errors(self, db_session, gateway, fake_llm):
        note = await note_store.create(db_session, OWNER, "Mine", "content")

        with pytest.raises(InvalidIdError):
            await summary_store.generate_and_store(db_session, OWNER, "nope", gateway)
        with pytest.raises(NotFoundError):
            await summary_store.generate_and_store(db_session, OWNER, str(uuid.uuid4()), gateway)
        with pytest.raises(NotFoundError):
            await summary_store.generate_and_store(db_session, OTHER_OWNER, str(note.id), gateway)

        assert fake_llm.calls == []


class TestGetCurrent:

    @pytest.mark.asyncio
    async def test_none_before_generation(self, db_session):
        note = await note_store.create(db_session, OWNER, "Fresh", "content")
        assert await summary_store.get_current(db_session, OWNER, str(note.id)) is None

    @pytest.mark.asyncio
    async def test_missing_note(self, db_session):
        with pytest.raises(NotFoundError):
            await summary_store.get_current(db_session, OWNER, str(uuid.uuid4()))


class TestCascade:

    @pytest.mark.asyncio
    @pytest.mark.filterwarnings("error::sqlalchemy.exc.SADeprecationWarning")
    async def test_deleting_note_removes_summary(self, db_session, gateway, fake_llm):
        note = await note_store.create(db_session, OWNER, "Doomed", "content")
        fake_llm.queue("- gone soon")
        await summary_store.generate_and_store(db_session, OWNER, str(note.id), gateway)

        await note_store.delete_permanently(db_session, OWNER, str(note.id))

        assert await summary_count(db_session, note.id) == 0
