"""
NoteDigest Backend: Summary Store
===================================

What:  Generates a note's AI summary and keeps exactly one current summary
       row per note.
Why:   The AI call is slow and can fail; the stored summary must only ever
       change to a complete new one, never to nothing.
How:   Fetch the note (owner-scoped) → refuse blank content → call the AI
       gateway → lock the note row, delete its summaries and insert the new
       one, all inside the request's transaction.
Who:   Called by the /api/notes/{id}/summary routes.

Failure translation (the caller sees user-facing errors only):
    TokenLimitExceededError → ContentTooLargeError
    anything else from AI   → AIServiceUnavailableError

Concurrency:
    Two simultaneous generations for the same note serialize on the row lock
    (SELECT ... FOR UPDATE on PostgreSQL). The unique index on
    summaries.note_id rejects any second row that slips past it.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from notedigest.exceptions import (
    AIServiceUnavailableError,
    ContentTooLargeError,
    EmptyContentError,
    NoteDigestError,
    TokenLimitExceededError,
)
from notedigest.models.note import Note, Summary
from notedigest.schemas.note import SummaryGenerationResponse, SummaryResponse
from notedigest.services.ai_gateway import AIGateway
from notedigest.services.note_store import note_store, storage_errors

logger = logging.getLogger(__name__)


class SummaryStore:
    """Single-current-summary persistence on top of AIGateway."""

    async def generate_and_store(
        self,
        db: AsyncSession,
        owner_id: str,
        note_id: str,
        gateway: AIGateway,
    ) -> SummaryGenerationResponse:
        """
        Generates a fresh summary and replaces any existing one.

        Raises:
            InvalidIdError / NotFoundError: note id malformed or not visible
            EmptyContentError: note content is blank (the AI is not called)
            ContentTooLargeError: content exceeds the token budget
            AIServiceUnavailableError: any other AI failure
            DatabaseError: the replace step failed
        """
        note = await note_store.get_by_id(db, owner_id, note_id)

        if not note.content or not note.content.strip():
            raise EmptyContentError(note_id)

        try:
            response = await gateway.generate_summary(note.content)
        except TokenLimitExceededError as e:
            raise ContentTooLargeError(context=e.context)
        except Exception as e:
            logger.error("Summary generation failed for note %s: %s", note_id, e)
            context = {"note_id": note_id, "error_type": type(e).__name__}
            if isinstance(e, NoteDigestError):
                context["reason"] = e.message
            raise AIServiceUnavailableError(context=context)

        with storage_errors("save the summary", note_id=note_id):
            # Why lock the note row: two concurrent generations would otherwise
            # both delete, then both insert. The second waits here instead.
            await db.execute(select(Note.id).where(Note.id == note.id).with_for_update())
            await db.execute(delete(Summary).where(Summary.note_id == note.id))
            # Why delete-then-insert in one transaction: a failed insert rolls
            # back the delete too, so the previous summary survives
            summary = Summary(note_id=note.id, model=response.model, content=response.data)
            db.add(summary)
            await db.flush()

        logger.info(
            "Summary stored for note %s (model=%s, tokens=%d)",
            note_id,
            response.model,
            response.usage.total_tokens,
        )

        return SummaryGenerationResponse(
            summary=SummaryResponse.model_validate(summary),
            usage=response.usage,
            model=response.model,
        )

    async def get_current(
        self, db: AsyncSession, owner_id: str, note_id: str
    ) -> Optional[Summary]:
        """The note's most recent summary, or None when none was generated yet."""
        note = await note_store.get_by_id(db, owner_id, note_id)
        with storage_errors("retrieve the summary", note_id=note_id):
            result = await db.execute(
                select(Summary)
                .where(Summary.note_id == note.id)
                .order_by(Summary.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()


# ── Singleton Instance ────────────────────────────────────────────────────
summary_store = SummaryStore()
