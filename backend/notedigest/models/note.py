"""
NoteDigest Backend: Note and Summary SQLAlchemy Models
========================================================

What:  ORM models for the `notes` and `summaries` tables.
How:   Inherit from the shared DeclarativeBase; Alembic mirrors them in
       migration 001.
Who:   Used by NoteStore and SummaryStore, and by the test suite to create
       the schema on SQLite.

Table Design:
    - UUID primary keys, generated in Python so SQLite and PostgreSQL agree
    - owner_id is an opaque string from the identity provider; every query
      filters on it
    - summaries.note_id cascades on delete and is unique: a note has at most
      one summary row at any time. There is no ORM relationship; deleting a
      note leaves summary cleanup to the database's ON DELETE CASCADE
"""

import uuid
from datetime import datetime
from sqlalchemy import Boolean, ForeignKey, Index, String, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from notedigest.database import Base
from notedigest.models.base import UTCDateTime, utcnow

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 10_000


class Note(Base):
    """
    A user's text note.

    Lifecycle:
        active ──archive──▶ archived ──restore──▶ active
        active | archived ──delete_permanently──▶ (row gone, summaries cascade)

    Invariants: title is never empty, content is at most 10,000 characters,
    updated_at >= created_at.
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Opaque owner id from the identity provider",
    )

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")

    is_archived: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_notes_owner_id", "owner_id"),
        Index("idx_notes_owner_updated", "owner_id", "updated_at"),
        Index("idx_notes_owner_created", "owner_id", "created_at"),
        Index("idx_notes_owner_title", "owner_id", "title"),
    )

    def touch(self) -> None:
        """Bumps updated_at, never letting it fall behind created_at."""
        now = utcnow()
        self.updated_at = max(now, self.created_at) if self.created_at else now

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, owner_id='{self.owner_id}', "
            f"archived={self.is_archived})>"
        )


class Summary(Base):
    """The AI-generated bullet summary of a note. Replaced, never edited."""

    __tablename__ = "summaries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )

    model: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        # Why unique: the one-summary-per-note rule holds even if a writer
        # skips the row lock in SummaryStore
        Index("uq_summaries_note_id", "note_id", unique=True),
        Index("idx_summaries_note_created", "note_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Summary(id={self.id}, note_id={self.note_id}, model='{self.model}')>"
