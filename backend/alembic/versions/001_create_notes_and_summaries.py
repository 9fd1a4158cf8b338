"""Create notes and summaries tables

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

notes:      owner-scoped user notes with an archive flag
summaries:  at most one AI summary per note (unique note_id), removed with
            the note (ON DELETE CASCADE)

Rollback: downgrade() drops both tables (all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "owner_id",
            sa.String(255),
            nullable=False,
            comment="Opaque owner id from the identity provider",
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Every listing filters on owner_id and sorts by one of these columns
    op.create_index("idx_notes_owner_id", "notes", ["owner_id"])
    op.create_index("idx_notes_owner_updated", "notes", ["owner_id", "updated_at"])
    op.create_index("idx_notes_owner_created", "notes", ["owner_id", "created_at"])
    op.create_index("idx_notes_owner_title", "notes", ["owner_id", "title"])

    op.create_table(
        "summaries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("note_id", sa.Uuid(), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("uq_summaries_note_id", "summaries", ["note_id"], unique=True)
    op.create_index("idx_summaries_note_created", "summaries", ["note_id", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_summaries_note_created", table_name="summaries")
    op.drop_index("uq_summaries_note_id", table_name="summaries")
    op.drop_table("summaries")

    op.drop_index("idx_notes_owner_title", table_name="notes")
    op.drop_index("idx_notes_owner_created", table_name="notes")
    op.drop_index("idx_notes_owner_updated", table_name="notes")
    op.drop_index("idx_notes_owner_id", table_name="notes")
    op.drop_table("notes")
