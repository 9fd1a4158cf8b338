"""
NoteDigest Backend: Note Store
================================

What:  Owner-scoped persistence and lifecycle rules for notes.
Why:   Keeps ownership checks, validation and state-transition rules in one
       place so routes stay thin and SummaryStore reuses the same lookups.
How:   Stateless service; every method receives the request's AsyncSession
       and the caller's owner id. Inputs are validated through pydantic
       models before the database is touched; the first violated constraint
       becomes a ValidationError.
Who:   Called by the /api/notes routes and by SummaryStore.

Lifecycle:
    create ──▶ active ──archive──▶ archived ──restore──▶ active
               active | archived ──delete_permanently──▶ gone (summaries cascade)

Visibility:
    Every query filters on owner_id. A note owned by someone else is reported
    exactly like a missing one (NotFoundError), so ids cannot be probed.

Transactions:
    Methods flush but never commit; get_db_session commits once per request.
"""

import logging
import math
import re
import uuid
from contextlib import contextmanager
from typing import Iterator, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notedigest.exceptions import (
    AlreadyArchivedError,
    DatabaseError,
    InvalidIdError,
    NotArchivedError,
    NotFoundError,
    ValidationError,
)
from notedigest.models.base import utcnow
from notedigest.models.note import Note
from notedigest.schemas.note import (
    ListParams,
    NoteInput,
    NoteListResponse,
    NoteResponse,
    PaginationInfo,
    SearchInfo,
    SearchParams,
    SearchResponse,
    SortInfo,
)

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

SORT_COLUMNS = {
    "created_at": Note.created_at,
    "updated_at": Note.updated_at,
    "title": Note.title,
}

M = TypeVar("M", bound=BaseModel)


def parse_note_id(note_id: str) -> uuid.UUID:
    """Checks the 8-4-4-4-12 hex shape; raises InvalidIdError without any lookup."""
    if not isinstance(note_id, str) or not UUID_PATTERN.match(note_id):
        raise InvalidIdError(str(note_id))
    return uuid.UUID(note_id)


def validate_input(model: Type[M], **data) -> M:
    """Builds `model` from `data`, reporting only the first violated constraint."""
    try:
        return model(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        if first["type"] == "value_error":
            message = str(first["ctx"]["error"])
        else:
            message = f"Invalid {field}: {first['msg']}"
        raise ValidationError(message=message, field=field)


def escape_like(value: str) -> str:
    # Why: `%` and `_` typed by a user must match literally, not as LIKE
    # wildcards; the backslash itself is escaped first so it cannot pair up
    # with a following character. Used with ilike(..., escape="\\").
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@contextmanager
def storage_errors(action: str, **context) -> Iterator[None]:
    """Wraps SQLAlchemy failures in DatabaseError; the driver message stays in the logs."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Database error while trying to %s: %s", action, e, exc_info=True)
        raise DatabaseError(
            message=f"Could not {action}. Please try again.",
            context={**context, "error_type": type(e).__name__},
        )


class NoteStore:
    """
    CRUD, lifecycle transitions, listing and search for notes.

    Single-note methods return the ORM Note; listing and search return
    response models with pagination metadata.
    """

    async def _get_owned(self, db: AsyncSession, owner_id: str, note_id: str) -> Note:
        note_uuid = parse_note_id(note_id)
        # Why owner_id in the WHERE clause (not a check after loading): another
        # owner's note is indistinguishable from a missing one
        with storage_errors("retrieve the note", note_id=note_id):
            result = await db.execute(
                select(Note).where(Note.id == note_uuid, Note.owner_id == owner_id)
            )
            note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return note

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create(
        self, db: AsyncSession, owner_id: str, title: str, content: str = ""
    ) -> Note:
        data = validate_input(NoteInput, title=title, content=content)
        now = utcnow()
        note = Note(
            owner_id=owner_id,
            title=data.title,
            content=data.content,
            created_at=now,
            updated_at=now,
        )
        with storage_errors("create the note"):
            db.add(note)
            await db.flush()
        logger.info("Note created: %s (owner=%s)", note.id, owner_id)
        return note

    async def get_by_id(self, db: AsyncSession, owner_id: str, note_id: str) -> Note:
        return await self._get_owned(db, owner_id, note_id)

    async def update(
        self, db: AsyncSession, owner_id: str, note_id: str, title: str, content: str
    ) -> Note:
        parse_note_id(note_id)
        data = validate_input(NoteInput, title=title, content=content)
        note = await self._get_owned(db, owner_id, note_id)
        note.title = data.title
        note.content = data.content
        note.touch()
        with storage_errors("update the note", note_id=note_id):
            await db.flush()
        logger.info("Note updated: %s", note.id)
        return note

    async def auto_save(
        self, db: AsyncSession, owner_id: str, note_id: str, title: str, content: str
    ) -> None:
        """Same rules as update(); autosave callers only need success or an error."""
        await self.update(db, owner_id, note_id, title, content)

    async def delete_permanently(self, db: AsyncSession, owner_id: str, note_id: str) -> None:
        note = await self._get_owned(db, owner_id, note_id)
        with storage_errors("delete the note", note_id=note_id):
            await db.delete(note)
            await db.flush()
        logger.info("Note permanently deleted: %s", note_id)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def archive(self, db: AsyncSession, owner_id: str, note_id: str) -> Note:
        note = await self._get_owned(db, owner_id, note_id)
        if note.is_archived:
            raise AlreadyArchivedError(note_id)
        note.is_archived = True
        note.touch()
        with storage_errors("archive the note", note_id=note_id):
            await db.flush()
        logger.info("Note archived: %s", note_id)
        return note

    async def restore(self, db: AsyncSession, owner_id: str, note_id: str) -> Note:
        note = await self._get_owned(db, owner_id, note_id)
        if not note.is_archived:
            raise NotArchivedError(note_id)
        note.is_archived = False
        note.touch()
        with storage_errors("restore the note", note_id=note_id):
            await db.flush()
        logger.info("Note restored: %s", note_id)
        return note

    # ── Listing & Search ──────────────────────────────────────────────────

    async def _page(self, db: AsyncSession, filters: Sequence, params: ListParams):
        """Runs the count and page queries for `filters`; returns (notes, pagination, sort)."""
        column = SORT_COLUMNS[params.sort_by]
        ordering = column.asc() if params.sort_order == "asc" else column.desc()

        count_query = select(func.count()).select_from(Note).where(*filters)
        page_query = (
            select(Note)
            .where(*filters)
            .order_by(ordering, Note.id)
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
        )

        with storage_errors("retrieve notes"):
            total_count = (await db.execute(count_query)).scalar() or 0
            notes = list((await db.execute(page_query)).scalars().all())

        total_pages = math.ceil(total_count / params.limit)
        pagination = PaginationInfo(
            current_page=params.page,
            total_pages=total_pages,
            total_count=total_count,
            limit=params.limit,
            has_next_page=params.page < total_pages,
            has_prev_page=params.page > 1,
        )
        sort = SortInfo(sort_by=params.sort_by, sort_order=params.sort_order)
        return [NoteResponse.model_validate(n) for n in notes], pagination, sort

    async def list(
        self,
        db: AsyncSession,
        owner_id: str,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
        archived: bool = False,
    ) -> NoteListResponse:
        params = validate_input(
            ListParams, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
        )
        filters = [Note.owner_id == owner_id, Note.is_archived == archived]
        notes, pagination, sort = await self._page(db, filters, params)
        return NoteListResponse(notes=notes, pagination=pagination, sort=sort)

    async def search(
        self,
        db: AsyncSession,
        owner_id: str,
        query: str,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
    ) -> SearchResponse:
        """Case-insensitive substring match on title or content, active notes only."""
        params = validate_input(
            SearchParams,
            query=query,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        pattern = f"%{escape_like(params.query)}%"
        filters = [
            Note.owner_id == owner_id,
            Note.is_archived.is_(False),
            or_(
                Note.title.ilike(pattern, escape="\\"),
                Note.content.ilike(pattern, escape="\\"),
            ),
        ]
        notes, pagination, sort = await self._page(db, filters, params)
        logger.info("Search '%s' matched %d notes", params.query, pagination.total_count)
        return SearchResponse(
            notes=notes,
            pagination=pagination,
            sort=sort,
            search=SearchInfo(query=params.query, result_count=pagination.total_count),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
note_store = NoteStore()
