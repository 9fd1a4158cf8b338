"""
NoteDigest Backend: Notes Routes
==================================

What:  HTTP endpoints for notes, their lifecycle and their AI features.
How:   Thin handlers: read the owner id and parameters, call NoteStore /
       SummaryStore / AIGateway, serialize. Validation and error mapping
       happen below (stores) and above (global exception handler).

Endpoints:
    POST   /api/notes                    create (201)
    GET    /api/notes                    active notes, paginated
    GET    /api/notes/archived           archived notes, paginated
    GET    /api/notes/search             search active notes
    GET    /api/notes/{id}               one note
    PUT    /api/notes/{id}               update
    PATCH  /api/notes/{id}/autosave      autosave (204)
    DELETE /api/notes/{id}               permanent delete (204)
    POST   /api/notes/{id}/archive       archive
    POST   /api/notes/{id}/restore       restore
    POST   /api/notes/{id}/summary       generate + store summary (201)
    GET    /api/notes/{id}/summary       current summary or null
    POST   /api/notes/{id}/tags          generate tags for the note content

Route order matters: /archived and /search are declared before /{note_id}.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from notedigest.database import get_db_session
from notedigest.exceptions import EmptyContentError
from notedigest.routes.deps import get_ai_gateway, get_owner_id
from notedigest.schemas.note import (
    ErrorResponse,
    NoteBody,
    NoteListResponse,
    NoteResponse,
    SearchResponse,
    SummaryGenerationResponse,
    SummaryResponse,
    TagsAIResponse,
)
from notedigest.services.ai_gateway import AIGateway
from notedigest.services.note_store import note_store
from notedigest.services.summary_store import summary_store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/notes",
    tags=["Notes"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or note id"},
        401: {"model": ErrorResponse, "description": "Missing X-Owner-ID header"},
        404: {"model": ErrorResponse, "description": "Note not found"},
    },
)


# ── Collection ────────────────────────────────────────────────────────────


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    body: NoteBody,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    note = await note_store.create(db, owner_id, body.title, body.content)
    return NoteResponse.model_validate(note)


@router.get("", response_model=NoteListResponse, summary="List active notes")
async def list_notes(
    page: int = Query(default=1),
    limit: int = Query(default=10),
    sort_by: str = Query(default="updated_at"),
    sort_order: str = Query(default="desc"),
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    return await note_store.list(
        db, owner_id, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )


@router.get("/archived", response_model=NoteListResponse, summary="List archived notes")
async def list_archived_notes(
    page: int = Query(default=1),
    limit: int = Query(default=10),
    sort_by: str = Query(default="updated_at"),
    sort_order: str = Query(default="desc"),
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    return await note_store.list(
        db,
        owner_id,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        archived=True,
    )


@router.get("/search", response_model=SearchResponse, summary="Search active notes")
async def search_notes(
    q: str = Query(default="", description="Substring matched against title and content"),
    page: int = Query(default=1),
    limit: int = Query(default=10),
    sort_by: str = Query(default="updated_at"),
    sort_order: str = Query(default="desc"),
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> SearchResponse:
    return await note_store.search(
        db,
        owner_id,
        q,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


# ── Single Note ───────────────────────────────────────────────────────────


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    note = await note_store.get_by_id(db, owner_id, note_id)
    return NoteResponse.model_validate(note)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: str,
    body: NoteBody,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    note = await note_store.update(db, owner_id, note_id, body.title, body.content)
    return NoteResponse.model_validate(note)


@router.patch("/{note_id}/autosave", status_code=status.HTTP_204_NO_CONTENT)
async def autosave_note(
    note_id: str,
    body: NoteBody,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_store.auto_save(db, owner_id, note_id, body.title, body.content)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_store.delete_permanently(db, owner_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{note_id}/archive",
    response_model=NoteResponse,
    responses={409: {"model": ErrorResponse, "description": "Already archived"}},
)
async def archive_note(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    note = await note_store.archive(db, owner_id, note_id)
    return NoteResponse.model_validate(note)


@router.post(
    "/{note_id}/restore",
    response_model=NoteResponse,
    responses={409: {"model": ErrorResponse, "description": "Not archived"}},
)
async def restore_note(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    note = await note_store.restore(db, owner_id, note_id)
    return NoteResponse.model_validate(note)


# ── AI Features ───────────────────────────────────────────────────────────


@router.post(
    "/{note_id}/summary",
    response_model=SummaryGenerationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        413: {"model": ErrorResponse, "description": "Note too long to summarize"},
        422: {"model": ErrorResponse, "description": "Note has no content"},
        503: {"model": ErrorResponse, "description": "AI service unavailable"},
    },
)
async def generate_summary(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
    gateway: AIGateway = Depends(get_ai_gateway),
) -> SummaryGenerationResponse:
    return await summary_store.generate_and_store(db, owner_id, note_id, gateway)


@router.get("/{note_id}/summary", response_model=Optional[SummaryResponse])
async def get_summary(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[SummaryResponse]:
    summary = await summary_store.get_current(db, owner_id, note_id)
    if summary is None:
        return None
    return SummaryResponse.model_validate(summary)


@router.post(
    "/{note_id}/tags",
    response_model=TagsAIResponse,
    responses={
        413: {"model": ErrorResponse, "description": "Note exceeds the token budget"},
        503: {"model": ErrorResponse, "description": "AI calls exhausted their retries"},
    },
)
async def generate_tags(
    note_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db_session),
    gateway: AIGateway = Depends(get_ai_gateway),
) -> TagsAIResponse:
    note = await note_store.get_by_id(db, owner_id, note_id)
    if not note.content.strip():
        raise EmptyContentError(note_id)
    response = await gateway.generate_tags(note.content)
    logger.info("Generated %d tags for note %s", len(response.data), note_id)
    return response
