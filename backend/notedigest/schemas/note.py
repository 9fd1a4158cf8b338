"""
NoteDigest Backend: Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models for store inputs, API bodies and API responses.
How:   Input models carry the field constraints (title length, paging bounds,
       sort whitelist). The stores validate through them and convert the
       first failure into a ValidationError; FastAPI uses the response models
       for serialization and OpenAPI docs.

Schemas are separate from SQLAlchemy models: the API exposes exactly these
fields and nothing else.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from notedigest.models.note import CONTENT_MAX_LENGTH, TITLE_MAX_LENGTH

SortField = Literal["created_at", "updated_at", "title"]
SortOrder = Literal["asc", "desc"]

SEARCH_QUERY_MAX_LENGTH = 100


# ══════════════════════════════════════════════════════════════════════════
# Input Models: validated before any storage access
# ══════════════════════════════════════════════════════════════════════════


class NoteInput(BaseModel):
    """Title and content of a note being created or edited."""

    title: str = Field(max_length=TITLE_MAX_LENGTH)
    content: str = Field(default="", max_length=CONTENT_MAX_LENGTH)

    # Runs before the length rule so max_length applies to the stored, trimmed title
    @field_validator("title", mode="before")
    @classmethod
    def title_not_blank(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Title is required")
        return v


class ListParams(BaseModel):
    """Paging and sorting of a note listing."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_by: SortField = "updated_at"
    sort_order: SortOrder = "desc"


class SearchParams(ListParams):
    query: str = Field(min_length=1, max_length=SEARCH_QUERY_MAX_LENGTH)

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        # Searched and echoed back exactly as sent; surrounding spaces are part of the match
        if not v.strip():
            raise ValueError("Search query is required")
        return v


class NoteBody(BaseModel):
    """Request body for create, update and autosave. Validated again by NoteStore."""

    title: str
    content: str = ""


class GenerateTextRequest(BaseModel):
    prompt: str = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str
    content: str
    is_archived: bool
    created_at: datetime = Field(description="Creation timestamp (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last mutation timestamp (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class PaginationInfo(BaseModel):
    """
    Offset pagination metadata.

    total_pages = ceil(total_count / limit); has_next_page is
    current_page < total_pages; has_prev_page is current_page > 1.
    """

    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class SortInfo(BaseModel):
    sort_by: SortField
    sort_order: SortOrder


class NoteListResponse(BaseModel):
    notes: List[NoteResponse]
    pagination: PaginationInfo
    sort: SortInfo


class SearchInfo(BaseModel):
    query: str
    result_count: int = Field(description="Total matches across all pages")


class SearchResponse(NoteListResponse):
    search: SearchInfo


class TokenUsage(BaseModel):
    """Estimated (not billed) token counts for one AI call."""

    prompt_tokens: int = Field(ge=0)
    response_tokens: int = Field(ge=0)
    total_tokens: int = Field(ge=0)


class AIResponse(BaseModel):
    data: str
    usage: TokenUsage
    model: str
    timestamp: datetime


class SummaryResponse(BaseModel):
    id: uuid.UUID
    note_id: uuid.UUID
    model: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class SummaryGenerationResponse(BaseModel):
    summary: SummaryResponse
    usage: TokenUsage
    model: str


class TagsAIResponse(BaseModel):
    """Tag generation result: the same envelope as AIResponse with the parsed tag list as data."""

    data: List[str] = Field(description="At most 6 tags, in the order the model returned them")
    usage: TokenUsage
    model: str
    timestamp: datetime


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "not_archived",
            "message": "Note '...' is not archived",
            "details": {"note_id": "..."},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class AIHealthResponse(BaseModel):
    healthy: bool
    model: str


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    ai: str = Field(description="available or unavailable")
    uptime_seconds: float
