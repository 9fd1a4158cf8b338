"""
NoteDigest Backend: AI Routes
===============================

    POST /api/ai/generate   free-form text generation (budget-checked, retried)
    GET  /api/ai/health     one un-retried probe of the model endpoint
"""

from fastapi import APIRouter, Depends

from notedigest.routes.deps import get_ai_gateway, get_owner_id
from notedigest.schemas.note import (
    AIHealthResponse,
    AIResponse,
    ErrorResponse,
    GenerateTextRequest,
)
from notedigest.services.ai_gateway import AIGateway

router = APIRouter(prefix="/api/ai", tags=["AI"])


@router.post(
    "/generate",
    response_model=AIResponse,
    responses={
        413: {"model": ErrorResponse, "description": "Prompt exceeds the token budget"},
        503: {"model": ErrorResponse, "description": "All attempts failed"},
    },
)
async def generate_text(
    body: GenerateTextRequest,
    owner_id: str = Depends(get_owner_id),
    gateway: AIGateway = Depends(get_ai_gateway),
) -> AIResponse:
    return await gateway.generate_text(body.prompt)


@router.get("/health", response_model=AIHealthResponse)
async def ai_health(gateway: AIGateway = Depends(get_ai_gateway)) -> AIHealthResponse:
    healthy = await gateway.health_check()
    return AIHealthResponse(healthy=healthy, model=gateway.model_name)
