"""
NoteDigest Backend: Health Check Route
========================================

What:  Aggregate health for monitoring and load balancer probes.
How:   SELECT 1 against the database, then one AI health probe.

Status levels:
    - healthy:   database and AI reachable
    - degraded:  database reachable, AI not (notes work, AI features fail)
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text

from notedigest import __version__
from notedigest import database
from notedigest.routes.deps import get_ai_gateway
from notedigest.schemas.note import HealthResponse
from notedigest.services.ai_gateway import AIGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(gateway: AIGateway = Depends(get_ai_gateway)) -> HealthResponse:
    db_status = "connected"
    ai_status = "available"
    overall = "healthy"

    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)

    if not await gateway.health_check():
        ai_status = "unavailable"
        if overall == "healthy":
            overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        ai=ai_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
