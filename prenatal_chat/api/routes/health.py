"""Dependency-aware health probe.

GET /api/health checks the store with ``SELECT 1`` and the AI service with
its liveness endpoint (5 s ceiling). Either failing yields 503.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prenatal_chat.api.dependencies import get_gateway
from prenatal_chat.api.schemas import HealthResponse
from prenatal_chat.db.connection import get_db, ping
from prenatal_chat.db.models import utc_now
from prenatal_chat.services.ai_gateway_client import AIGatewayClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(
    db: Session = Depends(get_db),
    gateway: AIGatewayClient = Depends(get_gateway),
):
    """Probe the store and the AI service."""
    database_ok = True
    error = None
    try:
        ping(db)
    except SQLAlchemyError as e:
        logger.warning("Health check: database unreachable: %s", e)
        database_ok = False
        error = str(e)

    gateway_ok = gateway.ping()
    if not gateway_ok and error is None:
        error = f"AI service unreachable at {gateway.base_url}"

    result = HealthResponse(
        status="healthy" if database_ok and gateway_ok else "unhealthy",
        database="connected" if database_ok else "error",
        ai_service="connected" if gateway_ok else "error",
        timestamp=utc_now(),
        error=error,
    )
    if result.status == "unhealthy":
        return JSONResponse(status_code=503, content=result.model_dump(mode="json"))
    return result
