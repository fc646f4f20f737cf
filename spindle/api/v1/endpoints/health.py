"""Health check endpoint. No dependencies; used for liveness and readiness probes."""

from fastapi import APIRouter

from spindle.core.config import get_settings
from spindle.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get("/ready", response_model=ReadinessResponse)
def readiness_check() -> ReadinessResponse:
    """Report whether the content store has a database configured."""
    configured = bool(get_settings().database_url)
    return ReadinessResponse(
        status="ok" if configured else "degraded", database=configured
    )
