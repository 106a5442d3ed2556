"""Health check endpoint."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter

from mp3grab.api.schemas import HealthResponse

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return the liveness status of the application."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        uptime=round(time.monotonic() - _STARTED_AT, 3),
    )
