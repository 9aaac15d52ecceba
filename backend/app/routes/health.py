"""
Portcullis Backend - Health Check Route
=======================================

What:  Liveness probe for load balancers and container health checks.
How:   Answers as long as the process is serving; it does not touch the
       database, so a slow database never flaps the probe.
       Not rate limited and not access-logged.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from app.schemas.envelope import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))
