"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from src.api.dependencies import get_services
from src.application.dto.responses import ComponentHealthResponse, HealthResponse
from src.application.services import ServiceContainer

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(
    services: ServiceContainer = Depends(get_services),
) -> HealthResponse:
    """
    Service health check.

    Tests SQLite connectivity and reports dispatcher and push status.
    """
    status_str = "healthy"

    db_status = ComponentHealthResponse(name="sqlite", available=False)
    try:
        start = time.time()
        async with services.pool.acquire() as conn:
            await conn.execute("SELECT 1")
        db_status = ComponentHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=(time.time() - start) * 1000,
        )
    except Exception as e:
        db_status.error = str(e)
        status_str = "unhealthy"

    dispatcher_status = ComponentHealthResponse(
        name="local_dispatcher",
        available=services.dispatcher.is_running,
    )
    if services.settings.scheduler.dispatcher_enabled and not dispatcher_status.available:
        dispatcher_status.error = "dispatcher loop is not running"
        if status_str == "healthy":
            status_str = "degraded"

    push_status = ComponentHealthResponse(
        name="webpush",
        available=services.push_sender.configured,
        error=None if services.push_sender.configured else "VAPID keys not configured",
    )

    return HealthResponse(
        status=status_str,
        version=services.settings.app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
        dispatcher=dispatcher_status,
        push=push_status,
    )
