"""
External trigger endpoint.

An outside scheduler (cron) calls this periodically; each call runs one
push fan-out pass over the due schedule entries.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_check_notifications_use_case, verify_cron_secret
from src.application.dto.responses import CronCheckResponse, ErrorResponse
from src.application.use_cases import CheckNotificationsUseCase

router = APIRouter(prefix="/api/cron", tags=["cron"])


@router.get(
    "/check-notifications",
    response_model=CronCheckResponse,
    dependencies=[Depends(verify_cron_secret)],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def check_notifications(
    use_case: CheckNotificationsUseCase = Depends(get_check_notifications_use_case),
) -> CronCheckResponse:
    """Send every due notification to every registered push endpoint."""
    result = await use_case.execute()
    return CronCheckResponse(
        checked=result.checked,
        sent=result.sent,
        failed=result.failed,
        pruned=result.pruned,
        timestamp=result.timestamp,
    )
