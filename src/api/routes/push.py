"""
Push subscription endpoints.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import (
    get_app_settings,
    get_register_endpoint_use_case,
    get_unregister_endpoint_use_case,
)
from src.application.dto.requests import PushSubscribeRequest, PushUnsubscribeRequest
from src.application.dto.responses import ErrorResponse, SuccessResponse, VapidKeyResponse
from src.application.use_cases import (
    RegisterPushEndpointUseCase,
    UnregisterPushEndpointUseCase,
)
from src.config import Settings

router = APIRouter(prefix="/api/push", tags=["push"])


@router.get("/vapid-public-key", response_model=VapidKeyResponse)
async def vapid_public_key(
    settings: Settings = Depends(get_app_settings),
) -> VapidKeyResponse:
    """Application server key for PushManager.subscribe()."""
    return VapidKeyResponse(
        public_key=settings.push.vapid_public_key,
        enabled=settings.push.enabled,
    )


@router.post(
    "/subscribe",
    response_model=SuccessResponse,
    responses={422: {"model": ErrorResponse}},
)
async def subscribe(
    request: PushSubscribeRequest,
    use_case: RegisterPushEndpointUseCase = Depends(get_register_endpoint_use_case),
) -> SuccessResponse:
    """Register (or refresh) a push subscription."""
    await use_case.execute(request)
    return SuccessResponse(success=True)


@router.post(
    "/unsubscribe",
    response_model=SuccessResponse,
    responses={422: {"model": ErrorResponse}},
)
async def unsubscribe(
    request: PushUnsubscribeRequest,
    use_case: UnregisterPushEndpointUseCase = Depends(get_unregister_endpoint_use_case),
) -> SuccessResponse:
    """Remove a push subscription; unknown endpoints report success=false."""
    removed = await use_case.execute(request.endpoint)
    return SuccessResponse(success=removed)
