"""Push endpoint registration use cases."""

from src.application.dto.requests import PushSubscribeRequest
from src.config import get_logger
from src.core.entities.notification import DeliveryEndpoint, EndpointKeys
from src.core.interfaces.storage import IEndpointStore

logger = get_logger(__name__)


class RegisterPushEndpointUseCase:
    """Upsert a browser push subscription by endpoint URL."""

    def __init__(self, endpoint_store: IEndpointStore):
        self._store = endpoint_store

    async def execute(self, request: PushSubscribeRequest) -> DeliveryEndpoint:
        endpoint = DeliveryEndpoint(
            endpoint_url=request.endpoint,
            keys=EndpointKeys(p256dh=request.keys.p256dh, auth=request.keys.auth),
        )
        return await self._store.register(endpoint)


class UnregisterPushEndpointUseCase:
    """Remove a subscription; unknown URLs are not an error."""

    def __init__(self, endpoint_store: IEndpointStore):
        self._store = endpoint_store

    async def execute(self, endpoint_url: str) -> bool:
        removed = await self._store.unregister(endpoint_url)
        if not removed:
            logger.debug("push_endpoint_unknown")
        return removed
