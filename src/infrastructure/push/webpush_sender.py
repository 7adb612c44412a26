"""
Web push transport backed by pywebpush.

pywebpush is synchronous (requests); each call runs in a worker thread
so the event loop is never blocked.
"""

import asyncio

from pywebpush import WebPushException, webpush

from src.config import get_logger
from src.config.settings import PushSettings
from src.core.entities.notification import DeliveryEndpoint, PushPayload
from src.core.exceptions import PushDeliveryError, PushGoneError
from src.core.interfaces.delivery import IPushSender

logger = get_logger(__name__)

# Provider responses meaning the subscription no longer exists
GONE_STATUS_CODES = frozenset({404, 410})


class WebPushSender(IPushSender):
    """Sends payloads to browser push services with VAPID authentication."""

    def __init__(
        self,
        vapid_private_key: str | None,
        vapid_subject: str,
        ttl_seconds: int = 86400,
        urgency: str = "high",
        timeout_seconds: float = 10.0,
    ):
        self._private_key = vapid_private_key
        self._subject = vapid_subject
        self._ttl = ttl_seconds
        self._urgency = urgency
        self._timeout = timeout_seconds

    @classmethod
    def from_settings(cls, push: PushSettings) -> "WebPushSender":
        return cls(
            vapid_private_key=push.vapid_private_key,
            vapid_subject=push.vapid_subject,
            ttl_seconds=push.ttl_seconds,
            urgency=push.urgency,
            timeout_seconds=push.timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self._private_key)

    async def send(self, endpoint: DeliveryEndpoint, payload: PushPayload) -> None:
        """
        Deliver one payload.

        Raises:
            PushGoneError: Provider answered 404 or 410
            PushDeliveryError: Any other failure
        """
        if not self.configured:
            raise PushDeliveryError(endpoint.endpoint_url, "VAPID private key is not configured")

        await asyncio.to_thread(self._send_sync, endpoint, payload.to_json())

    def _send_sync(self, endpoint: DeliveryEndpoint, data: str) -> None:
        try:
            webpush(
                subscription_info=endpoint.subscription_info(),
                data=data,
                vapid_private_key=self._private_key,
                # pywebpush adds aud/exp to the claims dict it is given
                vapid_claims={"sub": self._subject},
                ttl=self._ttl,
                timeout=self._timeout,
                headers={"Urgency": self._urgency},
            )
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            if status_code in GONE_STATUS_CODES:
                raise PushGoneError(endpoint.endpoint_url, status_code) from e
            raise PushDeliveryError(endpoint.endpoint_url, str(e), status_code) from e
        except Exception as e:
            raise PushDeliveryError(endpoint.endpoint_url, str(e)) from e
