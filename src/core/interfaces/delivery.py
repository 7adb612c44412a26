"""
Abstract interfaces for notification delivery channels.
"""

from abc import ABC, abstractmethod

from src.core.entities.notification import DeliveryEndpoint, PushPayload


class ILocalNotifier(ABC):
    """
    In-process notification surface.

    Implementations raise LocalDeliveryError when the surface refuses the
    notification (permission revoked, surface unavailable).
    """

    @abstractmethod
    async def show(self, payload: PushPayload) -> None:
        """Show a notification. Same-tag notifications replace each other."""
        pass


class IPushSender(ABC):
    """
    Remote push transport.

    Implementations raise PushGoneError when the provider reports the
    endpoint as permanently gone and PushDeliveryError for anything else.
    """

    @abstractmethod
    async def send(self, endpoint: DeliveryEndpoint, payload: PushPayload) -> None:
        """Deliver one payload to one endpoint."""
        pass
