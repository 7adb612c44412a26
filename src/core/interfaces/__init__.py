"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.delivery import ILocalNotifier, IPushSender
from src.core.interfaces.storage import (
    IEndpointStore,
    IReminderReader,
    IReminderStore,
    IScheduleStore,
)

__all__ = [
    # Storage interfaces
    "IReminderReader",
    "IReminderStore",
    "IScheduleStore",
    "IEndpointStore",
    # Delivery interfaces
    "ILocalNotifier",
    "IPushSender",
]
