"""In-process notification delivery."""

from src.infrastructure.notify.in_app import ActiveNotification, InAppNotifier

__all__ = ["InAppNotifier", "ActiveNotification"]
