"""Data Transfer Objects for API contracts."""

from src.application.dto.requests import (
    CreateReminderRequest,
    NotificationActionRequest,
    PushSubscribeRequest,
    PushUnsubscribeRequest,
    SubscriptionKeys,
    UpdateReminderRequest,
)
from src.application.dto.responses import (
    ActiveNotificationListResponse,
    ActiveNotificationResponse,
    ComponentHealthResponse,
    CronCheckResponse,
    ErrorResponse,
    HealthResponse,
    NotificationActionResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderScheduleResponse,
    ScheduledNotificationResponse,
    SuccessResponse,
    VapidKeyResponse,
)

__all__ = [
    # Requests
    "CreateReminderRequest",
    "UpdateReminderRequest",
    "PushSubscribeRequest",
    "PushUnsubscribeRequest",
    "SubscriptionKeys",
    "NotificationActionRequest",
    # Responses
    "ReminderResponse",
    "ReminderListResponse",
    "ScheduledNotificationResponse",
    "ReminderScheduleResponse",
    "CronCheckResponse",
    "SuccessResponse",
    "VapidKeyResponse",
    "ActiveNotificationResponse",
    "ActiveNotificationListResponse",
    "NotificationActionResponse",
    "ComponentHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]
