"""Application use cases."""

from src.application.use_cases.check_notifications import CheckNotificationsUseCase
from src.application.use_cases.delete_reminder import DeleteReminderUseCase
from src.application.use_cases.manage_push_endpoint import (
    RegisterPushEndpointUseCase,
    UnregisterPushEndpointUseCase,
)
from src.application.use_cases.save_reminder import (
    CreateReminderUseCase,
    SaveReminderResult,
    SetReminderActiveUseCase,
    UpdateReminderUseCase,
)

__all__ = [
    "CreateReminderUseCase",
    "UpdateReminderUseCase",
    "SetReminderActiveUseCase",
    "SaveReminderResult",
    "DeleteReminderUseCase",
    "CheckNotificationsUseCase",
    "RegisterPushEndpointUseCase",
    "UnregisterPushEndpointUseCase",
]
