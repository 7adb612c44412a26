"""
Dependency injection for FastAPI.

Route handlers receive stores, services and use cases built from the
ServiceContainer that the lifespan places on `app.state.services`.
"""

import secrets

from fastapi import Depends, HTTPException, Request, status

from src.application.services import ServiceContainer
from src.application.use_cases import (
    CheckNotificationsUseCase,
    CreateReminderUseCase,
    DeleteReminderUseCase,
    RegisterPushEndpointUseCase,
    SetReminderActiveUseCase,
    UnregisterPushEndpointUseCase,
    UpdateReminderUseCase,
)
from src.config import Settings, get_logger
from src.core.interfaces import IEndpointStore, IReminderStore, IScheduleStore
from src.core.services import NotificationScheduler, RecurrenceEngine
from src.infrastructure.notify import InAppNotifier

logger = get_logger(__name__)


def get_services(request: Request) -> ServiceContainer:
    """Container of the running application."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return services


def get_app_settings(services: ServiceContainer = Depends(get_services)) -> Settings:
    return services.settings


# Stores
def get_rem_store(services: ServiceContainer = Depends(get_services)) -> IReminderStore:
    return services.reminder_store


def get_schedule_store(services: ServiceContainer = Depends(get_services)) -> IScheduleStore:
    return services.schedule_store


def get_endpoint_store(services: ServiceContainer = Depends(get_services)) -> IEndpointStore:
    return services.endpoint_store


# Services
def get_engine(services: ServiceContainer = Depends(get_services)) -> RecurrenceEngine:
    return services.engine


def get_scheduler(services: ServiceContainer = Depends(get_services)) -> NotificationScheduler:
    return services.scheduler


def get_notifier(services: ServiceContainer = Depends(get_services)) -> InAppNotifier:
    return services.notifier


# Use cases
def get_create_reminder_use_case(
    services: ServiceContainer = Depends(get_services),
) -> CreateReminderUseCase:
    return CreateReminderUseCase(services.reminder_store, services.scheduler)


def get_update_reminder_use_case(
    services: ServiceContainer = Depends(get_services),
) -> UpdateReminderUseCase:
    return UpdateReminderUseCase(services.reminder_store, services.scheduler)


def get_set_active_use_case(
    services: ServiceContainer = Depends(get_services),
) -> SetReminderActiveUseCase:
    return SetReminderActiveUseCase(services.reminder_store, services.scheduler)


def get_delete_reminder_use_case(
    services: ServiceContainer = Depends(get_services),
) -> DeleteReminderUseCase:
    return DeleteReminderUseCase(services.reminder_store, services.scheduler)


def get_check_notifications_use_case(
    services: ServiceContainer = Depends(get_services),
) -> CheckNotificationsUseCase:
    return CheckNotificationsUseCase(services.fanout)


def get_register_endpoint_use_case(
    services: ServiceContainer = Depends(get_services),
) -> RegisterPushEndpointUseCase:
    return RegisterPushEndpointUseCase(services.endpoint_store)


def get_unregister_endpoint_use_case(
    services: ServiceContainer = Depends(get_services),
) -> UnregisterPushEndpointUseCase:
    return UnregisterPushEndpointUseCase(services.endpoint_store)


# Auth
def verify_cron_secret(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> None:
    """
    Bearer-token check for the external trigger.

    Runs before the handler touches any state. With no secret configured
    the check is skipped.
    """
    expected = settings.cron.secret
    if not expected:
        logger.warning("cron_secret_not_configured", path=request.url.path)
        return

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning("cron_unauthorized", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
