"""
Service wiring for dependency injection.

Builds the infrastructure implementations and wires them into the core
services once, from settings. The API lifespan owns the resulting
container; route dependencies read it from the application state.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from dataclasses import dataclass

from src.config import Settings, get_logger, get_settings
from src.core.events import ChangeFeed
from src.core.services import (
    LocalDispatcher,
    NotificationScheduler,
    PushFanoutService,
    RecurrenceEngine,
)
from src.infrastructure.notify import InAppNotifier
from src.infrastructure.push import WebPushSender
from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteEndpointStore,
    SQLiteReminderStore,
    SQLiteScheduleStore,
)

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Every long-lived object of a running service."""

    settings: Settings
    pool: ConnectionPool
    feed: ChangeFeed
    reminder_store: SQLiteReminderStore
    schedule_store: SQLiteScheduleStore
    endpoint_store: SQLiteEndpointStore
    engine: RecurrenceEngine
    scheduler: NotificationScheduler
    notifier: InAppNotifier
    dispatcher: LocalDispatcher
    push_sender: WebPushSender
    fanout: PushFanoutService

    async def start(self) -> None:
        """Open storage, top up schedules and start the in-app loop."""
        await self.pool.initialize()

        if self.settings.scheduler.reconcile_on_start:
            await self.scheduler.reconcile_all()

        if self.settings.scheduler.dispatcher_enabled:
            self.dispatcher.start()

    async def close(self) -> None:
        await self.dispatcher.stop()
        await self.pool.close()


def build_services(
    settings: Settings | None = None,
    pool: ConnectionPool | None = None,
) -> ServiceContainer:
    """
    Wire the stores and services for one application instance.

    Args:
        settings: Settings to use (default: global settings)
        pool: Pre-built connection pool (default: built from settings)

    Returns:
        Unstarted ServiceContainer
    """
    settings = settings or get_settings()
    pool = pool or ConnectionPool.from_settings(settings.storage)
    feed = ChangeFeed()

    reminder_store = SQLiteReminderStore(pool, feed)
    schedule_store = SQLiteScheduleStore(pool, feed)
    endpoint_store = SQLiteEndpointStore(pool, feed)

    engine = RecurrenceEngine(lookahead_years=settings.scheduler.lookahead_years)
    scheduler = NotificationScheduler(
        reminder_reader=reminder_store,
        schedule_store=schedule_store,
        engine=engine,
        occurrence_count=settings.scheduler.occurrence_count,
    )

    notifier = InAppNotifier()
    dispatcher = LocalDispatcher(
        schedule_store=schedule_store,
        notifier=notifier,
        reminder_store=reminder_store,
        interval_seconds=settings.scheduler.dispatch_interval_seconds,
        maintenance=scheduler.reconcile_all,
        topup_interval_seconds=settings.scheduler.topup_interval_seconds,
        icon=settings.push.icon,
        badge=settings.push.badge,
    )

    push_sender = WebPushSender.from_settings(settings.push)
    if not push_sender.configured:
        logger.warning("push_not_configured", hint="set PUSH_VAPID_PRIVATE_KEY")

    fanout = PushFanoutService(
        schedule_store=schedule_store,
        endpoint_store=endpoint_store,
        sender=push_sender,
        icon=settings.push.icon,
        badge=settings.push.badge,
    )

    return ServiceContainer(
        settings=settings,
        pool=pool,
        feed=feed,
        reminder_store=reminder_store,
        schedule_store=schedule_store,
        endpoint_store=endpoint_store,
        engine=engine,
        scheduler=scheduler,
        notifier=notifier,
        dispatcher=dispatcher,
        push_sender=push_sender,
        fanout=fanout,
    )
