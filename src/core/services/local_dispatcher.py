"""
Local Dispatcher.

In-app polling loop: every interval, delivers due schedule entries through
the in-process notifier and marks them sent. Delivery is at most once from
the scheduler's point of view; a failed delivery is not retried.
"""

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.config import get_logger
from src.core.entities.notification import DueNotification
from src.core.entities.reminder import ensure_utc
from src.core.exceptions import DeliveryError
from src.core.interfaces.delivery import ILocalNotifier
from src.core.interfaces.storage import IReminderStore, IScheduleStore
from src.core.services.notification_scheduler import Clock, utc_now
from src.core.services.payloads import DEFAULT_BADGE, DEFAULT_ICON, render_payload

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0
DEFAULT_TOPUP_INTERVAL_SECONDS = 6 * 60 * 60

MaintenanceHook = Callable[[], Awaitable[Any]]


@dataclass
class DispatchResult:
    """Counts for one dispatch pass."""

    checked: int = 0
    delivered: int = 0
    failed: int = 0
    orphaned: int = 0


class LocalDispatcher:
    """
    Fixed-interval in-app dispatch loop.

    Passes never overlap: the next sleep starts only after a pass returns.
    An optional maintenance hook (schedule top-up) runs after a pass once
    `topup_interval_seconds` has elapsed since it last ran.
    """

    def __init__(
        self,
        schedule_store: IScheduleStore,
        notifier: ILocalNotifier,
        reminder_store: IReminderStore | None = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        maintenance: MaintenanceHook | None = None,
        topup_interval_seconds: float = DEFAULT_TOPUP_INTERVAL_SECONDS,
        icon: str | None = DEFAULT_ICON,
        badge: str | None = DEFAULT_BADGE,
        clock: Clock | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._schedule = schedule_store
        self._notifier = notifier
        self._reminders = reminder_store
        self._interval = interval_seconds
        self._maintenance = maintenance
        self._topup_interval = topup_interval_seconds
        self._icon = icon
        self._badge = badge
        self._clock = clock or utc_now
        self._monotonic = monotonic
        self._last_maintenance = monotonic()
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, now: datetime | None = None) -> DispatchResult:
        """Deliver every due unsent entry, oldest first."""
        now = ensure_utc(now) if now is not None else self._clock()
        due = await self._schedule.list_due_with_reminder(now)
        result = DispatchResult(checked=len(due))

        for item in due:
            entry = item.notification

            if item.is_orphan:
                await self._schedule.mark_sent(entry.id)
                result.orphaned += 1
                logger.debug("local_orphan_reclaimed", notification_id=entry.id, reminder_id=entry.reminder_id)
                continue

            if await self._deliver(item):
                result.delivered += 1
            else:
                result.failed += 1

            await self._schedule.mark_sent(entry.id)
            await self._record_trigger(entry.reminder_id, now)

        if result.checked:
            logger.info(
                "local_dispatch_complete",
                checked=result.checked,
                delivered=result.delivered,
                failed=result.failed,
                orphaned=result.orphaned,
            )
        return result

    async def _deliver(self, item: DueNotification) -> bool:
        entry = item.notification
        payload = render_payload(item, icon=self._icon, badge=self._badge)
        try:
            await self._notifier.show(payload)
            return True
        except DeliveryError as e:
            logger.warning(
                "local_delivery_failed",
                notification_id=entry.id,
                reminder_id=entry.reminder_id,
                error_code=e.code,
                error=e.message,
            )
        except Exception:
            logger.error(
                "local_delivery_error",
                notification_id=entry.id,
                reminder_id=entry.reminder_id,
                exc_info=True,
            )
        return False

    async def _record_trigger(self, reminder_id: str, at: datetime) -> None:
        if self._reminders is None:
            return
        try:
            await self._reminders.mark_triggered(reminder_id, at)
        except Exception:
            logger.warning("reminder_mark_triggered_failed", reminder_id=reminder_id, exc_info=True)

    async def run_maintenance_if_due(self) -> bool:
        """Run the maintenance hook if its interval has elapsed."""
        if self._maintenance is None or self._topup_interval <= 0:
            return False

        elapsed = self._monotonic() - self._last_maintenance
        if elapsed < self._topup_interval:
            return False

        self._last_maintenance = self._monotonic()
        logger.info("local_maintenance_started", elapsed_seconds=round(elapsed, 1))
        await self._maintenance()
        return True

    async def run_pass(self) -> DispatchResult:
        """One loop iteration: dispatch, then maintenance if due."""
        result = await self.run_once()
        await self.run_maintenance_if_due()
        return result

    async def _run_loop(self) -> None:
        logger.info("local_dispatcher_started", interval_seconds=self._interval)
        while True:
            try:
                await self.run_pass()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error("local_dispatch_pass_failed", exc_info=True)
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Run a pass immediately, then every interval. No-op if running."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="local-dispatcher")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("local_dispatcher_stopped")
