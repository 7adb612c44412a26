"""
Push Fan-out Service.

One pass per external trigger: every due schedule entry is broadcast to
every registered push endpoint, then marked sent. Endpoints the provider
reports as gone are removed once the pass is over.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.config import get_logger
from src.core.entities.notification import DeliveryEndpoint, PushPayload
from src.core.entities.reminder import ensure_utc
from src.core.exceptions import PushDeliveryError, PushGoneError
from src.core.interfaces.delivery import IPushSender
from src.core.interfaces.storage import IEndpointStore, IScheduleStore
from src.core.services.notification_scheduler import Clock, utc_now
from src.core.services.payloads import DEFAULT_BADGE, DEFAULT_ICON, render_payload

logger = get_logger(__name__)


@dataclass
class FanoutResult:
    """Counts for one fan-out pass."""

    checked: int = 0
    sent: int = 0
    failed: int = 0
    pruned: int = 0
    timestamp: datetime | None = None
    gone_endpoints: list[str] = field(default_factory=list)


class PushFanoutService:
    """Broadcasts due entries to all registered endpoints."""

    def __init__(
        self,
        schedule_store: IScheduleStore,
        endpoint_store: IEndpointStore,
        sender: IPushSender,
        icon: str | None = DEFAULT_ICON,
        badge: str | None = DEFAULT_BADGE,
        clock: Clock | None = None,
    ) -> None:
        self._schedule = schedule_store
        self._endpoints = endpoint_store
        self._sender = sender
        self._icon = icon
        self._badge = badge
        self._clock = clock or utc_now

    async def run(self, now: datetime | None = None) -> FanoutResult:
        """
        Run one fan-out pass.

        Every due entry is marked sent after all endpoints were tried,
        whatever the outcome. Orphan entries are marked sent without delivery.
        """
        now = ensure_utc(now) if now is not None else self._clock()
        due = await self._schedule.list_due_with_reminder(now)
        result = FanoutResult(checked=len(due), timestamp=now)

        if not due:
            return result

        endpoints = await self._endpoints.list_all()
        gone: set[str] = set()

        for item in due:
            entry = item.notification

            if item.is_orphan:
                await self._schedule.mark_sent(entry.id)
                logger.debug("push_orphan_reclaimed", notification_id=entry.id, reminder_id=entry.reminder_id)
                continue

            payload = render_payload(item, icon=self._icon, badge=self._badge)
            for endpoint in endpoints:
                if endpoint.endpoint_url in gone:
                    continue
                if await self._send_one(endpoint, payload, gone):
                    result.sent += 1
                else:
                    result.failed += 1

            await self._schedule.mark_sent(entry.id)

        if gone:
            result.gone_endpoints = sorted(gone)
            result.pruned = await self._endpoints.delete_by_urls(result.gone_endpoints)
            logger.info("push_endpoints_pruned", pruned=result.pruned)

        logger.info(
            "push_fanout_complete",
            checked=result.checked,
            sent=result.sent,
            failed=result.failed,
            pruned=result.pruned,
            endpoints=len(endpoints),
        )
        return result

    async def _send_one(
        self,
        endpoint: DeliveryEndpoint,
        payload: PushPayload,
        gone: set[str],
    ) -> bool:
        try:
            await self._sender.send(endpoint, payload)
            return True
        except PushGoneError as e:
            gone.add(endpoint.endpoint_url)
            logger.info("push_endpoint_gone", endpoint_id=endpoint.id, status_code=e.status_code)
        except PushDeliveryError as e:
            logger.warning(
                "push_delivery_failed",
                endpoint_id=endpoint.id,
                status_code=e.status_code,
                error=e.message,
            )
        except Exception:
            logger.error("push_delivery_error", endpoint_id=endpoint.id, exc_info=True)
        return False
