"""
Check Notifications Use Case.

Entry point of the external periodic trigger: runs one push fan-out pass.
"""

from datetime import datetime

from src.config import get_logger
from src.core.services.push_fanout import FanoutResult, PushFanoutService

logger = get_logger(__name__)


class CheckNotificationsUseCase:
    def __init__(self, fanout: PushFanoutService):
        self._fanout = fanout

    async def execute(self, now: datetime | None = None) -> FanoutResult:
        result = await self._fanout.run(now)
        logger.info(
            "notification_check_complete",
            checked=result.checked,
            sent=result.sent,
            failed=result.failed,
            pruned=result.pruned,
        )
        return result
