"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.local_dispatcher import DispatchResult, LocalDispatcher
from src.core.services.notification_scheduler import (
    NotificationScheduler,
    ReconcileSummary,
    fan_out_offsets,
)
from src.core.services.payloads import format_offset_phrase, render_payload
from src.core.services.push_fanout import FanoutResult, PushFanoutService
from src.core.services.recurrence_engine import (
    RECURRENCE_PRESETS,
    RecurrenceEngine,
    RecurrencePreset,
)

__all__ = [
    # Recurrence
    "RecurrenceEngine",
    "RecurrencePreset",
    "RECURRENCE_PRESETS",
    # Scheduling
    "NotificationScheduler",
    "ReconcileSummary",
    "fan_out_offsets",
    # Payloads
    "format_offset_phrase",
    "render_payload",
    # Dispatch
    "LocalDispatcher",
    "DispatchResult",
    "PushFanoutService",
    "FanoutResult",
]
