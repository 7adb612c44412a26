"""API route modules."""

from src.api.routes.cron import router as cron_router
from src.api.routes.health import router as health_router
from src.api.routes.notifications import router as notifications_router
from src.api.routes.push import router as push_router
from src.api.routes.reminders import router as reminders_router

__all__ = [
    "health_router",
    "cron_router",
    "push_router",
    "reminders_router",
    "notifications_router",
]
