"""Remote push delivery."""

from src.infrastructure.push.webpush_sender import GONE_STATUS_CODES, WebPushSender

__all__ = ["WebPushSender", "GONE_STATUS_CODES"]
