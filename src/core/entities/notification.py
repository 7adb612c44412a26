"""
Notification entities.

Schedule entries derived from reminders, registered push endpoints,
and the payload shape shared by both delivery channels.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.entities.identifiers import new_id
from src.core.entities.reminder import ensure_utc


class ScheduledNotification(BaseModel):
    """
    One persisted notification instant for a reminder.

    `reminder_id` is a weak reference: the reminder may be deleted while
    entries remain. `sent` only ever moves from False to True.
    """

    id: str = Field(default_factory=new_id)
    reminder_id: str
    fires_at: datetime
    offset_minutes: int = Field(ge=0)
    sent: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("fires_at", "created_at")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def is_due(self, now: datetime) -> bool:
        return not self.sent and self.fires_at <= now


class DueNotification(BaseModel):
    """Due schedule entry joined with its reminder's display fields."""

    notification: ScheduledNotification
    title: str | None = None
    description: str | None = None
    reminder_exists: bool = True
    reminder_deleted: bool = False

    @property
    def is_orphan(self) -> bool:
        return not self.reminder_exists or self.reminder_deleted


class EndpointKeys(BaseModel):
    """Opaque key pair issued by the browser push service."""

    p256dh: str
    auth: str


class DeliveryEndpoint(BaseModel):
    """A registered push endpoint."""

    id: str = Field(default_factory=new_id)
    endpoint_url: str
    keys: EndpointKeys
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def subscription_info(self) -> dict:
        """Subscription dict in the shape push libraries expect."""
        return {
            "endpoint": self.endpoint_url,
            "keys": {"p256dh": self.keys.p256dh, "auth": self.keys.auth},
        }


class PushAction(BaseModel):
    """Button offered on a notification."""

    action: str
    title: str


class PushPayloadData(BaseModel):
    """Deep-link data carried by a notification."""

    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(alias="itemId")
    url: str


class PushPayload(BaseModel):
    """Notification payload, as sent to push endpoints and the in-app surface."""

    title: str
    body: str
    icon: str | None = None
    badge: str | None = None
    tag: str | None = None
    data: PushPayloadData | None = None
    actions: list[PushAction] | None = None

    def to_wire(self) -> dict:
        """Wire representation: camelCase aliases, unset fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
