"""Alarm record and its JSON mapping."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from alarmhook.domain.schedule import (
    ensure_utc,
    isoformat_z,
    parse_repeat_days,
    parse_timestamp,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _unique(items, keep_blank: bool = False) -> List[str]:
    seen = []
    for item in items or ():
        if (item or keep_blank) and item not in seen:
            seen.append(item)
    return seen


@dataclass
class Alarm:
    id: str
    contact_name: str
    scheduled_time: datetime  # aware UTC anchor instant
    email: str = ""
    phone: str = ""
    destination_urls: List[str] = field(default_factory=list)
    repeat_days: List[str] = field(default_factory=list)  # as requested, lower-cased
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    triggered_count: int = 0
    last_triggered_at: Optional[datetime] = None

    def __post_init__(self):
        self.scheduled_time = ensure_utc(self.scheduled_time)
        self.created_at = ensure_utc(self.created_at)
        if self.last_triggered_at is not None:
            self.last_triggered_at = ensure_utc(self.last_triggered_at)
        self.destination_urls = _unique(u.strip() for u in self.destination_urls if isinstance(u, str))
        # Blank or unknown tags still make the alarm recurring; they are
        # filtered out only when the next occurrence is computed
        self.repeat_days = _unique(
            (d.strip().lower() for d in self.repeat_days if isinstance(d, str)),
            keep_blank=True,
        )

    @property
    def is_recurring(self) -> bool:
        return bool(self.repeat_days)

    @property
    def effective_repeat_days(self) -> Tuple[str, ...]:
        return parse_repeat_days(self.repeat_days)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "contactName": self.contact_name,
            "email": self.email,
            "phone": self.phone,
            "scheduledTime": isoformat_z(self.scheduled_time),
            "destinationUrls": list(self.destination_urls),
            "repeatDays": list(self.repeat_days),
            "isActive": self.is_active,
            "createdAt": isoformat_z(self.created_at),
            "triggeredCount": self.triggered_count,
            "lastTriggeredAt": (
                isoformat_z(self.last_triggered_at) if self.last_triggered_at else None
            ),
        }

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "Alarm":
        """Build an Alarm from a stored record.

        Also reads the older record layout, which used
        ``datetime``, ``webhookUrl``, ``created`` and ``lastTriggered``.
        Raises KeyError/ValueError/TypeError on malformed records.
        """
        scheduled = item.get("scheduledTime") or item["datetime"]
        destinations = list(item.get("destinationUrls") or [])
        if item.get("webhookUrl"):
            destinations.append(item["webhookUrl"])
        created = item.get("createdAt") or item.get("created")
        last = item.get("lastTriggeredAt") or item.get("lastTriggered")
        return cls(
            id=str(item["id"]),
            contact_name=str(item.get("contactName", "")),
            scheduled_time=parse_timestamp(str(scheduled)),
            email=str(item.get("email") or ""),
            phone=str(item.get("phone") or ""),
            destination_urls=destinations,
            repeat_days=list(item.get("repeatDays") or []),
            is_active=bool(item.get("isActive", True)),
            created_at=parse_timestamp(str(created)) if created else _utcnow(),
            triggered_count=int(item.get("triggeredCount", 0)),
            last_triggered_at=parse_timestamp(str(last)) if last else None,
        )
