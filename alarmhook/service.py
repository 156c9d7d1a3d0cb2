"""Alarm service: the operations the web layer calls.

Wires store, scheduler, trigger engine and dispatch client together and
validates input before anything is mutated.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from alarmhook.adapters.http.webhook_client import WebhookClient
from alarmhook.adapters.storage.json_store import JsonAlarmStorage
from alarmhook.config import AppConfig
from alarmhook.domain.errors import AlarmValidationError
from alarmhook.domain.models import Alarm
from alarmhook.domain.schedule import ensure_utc, isoformat_z
from alarmhook.domain.scheduler import Scheduler
from alarmhook.domain.store import AlarmStore
from alarmhook.domain.trigger import TriggerEngine
from alarmhook.ports.outbound import AlarmStoragePort, DeliveryOutcome

logger = logging.getLogger(__name__)


def _validate_url(url: str, field_name: str) -> str:
    if not isinstance(url, str) or not url.strip():
        raise AlarmValidationError(f"{field_name} must be a non-empty URL")
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise AlarmValidationError(f"{field_name} must be an http(s) URL: {url!r}")
    return url


class AlarmService:
    def __init__(
        self,
        store: AlarmStore,
        scheduler: Scheduler,
        webhook_client: WebhookClient,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.scheduler = scheduler
        self.webhook_client = webhook_client
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.started_at = self._clock()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        storage: Optional[AlarmStoragePort] = None,
        webhook_client: Optional[WebhookClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> "AlarmService":
        store = AlarmStore(storage or JsonAlarmStorage(config.alarms_file))
        client = webhook_client or WebhookClient(
            timeout=config.webhook_timeout_seconds,
            user_agent=config.webhook_user_agent,
        )
        engine = TriggerEngine(
            store,
            client,
            primary_url=config.primary_webhook_url,
            timeout=config.webhook_timeout_seconds,
            clock=clock,
        )
        scheduler = Scheduler(store, engine, tz=config.tz, clock=clock, sleep=sleep or asyncio.sleep)
        if not config.primary_webhook_url:
            logger.warning("PRIMARY_WEBHOOK_URL is not set; primary deliveries will fail")
        return cls(store, scheduler, client, clock=clock)

    # -- lifecycle --

    async def start(self) -> int:
        """Load persisted alarms and re-arm the active ones."""
        self.started_at = self._clock()
        self.store.load()
        return await self.scheduler.restore()

    async def shutdown(self):
        await self.scheduler.shutdown()

    # -- operations --

    async def create_alarm(
        self,
        contact_name: str,
        scheduled_time: datetime,
        destination_urls: Iterable[str] = (),
        repeat_days: Iterable[str] = (),
        email: Optional[str] = "",
        phone: Optional[str] = "",
    ) -> Alarm:
        if not isinstance(contact_name, str) or not contact_name.strip():
            raise AlarmValidationError("contactName is required")
        if not isinstance(scheduled_time, datetime):
            raise AlarmValidationError("datetime must be an absolute timestamp")
        urls = [
            _validate_url(u, f"destinationUrls[{i}]")
            for i, u in enumerate(destination_urls or ())
        ]
        days = [d for d in (repeat_days or ()) if isinstance(d, str)]

        alarm = Alarm(
            id=self.store.new_id(),
            contact_name=contact_name.strip(),
            scheduled_time=ensure_utc(scheduled_time),
            email=(email or "").strip(),
            phone=(phone or "").strip(),
            destination_urls=urls,
            repeat_days=days,
            created_at=self._clock(),
        )
        if alarm.is_recurring and not alarm.effective_repeat_days:
            logger.warning(
                "Alarm %s: repeatDays %s holds no valid weekday, it will stay unscheduled",
                alarm.id,
                alarm.repeat_days,
            )

        alarm = await self.store.add(alarm)
        await self.scheduler.arm(alarm)
        logger.info(
            "Created alarm %s for %s at %s",
            alarm.id,
            alarm.contact_name,
            isoformat_z(alarm.scheduled_time),
        )
        return alarm

    async def delete_alarm(self, alarm_id: str) -> bool:
        deleted = await self.store.delete(alarm_id)
        await self.scheduler.disarm(alarm_id)
        if deleted:
            logger.info("Deleted alarm %s", alarm_id)
        return deleted

    async def set_active(self, alarm_id: str, active: bool) -> Optional[Alarm]:
        alarm = await self.store.set_active(alarm_id, active)
        if alarm is None:
            return None
        if active:
            await self.scheduler.arm(alarm)
        else:
            await self.scheduler.disarm(alarm_id)
        logger.info("Alarm %s %s", alarm_id, "enabled" if active else "disabled")
        return alarm

    def list_alarms(self) -> List[Alarm]:
        return self.store.list()

    def get_alarm(self, alarm_id: str) -> Optional[Alarm]:
        return self.store.get(alarm_id)

    def next_trigger(self, alarm: Alarm) -> Optional[datetime]:
        """Next due instant, or None when inactive or unschedulable."""
        if not alarm.is_active:
            return None
        return self.scheduler.next_due_for(alarm)

    async def test_webhook(self, url: str) -> DeliveryOutcome:
        return await self.webhook_client.send_test(url)

    def stats(self) -> Dict[str, int]:
        alarms = self.store.list()
        return {
            "alarms": len(alarms),
            "enabledAlarms": sum(1 for a in alarms if a.is_active),
            "armedTimers": self.scheduler.armed_count,
        }
