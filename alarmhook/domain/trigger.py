"""Trigger engine: one firing cycle for one due alarm."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from alarmhook.config import PAYLOAD_SOURCE, PAYLOAD_VERSION
from alarmhook.domain.models import Alarm
from alarmhook.domain.schedule import isoformat_z
from alarmhook.domain.store import AlarmStore
from alarmhook.ports.outbound import TRANSPORT_FAILURE, DeliveryOutcome, DispatchPort

logger = logging.getLogger(__name__)

EVENT_TYPE = "alarm_triggered"
PRIMARY_DESTINATION = "primary"


@dataclass
class Destination:
    name: str
    url: str
    required: bool


@dataclass
class DestinationResult:
    destination: Destination
    outcome: DeliveryOutcome


@dataclass
class FiringReport:
    alarm_id: str
    triggered_at: datetime
    results: List[DestinationResult] = field(default_factory=list)
    stats_updated: bool = False
    removed: bool = False
    error: Optional[str] = None

    @property
    def primary_succeeded(self) -> bool:
        return any(r.destination.required and r.outcome.success for r in self.results)


def build_payload(alarm: Alarm, triggered_at: datetime) -> Dict[str, Any]:
    """Notification body; ``triggeredCount`` is the post-increment value."""
    return {
        "type": EVENT_TYPE,
        "alarm": {
            "id": alarm.id,
            "contactName": alarm.contact_name,
            "email": alarm.email,
            "phone": alarm.phone,
            "scheduledTime": isoformat_z(alarm.scheduled_time),
            "triggeredAt": isoformat_z(triggered_at),
            "triggeredCount": alarm.triggered_count + 1,
        },
        "metadata": {
            "source": PAYLOAD_SOURCE,
            "version": PAYLOAD_VERSION,
        },
    }


def build_destinations(primary_url: str, alarm: Alarm) -> List[Destination]:
    destinations = [Destination(PRIMARY_DESTINATION, primary_url, required=True)]
    for idx, url in enumerate(alarm.destination_urls, start=1):
        destinations.append(Destination(f"destination-{idx}", url, required=False))
    return destinations


class TriggerEngine:
    """Builds the payload, fans it out, updates stats and disposes of the alarm.

    ``fire`` never raises; whatever goes wrong ends up in the returned
    FiringReport and the log.
    """

    def __init__(
        self,
        store: AlarmStore,
        dispatcher: DispatchPort,
        primary_url: str,
        timeout: float = 10.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._primary_url = primary_url
        self._timeout = timeout
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def fire(self, alarm: Alarm) -> FiringReport:
        triggered_at = self._clock()
        report = FiringReport(alarm_id=alarm.id, triggered_at=triggered_at)
        logger.info("ALARM TRIGGERED: %s - %s at %s", alarm.id, alarm.contact_name, isoformat_z(triggered_at))
        try:
            payload = build_payload(alarm, triggered_at)
            destinations = build_destinations(self._primary_url, alarm)
            outcomes = await asyncio.gather(
                *(self._deliver(alarm.id, d, payload) for d in destinations)
            )
            report.results = [
                DestinationResult(destination=d, outcome=o)
                for d, o in zip(destinations, outcomes)
            ]

            if report.primary_succeeded:
                report.stats_updated = (
                    await self._store.record_trigger(alarm.id, triggered_at) is not None
                )
            else:
                logger.warning("Alarm %s: primary delivery failed, stats unchanged", alarm.id)
        except Exception as e:
            logger.exception("Alarm %s: firing cycle error", alarm.id)
            report.error = str(e) or type(e).__name__

        # One-time alarms are consumed on their due instant whatever happened
        if not alarm.is_recurring:
            try:
                report.removed = await self._store.delete(alarm.id)
                if report.removed:
                    logger.info("Auto-deleted one-time alarm %s", alarm.id)
            except Exception as e:
                logger.exception("Alarm %s: auto-delete failed", alarm.id)
                report.error = report.error or str(e) or type(e).__name__
        return report

    async def _deliver(
        self, alarm_id: str, destination: Destination, payload: Dict[str, Any]
    ) -> DeliveryOutcome:
        try:
            outcome = await self._dispatcher.send(destination.url, payload, timeout=self._timeout)
        except Exception as e:
            outcome = DeliveryOutcome(kind=TRANSPORT_FAILURE, error=str(e) or type(e).__name__)

        if outcome.success:
            logger.info(
                "Alarm %s: webhook %s sent (%s)", alarm_id, destination.name, outcome.describe()
            )
        else:
            logger.error(
                "Alarm %s: webhook %s failed [%s]: %s",
                alarm_id,
                destination.name,
                outcome.kind,
                outcome.describe(),
            )
        return outcome
