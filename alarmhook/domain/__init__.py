"""Domain layer: alarms, due-time calculation, store, scheduler, trigger engine."""

from alarmhook.domain.errors import AlarmValidationError
from alarmhook.domain.models import Alarm
from alarmhook.domain.schedule import WEEKDAYS, is_due, next_due, parse_repeat_days
from alarmhook.domain.scheduler import Scheduler
from alarmhook.domain.store import AlarmStore
from alarmhook.domain.trigger import FiringReport, TriggerEngine, build_payload

__all__ = [
    "Alarm",
    "AlarmStore",
    "AlarmValidationError",
    "FiringReport",
    "Scheduler",
    "TriggerEngine",
    "WEEKDAYS",
    "build_payload",
    "is_due",
    "next_due",
    "parse_repeat_days",
]
