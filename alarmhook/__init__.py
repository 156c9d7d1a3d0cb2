"""Alarm Webhook Scheduler: timed and weekly alarms delivered to HTTP webhooks."""

from alarmhook.config import CONFIG, AppConfig, __version__
from alarmhook.domain import Alarm, AlarmStore, AlarmValidationError, Scheduler, TriggerEngine
from alarmhook.service import AlarmService

__all__ = [
    "CONFIG",
    "Alarm",
    "AlarmService",
    "AlarmStore",
    "AlarmValidationError",
    "AppConfig",
    "Scheduler",
    "TriggerEngine",
    "__version__",
]
