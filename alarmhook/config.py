"""Configuration and shared settings."""

__version__ = "0.1.0"

import os
import sys
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)

SERVICE_NAME = "Alarm Webhook API"
PAYLOAD_SOURCE = "alarm-webhook-api"
PAYLOAD_VERSION = "1.0"

ALARM_TIMEZONE = os.getenv("ALARM_TIMEZONE", "UTC").strip() or "UTC"
try:
    ZoneInfo(ALARM_TIMEZONE)
except (ZoneInfoNotFoundError, ValueError):
    _stderr_print(f"Unknown ALARM_TIMEZONE={ALARM_TIMEZONE!r}, falling back to 'UTC'")
    ALARM_TIMEZONE = "UTC"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        _stderr_print(f"{name} must be positive, using {default}")
        return default
    return value


CONFIG = {
    "port": int(os.getenv("PORT", "3000")),
    "host": os.getenv("HOST", "0.0.0.0"),
    # Primary destination: every alarm fires here, and only its outcome counts
    "primary_webhook_url": os.getenv("PRIMARY_WEBHOOK_URL", "").strip(),
    "alarms_file": os.getenv("ALARMS_FILE", "alarms.json"),
    "webhook_timeout_seconds": _float_env("WEBHOOK_TIMEOUT_SECONDS", 10.0),
    "webhook_user_agent": os.getenv("WEBHOOK_USER_AGENT", "AlarmWebhookAPI/1.0"),
    "alarm_timezone": ALARM_TIMEZONE,
    "log_level": os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    "log_dir": os.getenv("LOG_DIR", "").strip(),
}


@dataclass
class AppConfig:
    """Typed view over CONFIG, passed to the service and app factory."""

    port: int = 3000
    host: str = "0.0.0.0"
    primary_webhook_url: str = ""
    alarms_file: str = "alarms.json"
    webhook_timeout_seconds: float = 10.0
    webhook_user_agent: str = "AlarmWebhookAPI/1.0"
    alarm_timezone: str = "UTC"
    log_level: str = "INFO"
    log_dir: str = ""

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.alarm_timezone)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            port=CONFIG["port"],
            host=CONFIG["host"],
            primary_webhook_url=CONFIG["primary_webhook_url"],
            alarms_file=CONFIG["alarms_file"],
            webhook_timeout_seconds=CONFIG["webhook_timeout_seconds"],
            webhook_user_agent=CONFIG["webhook_user_agent"],
            alarm_timezone=CONFIG["alarm_timezone"],
            log_level=CONFIG["log_level"],
            log_dir=CONFIG["log_dir"],
        )
