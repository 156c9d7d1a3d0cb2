"""Infrastructure helpers: logging setup."""

from alarmhook.infrastructure.logging_config import setup_logging

__all__ = ["setup_logging"]
