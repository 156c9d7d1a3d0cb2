from alarmhook.adapters.web.alarm_routes import alarm_router
from alarmhook.adapters.web.server import create_app

__all__ = ["alarm_router", "create_app"]
