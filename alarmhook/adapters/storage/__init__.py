from alarmhook.adapters.storage.json_store import JsonAlarmStorage

__all__ = ["JsonAlarmStorage"]
