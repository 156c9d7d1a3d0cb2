from alarmhook.adapters.http.webhook_client import WebhookClient

__all__ = ["WebhookClient"]
