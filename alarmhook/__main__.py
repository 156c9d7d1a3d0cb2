"""Run the alarm webhook server: ``python -m alarmhook``."""

import logging

import uvicorn

from alarmhook.adapters.web.server import create_app
from alarmhook.config import AppConfig
from alarmhook.infrastructure.logging_config import setup_logging

logger = logging.getLogger("alarmhook.main")


def main():
    config = AppConfig.from_env()
    setup_logging(config.log_level, config.log_dir or None)
    logger.info("Alarm timezone: %s, primary webhook: %s", config.alarm_timezone, config.primary_webhook_url or "(not set)")
    app = create_app(config=config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
