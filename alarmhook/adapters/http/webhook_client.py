"""Webhook dispatch client using aiohttp."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiohttp

from alarmhook.config import PAYLOAD_SOURCE, SERVICE_NAME
from alarmhook.domain.schedule import isoformat_z
from alarmhook.ports.outbound import (
    HTTP_FAILURE,
    SUCCESS,
    TRANSPORT_FAILURE,
    DeliveryOutcome,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT = "AlarmWebhookAPI/1.0"
_MAX_BODY_CHARS = 2000


class WebhookClient:
    """Single-attempt JSON POST to a webhook URL.

    Any 2xx response is a success. Everything else, including timeouts and
    connection errors, comes back as a failed DeliveryOutcome; ``send`` never
    raises and never retries.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self._timeout = timeout
        self._headers = {
            "Content-Type": "application/json",
            "User-Agent": user_agent,
        }

    async def send(
        self,
        url: str,
        payload: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> DeliveryOutcome:
        if not url:
            return DeliveryOutcome(kind=TRANSPORT_FAILURE, error="No URL configured")

        client_timeout = aiohttp.ClientTimeout(total=timeout or self._timeout)
        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                async with session.post(
                    url, data=json.dumps(payload), headers=self._headers
                ) as resp:
                    body = (await resp.text(errors="replace"))[:_MAX_BODY_CHARS]
                    kind = SUCCESS if 200 <= resp.status < 300 else HTTP_FAILURE
                    return DeliveryOutcome(
                        kind=kind,
                        status_code=resp.status,
                        reason=resp.reason,
                        body=body,
                    )
        except asyncio.TimeoutError:
            return DeliveryOutcome(
                kind=TRANSPORT_FAILURE,
                error=f"Timed out after {timeout or self._timeout:g}s",
            )
        except Exception as e:
            return DeliveryOutcome(
                kind=TRANSPORT_FAILURE,
                error=str(e) or type(e).__name__,
            )

    async def send_test(self, url: str) -> DeliveryOutcome:
        """POST the fixed diagnostic payload to ``url``."""
        payload = {
            "type": "test_webhook",
            "message": f"This is a test from {SERVICE_NAME}",
            "timestamp": isoformat_z(datetime.now(timezone.utc)),
            "source": PAYLOAD_SOURCE,
        }
        outcome = await self.send(url, payload)
        logger.info("Test webhook to %s: %s", url, outcome.describe())
        return outcome
