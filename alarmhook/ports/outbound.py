"""Outbound ports: interfaces for persistence and notification adapters."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

SUCCESS = "success"
HTTP_FAILURE = "http_failure"
TRANSPORT_FAILURE = "transport_failure"


@dataclass
class DeliveryOutcome:
    """Result of a single webhook POST.

    ``kind`` is one of ``success``, ``http_failure`` (non-2xx response) or
    ``transport_failure`` (timeout, DNS, connection or URL error).
    """

    kind: str
    status_code: Optional[int] = None
    reason: Optional[str] = None
    body: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.kind == SUCCESS

    def describe(self) -> str:
        if self.kind == SUCCESS:
            return f"HTTP {self.status_code}"
        if self.kind == HTTP_FAILURE:
            return f"HTTP {self.status_code} - {self.body or self.reason or ''}".rstrip(" -")
        return self.error or "transport failure"


@runtime_checkable
class AlarmStoragePort(Protocol):
    """Full-snapshot persistence for alarm records."""

    def load_all(self) -> List[Dict[str, Any]]: ...
    def save_all(self, records: List[Dict[str, Any]]) -> None: ...


@runtime_checkable
class DispatchPort(Protocol):
    """Sends one JSON payload to one URL, never raising."""

    async def send(
        self,
        url: str,
        payload: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> DeliveryOutcome: ...
