"""Port interfaces (Hexagonal Architecture)."""

from alarmhook.ports.outbound import (
    HTTP_FAILURE,
    SUCCESS,
    TRANSPORT_FAILURE,
    AlarmStoragePort,
    DeliveryOutcome,
    DispatchPort,
)

__all__ = [
    "AlarmStoragePort",
    "DeliveryOutcome",
    "DispatchPort",
    "HTTP_FAILURE",
    "SUCCESS",
    "TRANSPORT_FAILURE",
]
