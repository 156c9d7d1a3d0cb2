"""In-memory alarm store mirrored to durable storage on every mutation."""

import asyncio
import dataclasses
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Set

from alarmhook.domain.models import Alarm
from alarmhook.ports.outbound import AlarmStoragePort

logger = logging.getLogger(__name__)


class AlarmStore:
    """Source of truth for alarms while the process runs.

    Readers get copies; every change goes through one of the mutation
    methods, each of which persists a full snapshot. A failed write is
    logged and the in-memory state stays authoritative.
    """

    def __init__(self, storage: AlarmStoragePort):
        self._storage = storage
        self._alarms: Dict[str, Alarm] = {}
        self._issued_ids: Set[str] = set()
        self._save_lock = asyncio.Lock()

    def load(self) -> int:
        """Replace the in-memory set with what storage holds."""
        self._alarms.clear()
        for item in self._storage.load_all():
            try:
                alarm = Alarm.from_dict(item)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping malformed alarm record %r: %s", item.get("id"), e)
                continue
            self._alarms[alarm.id] = alarm
            self._issued_ids.add(alarm.id)
        logger.info("Loaded %d alarm(s) from storage", len(self._alarms))
        return len(self._alarms)

    def new_id(self) -> str:
        """Issue an identifier never handed out before in this process."""
        while True:
            alarm_id = uuid.uuid4().hex[:12]
            if alarm_id not in self._issued_ids:
                self._issued_ids.add(alarm_id)
                return alarm_id

    def get(self, alarm_id: str) -> Optional[Alarm]:
        alarm = self._alarms.get(alarm_id)
        return dataclasses.replace(alarm) if alarm else None

    def list(self) -> List[Alarm]:
        return [dataclasses.replace(a) for a in self._alarms.values()]

    def __len__(self) -> int:
        return len(self._alarms)

    def __contains__(self, alarm_id: str) -> bool:
        return alarm_id in self._alarms

    async def add(self, alarm: Alarm) -> Alarm:
        if alarm.id in self._alarms:
            raise ValueError(f"Alarm {alarm.id} already exists")
        self._issued_ids.add(alarm.id)
        self._alarms[alarm.id] = dataclasses.replace(alarm)
        await self._persist()
        return dataclasses.replace(alarm)

    async def delete(self, alarm_id: str) -> bool:
        if self._alarms.pop(alarm_id, None) is None:
            return False
        await self._persist()
        return True

    async def set_active(self, alarm_id: str, active: bool) -> Optional[Alarm]:
        alarm = self._alarms.get(alarm_id)
        if alarm is None:
            return None
        if alarm.is_active != active:
            alarm.is_active = active
            await self._persist()
        return dataclasses.replace(alarm)

    async def record_trigger(self, alarm_id: str, at: datetime) -> Optional[Alarm]:
        """Count one successful firing. No-op if the alarm was deleted meanwhile."""
        alarm = self._alarms.get(alarm_id)
        if alarm is None:
            return None
        alarm.triggered_count += 1
        alarm.last_triggered_at = at
        await self._persist()
        return dataclasses.replace(alarm)

    async def _persist(self) -> bool:
        async with self._save_lock:
            snapshot = [a.to_dict() for a in self._alarms.values()]
            try:
                await asyncio.to_thread(self._storage.save_all, snapshot)
            except Exception:
                logger.exception("Saving %d alarm(s) failed; in-memory state kept", len(snapshot))
                return False
            logger.debug("Saved %d alarm(s) to storage", len(snapshot))
            return True
