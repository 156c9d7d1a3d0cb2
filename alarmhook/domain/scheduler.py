"""Scheduler: one cancellable timer task per active alarm.

Timers are plain asyncio tasks that sleep until the due instant and then run
a firing cycle. Recurring alarms are re-armed after each cycle from the
current clock instead of on a fixed period, so irregular weekday gaps and
process suspension are handled the same way.
"""

import asyncio
import logging
from datetime import datetime, timezone, tzinfo
from typing import Awaitable, Callable, Dict, List, Optional, Set

from alarmhook.domain.models import Alarm
from alarmhook.domain.schedule import is_due, isoformat_z, next_due
from alarmhook.domain.store import AlarmStore
from alarmhook.domain.trigger import TriggerEngine

logger = logging.getLogger(__name__)

# Long waits are sliced so a wall-clock jump is noticed within this bound
_MAX_SLEEP_SECONDS = 3600.0


class Scheduler:
    """Arms, disarms and fires alarm timers.

    arm/disarm/fire for one alarm id are serialized by a per-alarm lock, so
    there is never more than one timer or firing cycle per alarm.
    """

    def __init__(
        self,
        store: AlarmStore,
        engine: TriggerEngine,
        tz: tzinfo = timezone.utc,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._store = store
        self._engine = engine
        self._tz = tz
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep
        self._timers: Dict[str, asyncio.Task] = {}
        self._due: Dict[str, datetime] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._firing: Set[asyncio.Task] = set()
        self._closed = False

    # -- queries --

    @property
    def armed_count(self) -> int:
        return len(self._timers)

    @property
    def armed_ids(self) -> List[str]:
        return list(self._timers)

    def is_armed(self, alarm_id: str) -> bool:
        return alarm_id in self._timers

    def due_at(self, alarm_id: str) -> Optional[datetime]:
        """Instant the armed timer for ``alarm_id`` will fire at, if armed."""
        return self._due.get(alarm_id)

    def next_due_for(self, alarm: Alarm) -> Optional[datetime]:
        return next_due(alarm.scheduled_time, alarm.repeat_days, self._clock(), self._tz)

    # -- arm / disarm --

    async def arm(self, alarm: Alarm) -> Optional[datetime]:
        """(Re)arm the timer for ``alarm``. Returns the due instant or None."""
        async with self._lock_for(alarm.id):
            if alarm.id not in self._store:
                logger.debug("Alarm %s is not stored, not arming", alarm.id)
                return None
            return self._arm_locked(alarm)

    async def disarm(self, alarm_id: str) -> bool:
        """Cancel the timer for ``alarm_id``. Idempotent."""
        async with self._lock_for(alarm_id):
            cancelled = self._cancel(alarm_id)
        if cancelled:
            logger.info("Disarmed alarm %s", alarm_id)
        self._forget_lock(alarm_id)
        return cancelled

    async def restore(self) -> int:
        """Arm every stored active alarm. Used once at startup."""
        armed = 0
        for alarm in self._store.list():
            if not alarm.is_active:
                continue
            if await self.arm(alarm) is not None:
                armed += 1
        logger.info("Restored %d timer(s) for %d stored alarm(s)", armed, len(self._store))
        return armed

    async def shutdown(self):
        """Cancel every waiting timer and let running firing cycles finish.

        A cycle already past its wait completes delivery and disposition, so a
        one-time alarm is never left stored after its webhooks went out.
        """
        self._closed = True
        tasks = list(self._tasks)
        waiting = [t for t in tasks if t not in self._firing]
        for task in waiting:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timers.clear()
        self._due.clear()
        logger.info(
            "Scheduler stopped, %d timer(s) cancelled, %d firing cycle(s) completed",
            len(waiting),
            len(tasks) - len(waiting),
        )

    # -- internals --

    def _lock_for(self, alarm_id: str) -> asyncio.Lock:
        lock = self._locks.get(alarm_id)
        if lock is None:
            lock = self._locks[alarm_id] = asyncio.Lock()
        return lock

    def _forget_lock(self, alarm_id: str):
        lock = self._locks.get(alarm_id)
        if lock is not None and not lock.locked() and alarm_id not in self._store:
            del self._locks[alarm_id]

    def _cancel(self, alarm_id: str) -> bool:
        task = self._timers.pop(alarm_id, None)
        self._due.pop(alarm_id, None)
        if task is None:
            return False
        if task is not asyncio.current_task() and not task.done():
            task.cancel()
        return True

    def _arm_locked(self, alarm: Alarm) -> Optional[datetime]:
        self._cancel(alarm.id)
        if self._closed:
            return None
        if not alarm.is_active:
            logger.info("Alarm %s is inactive, not scheduled", alarm.id)
            return None

        now = self._clock()
        due = next_due(alarm.scheduled_time, alarm.repeat_days, now, self._tz)
        if due is None:
            if alarm.is_recurring:
                logger.warning(
                    "Alarm %s has no valid repeat days in %s, will not trigger",
                    alarm.id,
                    alarm.repeat_days,
                )
            else:
                logger.warning(
                    "Alarm %s scheduled for past time (%s), will not trigger",
                    alarm.id,
                    isoformat_z(alarm.scheduled_time),
                )
            return None

        task = asyncio.create_task(self._run(alarm.id, due), name=f"alarm-timer-{alarm.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._timers[alarm.id] = task
        self._due[alarm.id] = due
        kind = "recurring" if alarm.is_recurring else "one-time"
        logger.info(
            "Scheduled %s alarm %s for %s (in %ds)",
            kind,
            alarm.id,
            isoformat_z(due),
            round((due - now).total_seconds()),
        )
        return due

    async def _run(self, alarm_id: str, due: datetime):
        while True:
            remaining = (due - self._clock()).total_seconds()
            if remaining <= 0:
                break
            await self._sleep(min(remaining, _MAX_SLEEP_SECONDS))
        task = asyncio.current_task()
        self._firing.add(task)
        try:
            await self._fire(alarm_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Alarm %s: timer callback failed", alarm_id)
        finally:
            self._firing.discard(task)

    async def _fire(self, alarm_id: str):
        async with self._lock_for(alarm_id):
            if self._timers.get(alarm_id) is not asyncio.current_task():
                return
            self._timers.pop(alarm_id)
            self._due.pop(alarm_id, None)

            # Re-read: the alarm may have been deleted or disabled since arming
            alarm = self._store.get(alarm_id)
            if alarm is None or not alarm.is_active:
                logger.info("Alarm %s is gone or inactive, skipping fire", alarm_id)
                return

            now = self._clock()
            if not is_due(alarm.scheduled_time, alarm.repeat_days, now, self._tz, alarm.last_triggered_at):
                logger.info("Alarm %s woke up but is not due, re-arming", alarm_id)
                self._arm_locked(alarm)
                return

            await self._engine.fire(alarm)

            current = self._store.get(alarm_id)
            if current is None:
                logger.debug("Alarm %s removed during firing, not re-arming", alarm_id)
            elif current.is_recurring and current.is_active:
                self._arm_locked(current)
        self._forget_lock(alarm_id)
