"""Due-time calculation for one-time and weekly alarms.

Pure functions, no I/O and no clock access: callers pass ``now`` in.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, Optional, Tuple

WEEKDAYS: Tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
_WEEKDAY_INDEX = {name: idx for idx, name in enumerate(WEEKDAYS)}

# A weekday set always matches within a week
_MAX_DAY_STEPS = 7


def parse_repeat_days(tags: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Normalize weekday tags, silently dropping unknown ones.

    Returns unique tags in calendar order (Monday first).
    """
    if not tags:
        return ()
    found = set()
    for tag in tags:
        if not isinstance(tag, str):
            continue
        key = tag.strip().lower()
        if key in _WEEKDAY_INDEX:
            found.add(key)
    return tuple(sorted(found, key=_WEEKDAY_INDEX.__getitem__))


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat_z(dt: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    return ensure_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into aware UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def _anchor_on(day: datetime, scheduled_local: datetime) -> datetime:
    return day.replace(
        hour=scheduled_local.hour,
        minute=scheduled_local.minute,
        second=scheduled_local.second,
        microsecond=0,
    )


def next_due(
    scheduled_time: datetime,
    repeat_days: Optional[Iterable[str]],
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> Optional[datetime]:
    """Return the next instant the alarm should fire, or None.

    One-time alarms (no ``repeat_days``) are due at ``scheduled_time`` if it
    is still strictly in the future. Recurring alarms reuse only the
    time-of-day of ``scheduled_time`` (as seen in ``tz``) and land on the
    earliest later day whose weekday is listed. A recurrence whose tags are
    all invalid is unschedulable: None, not a one-time fallback.
    """
    now = ensure_utc(now)
    scheduled_time = ensure_utc(scheduled_time)

    if not repeat_days:
        return scheduled_time if scheduled_time > now else None

    days = parse_repeat_days(repeat_days)
    if not days:
        return None
    wanted = {_WEEKDAY_INDEX[d] for d in days}

    scheduled_local = scheduled_time.astimezone(tz)
    candidate = _anchor_on(now.astimezone(tz), scheduled_local)
    if candidate <= now:
        candidate += timedelta(days=1)

    for _ in range(_MAX_DAY_STEPS):
        if candidate.weekday() in wanted:
            return candidate.astimezone(timezone.utc)
        candidate += timedelta(days=1)
    return None


def is_due(
    scheduled_time: datetime,
    repeat_days: Optional[Iterable[str]],
    now: datetime,
    tz: tzinfo = timezone.utc,
    last_triggered_at: Optional[datetime] = None,
) -> bool:
    """Check whether the alarm's current occurrence has arrived.

    One-time: ``scheduled_time <= now``. Recurring: today is a listed weekday,
    today's anchor time has passed, and the alarm has not fired today.
    """
    now = ensure_utc(now)
    scheduled_time = ensure_utc(scheduled_time)

    if not repeat_days:
        return scheduled_time <= now

    days = parse_repeat_days(repeat_days)
    if not days:
        return False

    now_local = now.astimezone(tz)
    if WEEKDAYS[now_local.weekday()] not in days:
        return False
    if now_local < _anchor_on(now_local, scheduled_time.astimezone(tz)):
        return False
    if last_triggered_at is not None:
        if ensure_utc(last_triggered_at).astimezone(tz).date() == now_local.date():
            return False
    return True
