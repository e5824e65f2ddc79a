"""Date/time helpers shared by the evaluators.

Stored plan dates use the canonical key ``YYYY-MM-DDT00:00:00.000`` and pause
windows use zero-padded ``HH:mm`` strings, so both are produced here from a
local wall-clock datetime instead of calling the system clock.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, tzinfo

from notifier.errors import DataShapeError

DAY_KEY_FORMAT = "%Y-%m-%dT00:00:00.000"

_DAY_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:T00:00:00(?:\.000)?Z?)?$")
_HHMM_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def day_key(day: date) -> str:
    """Return the canonical storage key for a calendar date."""
    return day.strftime(DAY_KEY_FORMAT)


def parse_day_key(raw: str) -> date:
    """Parse a canonical day key (or bare YYYY-MM-DD) into a date."""
    m = _DAY_KEY_RE.match(str(raw).strip())
    if not m:
        raise DataShapeError(f"invalid day key: {raw!r}")
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError as e:
        raise DataShapeError(f"invalid day key: {raw!r} ({e})") from e


def hhmm(moment: datetime | time) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"


def parse_hhmm(raw: str) -> time:
    """Parse 'H:MM' or 'HH:MM' into a time; raises DataShapeError otherwise."""
    m = _HHMM_RE.match(str(raw)) if raw is not None else None
    if not m:
        raise DataShapeError(f"invalid HH:mm value: {raw!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise DataShapeError(f"HH:mm out of range: {raw!r}")
    return time(hour, minute)


def to_local(now: datetime, tz: tzinfo) -> datetime:
    """Aware datetimes are converted to tz; naive ones are taken as already local."""
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def minute_floor(now: datetime) -> datetime:
    """Naive local wall clock truncated to the minute."""
    return now.replace(second=0, microsecond=0, tzinfo=None)


def fire_moment(day: date, anchor: time, lead: timedelta) -> datetime:
    """Wall-clock minute at which a reminder for `anchor` on `day` is due.

    Anchors earlier than `lead` roll back onto the previous day.
    """
    return datetime.combine(day, anchor) - lead
