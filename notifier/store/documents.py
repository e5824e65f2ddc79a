"""Map stored documents (Firestore field names) onto typed records."""
from __future__ import annotations

import logging
from typing import Any

from notifier.errors import DataShapeError
from notifier.models import Activity, NotificationPlan, PauseWindow, ScheduleEntry
from notifier.timeutil import parse_day_key

logger = logging.getLogger(__name__)


def _entry_from_dict(raw: dict[str, Any]) -> ScheduleEntry:
    return ScheduleEntry(
        id=str(raw.get("id", "")),
        group=str(raw.get("group", "")),
        time=str(raw.get("time", "")),
        name=str(raw.get("name", "")),
    )


def parse_schedule(plan_id: str, raw: Any) -> dict:
    """Turn the `assignedPlans` map (day key -> list of dicts) into date -> entries.

    Keys that are not day keys and items that are not mappings are dropped
    with a warning; the rest of the plan stays usable.
    """
    schedule = {}
    if not isinstance(raw, dict):
        if raw:
            logger.warning("plan %s: assignedPlans is not a map, ignored", plan_id)
        return schedule
    for key, items in raw.items():
        try:
            day = parse_day_key(key)
        except DataShapeError as e:
            logger.warning("plan %s: %s, entries skipped", plan_id, e)
            continue
        entries = schedule.setdefault(day, [])
        for item in items or []:
            if not isinstance(item, dict):
                logger.warning("plan %s: schedule item on %s is not a map, skipped", plan_id, key)
                continue
            entries.append(_entry_from_dict(item))
    return schedule


def plan_from_document(doc_id: str, data: dict[str, Any]) -> NotificationPlan:
    """Raises DataShapeError when startDate/endDate cannot be parsed."""
    return NotificationPlan(
        id=doc_id,
        is_active=bool(data.get("isActive", False)),
        start_date=parse_day_key(data.get("startDate", "")),
        end_date=parse_day_key(data.get("endDate", "")),
        time=str(data.get("time", "")),
        time_second=str(data.get("timeSecond", "")),
        schedule=parse_schedule(doc_id, data.get("assignedPlans")),
    )


def parse_frequency(raw: Any) -> int | None:
    """Frequency in hours; None when unset, DataShapeError when not a whole number."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise DataShapeError(f"invalid frequency: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise DataShapeError(f"invalid frequency: {raw!r}") from e
    if not value.is_integer():
        raise DataShapeError(f"frequency is not a whole number of hours: {raw!r}")
    return int(value)


def pause_from_document(data: dict[str, Any]) -> PauseWindow:
    try:
        frequency = parse_frequency(data.get("frecuencia"))
    except DataShapeError as e:
        logger.warning("pause window for user %s: %s", data.get("idUser"), e)
        frequency = None
    return PauseWindow(
        user_id=str(data.get("idUser", "")),
        notifi_active=bool(data.get("notifiActive", False)),
        date_start=str(data.get("dateStart", "")),
        date_end=str(data.get("dateEnd", "")),
        frequency=frequency,
    )


def activity_from_document(doc_id: str, data: dict[str, Any]) -> Activity:
    name = data.get("nombre")
    return Activity(id=doc_id, name=str(name) if name else None)
