"""Notification templates for the two reminder kinds."""
from __future__ import annotations

from notifier.models import Activity, PushMessage, ScheduleEntry

FALLBACK_ACTIVITY_NAME = "una actividad"


def plan_reminder(entry: ScheduleEntry, tokens: set[str]) -> PushMessage:
    return PushMessage(
        tokens=set(tokens),
        title=f"Próxima actividad: {entry.name}",
        body=f"En 1 hora tienes {entry.name} ({entry.time})",
        data={"planId": str(entry.id)},
    )


def activity_suggestion(activity: Activity, tokens: set[str]) -> PushMessage:
    return PushMessage(
        tokens=set(tokens),
        title="¡Hora de moverse!",
        body=f"Te sugerimos: {activity.name or FALLBACK_ACTIVITY_NAME}",
        data={"actividadId": str(activity.id)},
    )
