"""Core data models shared by store, evaluators and channel layer."""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from notifier.dispatcher import Dispatcher
    from notifier.store.base import Store


@dataclass
class ScheduleEntry:
    """One session instance on a given date; `id` is the plan-instance id."""

    id: str
    group: str
    time: str
    name: str


@dataclass
class NotificationPlan:
    """Recurring schedule with a validity range and two daily anchors."""

    id: str
    is_active: bool
    start_date: date
    end_date: date
    time: str
    time_second: str
    schedule: dict[date, list[ScheduleEntry]] = field(default_factory=dict)

    def entries_on(self, day: date) -> list[ScheduleEntry]:
        return self.schedule.get(day, [])

    def is_current(self, today: date) -> bool:
        return self.is_active and self.start_date <= today <= self.end_date


@dataclass
class PauseWindow:
    """Per-user daily eligibility window, optionally with a frequency in hours."""

    user_id: str
    notifi_active: bool
    date_start: str
    date_end: str
    frequency: int | None = None

    def covers(self, hhmm: str) -> bool:
        # Zero-padded 24h strings compare correctly as text.
        return self.notifi_active and self.date_start <= hhmm <= self.date_end


@dataclass
class Device:
    user_id: str
    device_token: str | None


@dataclass
class Activity:
    id: str
    name: str | None = None


@dataclass
class PushMessage:
    """A batch of device tokens plus one notification payload."""

    tokens: set[str]
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


@dataclass
class DispatchResult:
    requested: int = 0
    success: int = 0

    @property
    def failure(self) -> int:
        return self.requested - self.success


@dataclass
class PlanOutcome:
    """What happened to one plan during a tick.

    `fired_entry_ids` are the entries that produced a reminder in this tick;
    `expired_instance_ids` are the plan instances marked inactive because the
    plan reached its end date. The two are tracked independently.
    """

    plan_id: str
    fired_entry_ids: list[str] = field(default_factory=list)
    expired: bool = False
    expired_instance_ids: list[str] = field(default_factory=list)


@dataclass
class EvaluatorReport:
    evaluator_id: str
    dispatched: int = 0
    skipped: int = 0
    errors: int = 0
    plans: list[PlanOutcome] = field(default_factory=list)


@dataclass
class TickReport:
    now: datetime
    reports: list[EvaluatorReport] = field(default_factory=list)
    skipped: bool = False


@dataclass
class TickContext:
    """Capabilities handed to evaluators for a single tick."""

    now: datetime
    store: Store
    dispatcher: Dispatcher
    rng: random.Random = field(default_factory=random.Random)
    dry_run: bool = False


class Evaluator(Protocol):
    """Evaluator protocol: id + evaluate(now) -> EvaluatorReport."""

    @property
    def id(self) -> str:
        """Evaluator unique id, e.g. 'plan.reminders'."""
        ...

    def evaluate(self, now: datetime) -> EvaluatorReport:
        """Evaluate the tick at local wall-clock `now` and dispatch whatever is due."""
        ...
