"""Shared fixtures: an in-memory store, a recording push channel, fixed dates."""

import random
from datetime import date

import pytest

from notifier.channel.base import PushChannel
from notifier.dispatcher import Dispatcher
from notifier.errors import DispatchError
from notifier.models import (
    Activity,
    Device,
    DispatchResult,
    NotificationPlan,
    PauseWindow,
    ScheduleEntry,
)
from notifier.store.memory import MemoryStore

TODAY = date(2026, 10, 17)


class RecordingChannel(PushChannel):
    """Records every batch; tokens in `rejected` count as per-token failures."""

    def __init__(self, rejected=(), fail_calls=0):
        self.sent = []
        self.rejected = set(rejected)
        self.fail_calls = fail_calls

    def send(self, msg):
        if self.fail_calls:
            self.fail_calls -= 1
            raise DispatchError("transport down")
        self.sent.append(msg)
        ok = len([t for t in msg.tokens if t not in self.rejected])
        return DispatchResult(requested=len(msg.tokens), success=ok)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def dispatcher(channel):
    return Dispatcher(channel)


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def store():
    """group-a: user-1 (08:00-23:00, every 4h) and user-2 (10:00-12:00); group-b: user-3 (paused)."""
    return MemoryStore(
        user_groups={"user-1": "group-a", "user-2": "group-a", "user-3": "group-b"},
        pauses=[
            PauseWindow("user-1", True, "08:00", "23:00", frequency=4),
            PauseWindow("user-2", True, "10:00", "12:00", frequency=None),
            PauseWindow("user-3", False, "00:00", "23:59", frequency=2),
        ],
        devices=[
            Device("user-1", "tok-1a"),
            Device("user-1", "tok-1b"),
            Device("user-2", "tok-2"),
            Device("user-2", ""),
            Device("user-3", "tok-3"),
        ],
        activity_list=[Activity("ex-1", "Caminata corta"), Activity("ex-2", "Respiración profunda")],
    )


@pytest.fixture
def make_plan(store):
    """Factory adding a plan to the store; entries default to one inst-1 for group-a today."""

    def _make(
        plan_id="plan-1",
        start_date=TODAY,
        end_date=date(2026, 10, 20),
        time="09:00",
        time_second="18:00",
        schedule=None,
        is_active=True,
    ):
        if schedule is None:
            schedule = {TODAY: [ScheduleEntry("inst-1", "group-a", time, "Yoga")]}
        plan = NotificationPlan(
            id=plan_id,
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
            time=time,
            time_second=time_second,
            schedule=schedule,
        )
        store.plans[plan_id] = plan
        for entries in schedule.values():
            for entry in entries:
                store.plan_instances.setdefault(entry.id, True)
        return plan

    return _make
