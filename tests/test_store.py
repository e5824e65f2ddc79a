"""
tests/test_store.py

Tests for document mapping and the in-memory store.
"""

from datetime import date
from pathlib import Path

import pytest

from notifier.errors import DataShapeError
from notifier.store import MemoryStore, get_store
from notifier.store.documents import (
    activity_from_document,
    parse_frequency,
    pause_from_document,
    plan_from_document,
)

FIXTURES = Path(__file__).resolve().parent.parent / "config" / "fixtures.example.yaml"


def plan_doc(**overrides):
    doc = {
        "isActive": True,
        "startDate": "2026-10-13T00:00:00.000",
        "endDate": "2026-10-17T00:00:00.000",
        "time": "09:00",
        "timeSecond": "18:00",
        "assignedPlans": {
            "2026-10-17T00:00:00.000": [{"id": "inst-1", "group": "group-a", "time": "09:00", "name": "Yoga"}],
        },
    }
    doc.update(overrides)
    return doc


class TestPlanDocuments:
    def test_schedule_is_keyed_by_date(self):
        plan = plan_from_document("plan-1", plan_doc())
        assert plan.start_date == date(2026, 10, 13)
        assert plan.end_date == date(2026, 10, 17)
        entries = plan.entries_on(date(2026, 10, 17))
        assert [(e.id, e.group, e.name) for e in entries] == [("inst-1", "group-a", "Yoga")]
        assert plan.entries_on(date(2026, 10, 16)) == []

    def test_malformed_schedule_parts_are_dropped(self):
        plan = plan_from_document(
            "plan-1",
            plan_doc(assignedPlans={"someday": [{"id": "x"}], "2026-10-16": ["junk", {"id": "inst-2"}]}),
        )
        assert list(plan.schedule) == [date(2026, 10, 16)]
        assert [e.id for e in plan.schedule[date(2026, 10, 16)]] == ["inst-2"]

    def test_missing_schedule_is_empty(self):
        assert plan_from_document("plan-1", plan_doc(assignedPlans=None)).schedule == {}

    def test_bad_date_range_raises(self):
        with pytest.raises(DataShapeError):
            plan_from_document("plan-1", plan_doc(startDate="yesterday"))


class TestPauseDocuments:
    @pytest.mark.parametrize("raw,expected", [(3, 3), ("4", 4), (2.0, 2), (None, None), ("", None)])
    def test_parse_frequency(self, raw, expected):
        assert parse_frequency(raw) == expected

    @pytest.mark.parametrize("raw", ["often", 2.5, True])
    def test_parse_frequency_rejects(self, raw):
        with pytest.raises(DataShapeError):
            parse_frequency(raw)

    def test_bad_frequency_keeps_window(self):
        pause = pause_from_document(
            {"idUser": "u1", "notifiActive": True, "dateStart": "08:00", "dateEnd": "20:00", "frecuencia": "x"}
        )
        assert pause.frequency is None
        assert pause.covers("08:00")
        assert not pause.covers("20:01")

    def test_activity_without_name(self):
        assert activity_from_document("ex-1", {}).name is None
        assert activity_from_document("ex-2", {"nombre": "Caminata"}).name == "Caminata"


class TestMemoryStore:
    def test_loads_example_fixtures(self):
        store = MemoryStore.from_file(FIXTURES)
        assert [p.id for p in store.active_plans(date(2026, 10, 17))] == ["plan-1"]
        assert store.active_plans(date(2026, 10, 18)) == []
        assert sorted(store.group_user_ids("group-a")) == ["user-1", "user-2"]
        assert store.available_user_ids(["user-1", "user-2"], "09:00") == ["user-1"]
        assert store.device_tokens("user-1") == ["token-user-1"]
        assert len(store.activities()) == 2

    def test_deactivation_flags(self):
        store = MemoryStore.from_file(FIXTURES)
        store.deactivate_plan("plan-1")
        store.deactivate_plan_instance("inst-1")
        assert store.active_plans(date(2026, 10, 17)) == []
        assert store.plan_instances["inst-1"] is False

    def test_registry(self):
        assert get_store("memory") is MemoryStore
        with pytest.raises(ValueError):
            get_store("sqlite")
