"""In-process store with the same query semantics as the Firestore adapter.

Used by the test-suite and for dry runs against a YAML fixtures file.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import yaml

from notifier.models import Activity, Device, NotificationPlan, PauseWindow
from notifier.store.base import Store
from notifier.store.documents import (
    activity_from_document,
    pause_from_document,
    plan_from_document,
)

logger = logging.getLogger(__name__)


@dataclass
class MemoryStore(Store):
    plans: dict[str, NotificationPlan] = field(default_factory=dict)
    plan_instances: dict[str, bool] = field(default_factory=dict)
    user_groups: dict[str, str] = field(default_factory=dict)
    pauses: list[PauseWindow] = field(default_factory=list)
    devices: list[Device] = field(default_factory=list)
    activity_list: list[Activity] = field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path) -> MemoryStore:
        """Load fixtures shaped like the Firestore collections from YAML."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> MemoryStore:
        store = cls()
        for doc_id, doc in (data.get("notificationPlans") or {}).items():
            store.plans[str(doc_id)] = plan_from_document(str(doc_id), doc or {})
        for doc_id, doc in (data.get("plans") or {}).items():
            store.plan_instances[str(doc_id)] = bool((doc or {}).get("estado", True))
        for doc_id, doc in (data.get("users") or {}).items():
            group = (doc or {}).get("groupId")
            if group is not None:
                store.user_groups[str(doc_id)] = str(group)
        for doc in data.get("notificationPauses") or []:
            store.pauses.append(pause_from_document(doc or {}))
        for doc in data.get("devices") or []:
            doc = doc or {}
            store.devices.append(Device(user_id=str(doc.get("userId")), device_token=doc.get("deviceToken")))
        for doc_id, doc in (data.get("exercises") or {}).items():
            store.activity_list.append(activity_from_document(str(doc_id), doc or {}))
        logger.info(
            "Loaded fixtures: %s plans, %s users, %s pauses, %s devices, %s activities",
            len(store.plans),
            len(store.user_groups),
            len(store.pauses),
            len(store.devices),
            len(store.activity_list),
        )
        return store

    def active_plans(self, today: date) -> list[NotificationPlan]:
        return [p for p in self.plans.values() if p.is_current(today)]

    def deactivate_plan(self, plan_id: str) -> None:
        self.plans[plan_id].is_active = False

    def deactivate_plan_instance(self, instance_id: str) -> None:
        self.plan_instances[instance_id] = False

    def group_user_ids(self, group_id: str) -> list[str]:
        return [uid for uid, gid in self.user_groups.items() if gid == group_id]

    def available_user_ids(self, user_ids: list[str], hhmm: str) -> list[str]:
        wanted = set(user_ids)
        return [p.user_id for p in self.pauses if p.user_id in wanted and p.covers(hhmm)]

    def device_tokens(self, user_id: str) -> list[str]:
        return [d.device_token for d in self.devices if d.user_id == user_id and d.device_token]

    def pause_windows(self) -> list[PauseWindow]:
        return list(self.pauses)

    def activities(self) -> list[Activity]:
        return list(self.activity_list)
