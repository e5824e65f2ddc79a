"""Firestore store: reads plans/users/pauses/devices/exercises collections."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterator

from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore_v1.base_query import FieldFilter

from notifier.errors import DataShapeError, TransientStoreError
from notifier.models import Activity, NotificationPlan, PauseWindow
from notifier.store.base import Store
from notifier.store.documents import (
    activity_from_document,
    pause_from_document,
    plan_from_document,
)
from notifier.timeutil import day_key

logger = logging.getLogger(__name__)

DEFAULT_COLLECTIONS: dict[str, str] = {
    "plans": "notificationPlans",
    "plan_instances": "plans",
    "users": "users",
    "pauses": "notificationPauses",
    "devices": "devices",
    "activities": "exercises",
}

# Firestore accepts at most 30 values in an `in` filter.
IN_QUERY_LIMIT = 30


def _chunks(items: list[str], size: int) -> Iterator[list[str]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


class FirestoreStore(Store):
    """Store backed by a Firestore client from the initialized Firebase app."""

    def __init__(self, client: Any = None, collections: dict[str, str] | None = None, timeout: float = 10.0):
        self._db = client if client is not None else firestore.client()
        self._collections = {**DEFAULT_COLLECTIONS, **(collections or {})}
        self._timeout = timeout

    def _col(self, name: str):
        return self._db.collection(self._collections[name])

    def _get(self, query, what: str) -> list:
        try:
            return list(query.get(timeout=self._timeout))
        except GoogleAPICallError as e:
            raise TransientStoreError(f"{what} query failed: {e}") from e

    def _update(self, name: str, doc_id: str, fields: dict[str, Any]) -> None:
        try:
            self._col(name).document(doc_id).update(fields, timeout=self._timeout)
        except GoogleAPICallError as e:
            raise TransientStoreError(f"update {name}/{doc_id} failed: {e}") from e

    def active_plans(self, today: date) -> list[NotificationPlan]:
        key = day_key(today)
        query = (
            self._col("plans")
            .where(filter=FieldFilter("isActive", "==", True))
            .where(filter=FieldFilter("startDate", "<=", key))
            .where(filter=FieldFilter("endDate", ">=", key))
        )
        plans: list[NotificationPlan] = []
        for doc in self._get(query, "active plans"):
            try:
                plans.append(plan_from_document(doc.id, doc.to_dict() or {}))
            except DataShapeError as e:
                logger.warning("plan %s skipped: %s", doc.id, e)
        return plans

    def deactivate_plan(self, plan_id: str) -> None:
        self._update("plans", plan_id, {"isActive": False})

    def deactivate_plan_instance(self, instance_id: str) -> None:
        self._update("plan_instances", instance_id, {"estado": False})

    def group_user_ids(self, group_id: str) -> list[str]:
        query = self._col("users").where(filter=FieldFilter("groupId", "==", group_id))
        return [doc.id for doc in self._get(query, f"users of group {group_id}")]

    def available_user_ids(self, user_ids: list[str], hhmm: str) -> list[str]:
        available: list[str] = []
        for chunk in _chunks(list(user_ids), IN_QUERY_LIMIT):
            query = (
                self._col("pauses")
                .where(filter=FieldFilter("idUser", "in", chunk))
                .where(filter=FieldFilter("notifiActive", "==", True))
                .where(filter=FieldFilter("dateStart", "<=", hhmm))
                .where(filter=FieldFilter("dateEnd", ">=", hhmm))
            )
            for doc in self._get(query, "pause windows"):
                user_id = (doc.to_dict() or {}).get("idUser")
                if user_id:
                    available.append(str(user_id))
        return available

    def device_tokens(self, user_id: str) -> list[str]:
        query = self._col("devices").where(filter=FieldFilter("userId", "==", user_id))
        tokens: list[str] = []
        for doc in self._get(query, f"devices of user {user_id}"):
            token = (doc.to_dict() or {}).get("deviceToken")
            if token:
                tokens.append(str(token))
        return tokens

    def pause_windows(self) -> list[PauseWindow]:
        return [pause_from_document(doc.to_dict() or {}) for doc in self._get(self._col("pauses"), "pause windows")]

    def activities(self) -> list[Activity]:
        return [
            activity_from_document(doc.id, doc.to_dict() or {})
            for doc in self._get(self._col("activities"), "activities")
        ]
