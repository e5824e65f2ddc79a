"""
tests/test_firestore_store.py

Tests for the Firestore adapter against a fake client.
"""

from datetime import date

import pytest
from google.api_core.exceptions import ServiceUnavailable

from notifier.errors import TransientStoreError
from notifier.store.firestore import IN_QUERY_LIMIT, FirestoreStore


class FakeDoc:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    def to_dict(self):
        return self._data


class FakeDocRef:
    def __init__(self, client, collection, doc_id):
        self.client = client
        self.collection = collection
        self.doc_id = doc_id

    def update(self, fields, timeout=None):
        if self.client.fail:
            raise ServiceUnavailable("down")
        self.client.updates.append((self.collection, self.doc_id, fields, timeout))


class FakeQuery:
    def __init__(self, client, collection, filters=()):
        self.client = client
        self.collection = collection
        self.filters = list(filters)

    def where(self, filter):
        return FakeQuery(self.client, self.collection, self.filters + [filter])

    def document(self, doc_id):
        return FakeDocRef(self.client, self.collection, doc_id)

    def get(self, timeout=None):
        if self.client.fail:
            raise ServiceUnavailable("down")
        self.client.queries.append((self.collection, [(f.field_path, f.op_string, f.value) for f in self.filters], timeout))
        return self.client.results.get(self.collection, [])


class FakeClient:
    def __init__(self, results=None, fail=False):
        self.results = results or {}
        self.fail = fail
        self.queries = []
        self.updates = []

    def collection(self, name):
        return FakeQuery(self, name)


class TestQueries:
    def test_active_plans_filters_by_day_key(self):
        client = FakeClient(
            {
                "notificationPlans": [
                    FakeDoc("plan-1", {"isActive": True, "startDate": "2026-10-13", "endDate": "2026-10-17"}),
                    FakeDoc("broken", {"isActive": True, "startDate": "??", "endDate": "2026-10-17"}),
                ]
            }
        )
        plans = FirestoreStore(client, timeout=5).active_plans(date(2026, 10, 17))
        assert [p.id for p in plans] == ["plan-1"]
        collection, filters, timeout = client.queries[0]
        assert collection == "notificationPlans"
        assert filters == [
            ("isActive", "==", True),
            ("startDate", "<=", "2026-10-17T00:00:00.000"),
            ("endDate", ">=", "2026-10-17T00:00:00.000"),
        ]
        assert timeout == 5

    def test_in_queries_are_chunked(self):
        client = FakeClient({"notificationPauses": [FakeDoc("p", {"idUser": "u1"})]})
        user_ids = [f"u{i}" for i in range(2 * IN_QUERY_LIMIT + 5)]
        available = FirestoreStore(client).available_user_ids(user_ids, "09:00")
        sizes = [len(filters[0][2]) for _, filters, _ in client.queries]
        assert sizes == [IN_QUERY_LIMIT, IN_QUERY_LIMIT, 5]
        assert available == ["u1", "u1", "u1"]
        assert client.queries[0][1][1:] == [
            ("notifiActive", "==", True),
            ("dateStart", "<=", "09:00"),
            ("dateEnd", ">=", "09:00"),
        ]

    def test_empty_user_list_skips_query(self):
        client = FakeClient()
        assert FirestoreStore(client).available_user_ids([], "09:00") == []
        assert client.queries == []

    def test_device_tokens_drop_blank(self):
        client = FakeClient(
            {"devices": [FakeDoc("d1", {"deviceToken": "tok"}), FakeDoc("d2", {"deviceToken": ""}), FakeDoc("d3", {})]}
        )
        assert FirestoreStore(client).device_tokens("u1") == ["tok"]

    def test_custom_collection_names(self):
        client = FakeClient({"grupos": [FakeDoc("u1", {})]})
        store = FirestoreStore(client, collections={"users": "grupos"})
        assert store.group_user_ids("g1") == ["u1"]
        assert client.queries[0][1] == [("groupId", "==", "g1")]


class TestUpdates:
    def test_deactivation_fields(self):
        client = FakeClient()
        store = FirestoreStore(client, timeout=3)
        store.deactivate_plan("plan-1")
        store.deactivate_plan_instance("inst-1")
        assert client.updates == [
            ("notificationPlans", "plan-1", {"isActive": False}, 3),
            ("plans", "inst-1", {"estado": False}, 3),
        ]


class TestErrors:
    def test_api_errors_become_transient(self):
        store = FirestoreStore(FakeClient(fail=True))
        with pytest.raises(TransientStoreError):
            store.group_user_ids("g1")
        with pytest.raises(TransientStoreError):
            store.deactivate_plan("plan-1")
