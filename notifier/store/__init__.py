"""Store layer: base + Firestore + in-memory; factory by type."""
from __future__ import annotations

from notifier.store.base import Store
from notifier.store.memory import MemoryStore


def _firestore_store() -> type[Store]:
    # Imported lazily so the memory store works without the Firestore SDK loaded.
    from notifier.store.firestore import FirestoreStore

    return FirestoreStore


_STORES = {
    "firestore": _firestore_store,
    "memory": lambda: MemoryStore,
}


def get_store(store_type: str) -> type[Store]:
    """Return store class for given type ('firestore' or 'memory')."""
    if store_type not in _STORES:
        raise ValueError(f"Unknown store type: {store_type}")
    return _STORES[store_type]()


__all__ = ["Store", "MemoryStore", "get_store"]
