import logging
from collections import deque
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from .errors import StoreUnavailable
from .models_db import CollectionRecord

log = logging.getLogger("risk-portal.store")

USERS = "users"
ACADEMIC_DATA = "academic_data"
PREDICTIONS = "predictions"
NOTIFICATIONS = "notifications"
FEEDBACK = "feedback"
AUDIT_LOGS = "audit_logs"


class CollectionStore:
    """Named JSON-list collections, each read and written as a whole.

    There are no cross-collection transactions: every write is an
    independent read-modify-write of one collection and the last write wins.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def read(self, key: str) -> List[Dict[str, Any]]:
        try:
            with self._session_factory() as db:
                row = db.get(CollectionRecord, key)
                return list(row.payload) if row is not None else []
        except SQLAlchemyError as e:
            log.error(f"read of '{key}' failed: {e}")
            raise StoreUnavailable(f"collection '{key}' could not be read") from e

    def write(self, key: str, items: List[Dict[str, Any]]) -> None:
        try:
            with self._session_factory() as db:
                row = db.get(CollectionRecord, key)
                if row is None:
                    db.add(CollectionRecord(key=key, payload=list(items)))
                else:
                    row.payload = list(items)
                db.commit()
        except SQLAlchemyError as e:
            log.error(f"write of '{key}' failed: {e}")
            raise StoreUnavailable(f"collection '{key}' could not be written") from e

    def append(self, key: str, item: Dict[str, Any]) -> None:
        items = self.read(key)
        items.append(item)
        self.write(key, items)

    def prepend(self, key: str, item: Dict[str, Any]) -> None:
        self.write(key, [item] + self.read(key))


class CappedLog:
    """Bounded newest-first log over one collection; the oldest entry is evicted on overflow."""

    def __init__(self, store: CollectionStore, key: str, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.store = store
        self.key = key
        self.capacity = capacity

    def push(self, item: Dict[str, Any]) -> None:
        entries = deque(self.store.read(self.key)[: self.capacity], maxlen=self.capacity)
        entries.appendleft(item)
        self.store.write(self.key, list(entries))

    def items(self) -> List[Dict[str, Any]]:
        return self.store.read(self.key)

    def replace(self, items: List[Dict[str, Any]]) -> None:
        self.store.write(self.key, list(items)[: self.capacity])
