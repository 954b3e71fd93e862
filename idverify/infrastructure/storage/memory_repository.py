# idverify/infrastructure/storage/memory_repository.py
from typing import Dict, Optional
import copy
import datetime
import threading

from ...domain.value_objects import VerificationRecord


def _now_iso() -> str:
    return datetime.datetime.utcnow().replace(tzinfo=datetime.timezone.utc).isoformat()


class InMemoryVerificationRepository:
    """Process-local store (local runs, tests). Same merge semantics as DynamoDB."""

    def __init__(self):
        self._items: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[VerificationRecord]:
        with self._lock:
            item = self._items.get(user_id)
            item = copy.deepcopy(item) if item else None
        return VerificationRecord.from_item(item) if item else None

    def put(self, record: VerificationRecord) -> None:
        now = _now_iso()
        record.created_at = record.created_at or now
        record.updated_at = now
        with self._lock:
            self._items[record.user_id] = copy.deepcopy(record.to_item())

    def update(self, user_id: str, patch) -> VerificationRecord:
        now = _now_iso()
        with self._lock:
            item = self._items.setdefault(user_id, {"userId": user_id, "createdAt": now})
            item.update(copy.deepcopy(patch.to_fields()))
            item["updatedAt"] = now
            merged = copy.deepcopy(item)
        return VerificationRecord.from_item(merged)
