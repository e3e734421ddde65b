"""In-process history store."""

import threading
from typing import Dict, List, Optional

from audittrail.models.version import TaskDocument
from audittrail.storage.base import HistoryStore


class InMemoryHistoryStore(HistoryStore):
    """Keeps serialized documents in a dict.

    Documents are stored as JSON text, so callers never share model
    instances with the store. ``saves`` counts successful writes.
    """

    def __init__(self) -> None:
        self._documents: Dict[str, str] = {}
        self._lock = threading.Lock()

        # Stats
        self.saves = 0

    def load(self, task_id: str) -> Optional[TaskDocument]:
        with self._lock:
            raw = self._documents.get(task_id)
        return TaskDocument.model_validate_json(raw) if raw is not None else None

    def load_all(self) -> List[TaskDocument]:
        with self._lock:
            items = sorted(self._documents.items())
        return [TaskDocument.model_validate_json(raw) for _, raw in items]

    def save(self, document: TaskDocument) -> None:
        raw = document.model_dump_json(by_alias=True)
        with self._lock:
            self._documents[document.task_id] = raw
            self.saves += 1
