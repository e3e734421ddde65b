"""Keyed collection of task histories."""

import threading
from typing import Any, Dict, List, Mapping, Optional

import structlog

from audittrail.diffing.word_diff import WordDiffAdapter
from audittrail.exceptions import InvalidInput
from audittrail.history.version_history import Clock, VersionHistory
from audittrail.models.version import Version
from audittrail.storage.base import HistoryStore
from audittrail.storage.memory_store import InMemoryHistoryStore

logger = structlog.get_logger(__name__)


class TaskRegistry:
    """Owns one VersionHistory per task id.

    Histories are created lazily on first write and wired to persist
    through the injected store. Enumeration follows insertion order;
    histories loaded at startup come first, sorted by task id.
    """

    def __init__(
        self,
        store: Optional[HistoryStore] = None,
        adapter: Optional[WordDiffAdapter] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Initialize the registry and load every stored history.

        Args:
            store: Persistence backend. Defaults to an in-memory store.
            adapter: Word differ shared by all histories
            clock: Timestamp source shared by all histories

        Raises:
            PersistenceFailure: If the store cannot be read
            ConcurrencyViolation: If a stored history is corrupt
        """
        self.store = store or InMemoryHistoryStore()
        self.adapter = adapter or WordDiffAdapter()
        self.clock = clock
        self._histories: Dict[str, VersionHistory] = {}
        self._lock = threading.Lock()
        self._creating: Dict[str, threading.Lock] = {}

        for document in self.store.load_all():
            self._histories[document.task_id] = VersionHistory.from_document(
                document,
                adapter=self.adapter,
                clock=self.clock,
                persist=self.store.save,
            )

        if self._histories:
            logger.info("histories_restored", count=len(self._histories))

    def __len__(self) -> int:
        return len(self._histories)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._histories

    def get_or_create(self, task_id: str) -> VersionHistory:
        """Return the history for a task, creating an empty one if needed.

        Raises:
            InvalidInput: If task_id is not a non-empty string
        """
        self._check_task_id(task_id)

        with self._lock:
            history = self._histories.get(task_id)
            if history is not None:
                return history
            creation_lock = self._creating.setdefault(task_id, threading.Lock())

        with creation_lock:
            with self._lock:
                history = self._histories.get(task_id)
            if history is None:
                history = self._new_history(task_id)
                self._register(history)
            return history

    def find(self, task_id: str) -> Optional[VersionHistory]:
        """Look up a history without creating it."""
        return self._histories.get(task_id)

    def list_all(self) -> List[VersionHistory]:
        """Return every known history."""
        with self._lock:
            return list(self._histories.values())

    def append(self, task_id: str, data: Mapping[str, Any]) -> Version:
        """Append a version to a task, creating the task on first write.

        A new task's first version is written through a history that is not
        yet registered. The history only becomes visible once that write has
        been persisted, so a failed first write leaves no trace. First writes
        to the same task are serialized by a per-task creation lock.
        """
        self._check_task_id(task_id)

        with self._lock:
            history = self._histories.get(task_id)
            if history is None:
                creation_lock = self._creating.setdefault(task_id, threading.Lock())

        if history is not None:
            return history.append_version(data)

        with creation_lock:
            with self._lock:
                history = self._histories.get(task_id)
            if history is not None:
                return history.append_version(data)

            history = self._new_history(task_id)
            version = history.append_version(data)
            self._register(history)
            return version

    # ============================================================================
    # Internals
    # ============================================================================

    @staticmethod
    def _check_task_id(task_id: Any) -> None:
        if not isinstance(task_id, str) or not task_id:
            raise InvalidInput("Task id must be a non-empty string", details={"task_id": task_id})

    def _new_history(self, task_id: str) -> VersionHistory:
        return VersionHistory(
            task_id,
            adapter=self.adapter,
            clock=self.clock,
            persist=self.store.save,
        )

    def _register(self, history: VersionHistory) -> None:
        # Callers hold the task's creation lock.
        with self._lock:
            self._histories[history.task_id] = history
            self._creating.pop(history.task_id, None)
        logger.info("task_created", task_id=history.task_id)
