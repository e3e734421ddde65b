"""JSON-ready operations over the task registry.

Each method maps one endpoint of the audit trail API onto the core and
returns plain dicts with camelCase keys. Missing pointers come out as
None, never 0.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import structlog

from audittrail.exceptions import NotFound
from audittrail.history.registry import TaskRegistry
from audittrail.history.stats import compute_stats, display_title
from audittrail.history.version_history import Clock, utc_now
from audittrail.models.config import Settings
from audittrail.storage import HistoryStore, InMemoryHistoryStore, JsonHistoryStore

logger = structlog.get_logger(__name__)


def build_store(settings: Settings) -> HistoryStore:
    """Create the history store selected by the settings."""
    if settings.store == "memory":
        return InMemoryHistoryStore()
    if settings.store == "json":
        return JsonHistoryStore(settings.data_dir)
    raise ValueError(f"Unknown store backend: {settings.store}")


class AuditTrailService:
    """Facade used by the CLI and any HTTP front end."""

    def __init__(self, registry: Optional[TaskRegistry] = None, clock: Optional[Clock] = None) -> None:
        self.clock = clock or utc_now
        self.registry = registry or TaskRegistry(clock=self.clock)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AuditTrailService":
        settings = settings or Settings()
        registry = TaskRegistry(store=build_store(settings))
        return cls(registry)

    def create_version(self, task_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        version = self.registry.append(task_id, payload)
        return {
            "message": f"Version {version.version_number} created",
            "version": version.model_dump(mode="json", by_alias=True),
        }

    def list_tasks(self) -> List[Dict[str, Any]]:
        return [
            {"taskId": history.task_id, "title": display_title(history.latest_version())}
            for history in self.registry.list_all()
        ]

    def get_task(self, task_id: str) -> Dict[str, Any]:
        """Return a task's full history.

        Unknown tasks yield an explicit empty shape instead of an error.
        """
        history = self.registry.find(task_id)
        if history is None:
            return {"message": "Task not found", "versions": []}

        document = history.to_document()
        return {
            "taskId": document.task_id,
            "headVersion": document.head_version,
            "tailVersion": document.tail_version,
            "totalVersions": document.version_count,
            "versions": [v.model_dump(mode="json", by_alias=True) for v in document.versions],
        }

    def get_version(self, task_id: str, version_number: int) -> Dict[str, Any]:
        """Return one version plus its navigation pair.

        Raises:
            NotFound: "Task not found" or "Version not found"
        """
        history = self.registry.find(task_id)
        if history is None:
            raise NotFound("Task not found", details={"task_id": task_id})
        return history.get_version(version_number).to_dict()

    def stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return compute_stats(self.registry, now or self.clock()).to_dict()
