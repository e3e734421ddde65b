"""Cross-task summary metrics."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from audittrail.history.registry import TaskRegistry
from audittrail.history.summary import relative_time
from audittrail.models.version import Version

UNTITLED = "Untitled Task"


def display_title(version: Optional[Version]) -> str:
    """Trimmed title of a version, or the placeholder when blank or missing."""
    title = version.title.strip() if version is not None and version.title else ""
    return title or UNTITLED


class LatestTask(BaseModel):
    """The most recently touched task."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    task_id: str = Field(..., description="Task identifier")
    title: str = Field(..., description="Display title of the latest version")
    time_ago: str = Field(..., description="Relative age of the latest version")


class DashboardStats(BaseModel):
    """Counts across every task plus the latest activity."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_tasks: int = Field(0, description="Number of task histories")
    total_versions: int = Field(0, description="Sum of all version counts")
    latest_task: Optional[LatestTask] = Field(None, description="Most recently updated task")

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True)
        if data["latestTask"] is not None:
            data["latestTask"].pop("taskId")
        return data


def compute_stats(registry: TaskRegistry, now: datetime) -> DashboardStats:
    """Aggregate counts and find the most recently updated task.

    Ties on the latest timestamp go to the first history in registry
    enumeration order.
    """
    histories = registry.list_all()
    latest: Optional[Version] = None
    latest_task_id: Optional[str] = None

    for history in histories:
        tail = history.latest_version()
        if tail is None:
            continue
        if latest is None or tail.created_at > latest.created_at:
            latest = tail
            latest_task_id = history.task_id

    latest_task = None
    if latest is not None:
        latest_task = LatestTask(
            task_id=latest_task_id,
            title=display_title(latest),
            time_ago=relative_time(latest.created_at, now),
        )

    return DashboardStats(
        total_tasks=len(histories),
        total_versions=sum(h.count for h in histories),
        latest_task=latest_task,
    )
