"""Data models for task versions and their persisted documents."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue
from pydantic.alias_generators import to_camel


class DiffStats(BaseModel):
    """Word-level change counts relative to the preceding version."""

    model_config = ConfigDict(frozen=True)

    added: int = Field(0, ge=0, description="Words added")
    removed: int = Field(0, ge=0, description="Words removed")
    changed: int = Field(0, ge=0, description="added + removed")


class Version(BaseModel):
    """One snapshot of a task's content.

    Records are frozen. ``next`` is resolved from the owning history when a
    version is read, so a stored record never has to be mutated after its
    successor is appended.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    version_number: int = Field(..., ge=1, description="1-based position in the history")
    data: Dict[str, JsonValue] = Field(..., description="JSON payload, at least title and content")
    diff: DiffStats = Field(default_factory=DiffStats, description="Change stats vs. predecessor")
    summary: str = Field("", description="Short human-readable change summary")
    prev: Optional[int] = Field(None, description="Predecessor version number")
    next: Optional[int] = Field(None, description="Successor version number")
    created_at: datetime = Field(..., description="Insertion timestamp")

    @property
    def title(self) -> Optional[str]:
        title = self.data.get("title")
        return title if isinstance(title, str) else None

    @property
    def content(self) -> str:
        return self.data.get("content") or ""


class Navigation(BaseModel):
    """Neighbor version numbers of a single version."""

    prev: Optional[int] = None
    next: Optional[int] = None


class VersionView(BaseModel):
    """A version together with its resolved navigation pair."""

    version: Version
    navigation: Navigation

    def to_dict(self) -> Dict[str, Any]:
        data = self.version.model_dump(mode="json", by_alias=True)
        data["navigation"] = self.navigation.model_dump(mode="json")
        return data


class TaskDocument(BaseModel):
    """Persisted form of one task's history.

    Mirrors the stored document shape: head/tail pointers, a running count
    and every version with its ``next`` pointer materialized.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "taskId": "t1",
                "headVersion": 1,
                "tailVersion": 1,
                "versionCount": 1,
                "versions": [
                    {
                        "versionNumber": 1,
                        "data": {"title": "T", "content": "alpha beta"},
                        "diff": {"added": 2, "removed": 0, "changed": 2},
                        "summary": "Created with 2 words",
                        "prev": None,
                        "next": None,
                        "createdAt": "2024-01-15T10:30:00Z",
                    }
                ],
            }
        },
    )

    task_id: str = Field(..., description="Unique task identifier")
    head_version: Optional[int] = Field(None, description="First version number")
    tail_version: Optional[int] = Field(None, description="Latest version number")
    version_count: int = Field(0, ge=0, description="Number of versions appended")
    versions: List[Version] = Field(default_factory=list, description="All versions")

