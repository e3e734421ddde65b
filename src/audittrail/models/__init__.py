"""Data models for task version histories."""

from audittrail.models.config import Settings
from audittrail.models.version import DiffStats, Navigation, TaskDocument, Version, VersionView

__all__ = [
    "DiffStats",
    "Navigation",
    "TaskDocument",
    "Version",
    "VersionView",
    "Settings",
]
