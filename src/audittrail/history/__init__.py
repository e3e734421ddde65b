"""Version histories, the task registry and derived summaries."""

from audittrail.history.registry import TaskRegistry
from audittrail.history.stats import DashboardStats, LatestTask, compute_stats, display_title
from audittrail.history.summary import relative_time, summarize_creation, summarize_diff
from audittrail.history.version_history import VersionHistory

__all__ = [
    "VersionHistory",
    "TaskRegistry",
    "DashboardStats",
    "LatestTask",
    "compute_stats",
    "display_title",
    "relative_time",
    "summarize_creation",
    "summarize_diff",
]
