"""Audit Trail - append-only version history with word-level change summaries."""

__version__ = "0.1.0"

from audittrail.exceptions import (
    AuditTrailError,
    ConcurrencyViolation,
    InvalidInput,
    NotFound,
    PersistenceFailure,
)
from audittrail.history import TaskRegistry, VersionHistory, compute_stats
from audittrail.service import AuditTrailService

__all__ = [
    "AuditTrailError",
    "AuditTrailService",
    "ConcurrencyViolation",
    "InvalidInput",
    "NotFound",
    "PersistenceFailure",
    "TaskRegistry",
    "VersionHistory",
    "compute_stats",
]
