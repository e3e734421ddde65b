"""Error taxonomy for the audit trail core."""

from typing import Any, Dict, Optional


class AuditTrailError(Exception):
    """Base class for all audit trail errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFound(AuditTrailError):
    """Unknown task id or version number on a read."""


class InvalidInput(AuditTrailError):
    """Malformed input, e.g. non-string text handed to the word differ."""


class PersistenceFailure(AuditTrailError):
    """The history store is unavailable or returned an error."""


class ConcurrencyViolation(AuditTrailError):
    """A history broke its chain invariants.

    Seeing this means appends to one task were not serialized. It is a
    programming error, not a recoverable runtime condition.
    """
