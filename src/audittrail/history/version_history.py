"""Append-only version history for a single task.

Versions live in a dense list indexed by ``version_number - 1``. The list is
never mutated in place: an append builds a new list and swaps it in once the
optional persist hook has accepted the resulting document, so readers always
see either the old chain or the fully linked new one.
"""

import copy
import threading
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

import structlog
from pydantic import ValidationError

from audittrail.diffing.word_diff import WordDiffAdapter, word_count
from audittrail.exceptions import (
    AuditTrailError,
    ConcurrencyViolation,
    InvalidInput,
    NotFound,
    PersistenceFailure,
)
from audittrail.history.summary import summarize_creation, summarize_diff
from audittrail.models.version import DiffStats, Navigation, TaskDocument, Version, VersionView

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]
PersistHook = Callable[[TaskDocument], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VersionHistory:
    """Linked chain of versions for one task.

    ``prev`` is stored on each version; ``next`` is derived from position
    when the version is read.
    """

    def __init__(
        self,
        task_id: str,
        adapter: Optional[WordDiffAdapter] = None,
        clock: Optional[Clock] = None,
        persist: Optional[PersistHook] = None,
    ) -> None:
        """Initialize an empty history.

        Args:
            task_id: Unique task identifier
            adapter: Word differ used to compare consecutive versions
            clock: Source of creation timestamps. Defaults to UTC now.
            persist: Called with the would-be document before an append
                becomes visible. Raising aborts the append.
        """
        self.task_id = task_id
        self.adapter = adapter or WordDiffAdapter()
        self._clock = clock or utc_now
        self._persist = persist
        self._versions: List[Version] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"VersionHistory(task_id={self.task_id!r}, count={self.count})"

    @property
    def count(self) -> int:
        return len(self._versions)

    @property
    def is_empty(self) -> bool:
        return not self._versions

    @property
    def head(self) -> Optional[int]:
        return 1 if self._versions else None

    @property
    def tail(self) -> Optional[int]:
        return len(self._versions) or None

    # ============================================================================
    # Writes
    # ============================================================================

    def append_version(self, data: Mapping[str, Any]) -> Version:
        """Append a new version and link it after the current tail.

        The whole read-tail, diff, persist, commit sequence runs under this
        history's lock, so concurrent appends to one task are serialized.

        Args:
            data: Payload to store verbatim. Its ``content`` field (missing
                counts as empty) is what gets diffed.

        Returns:
            The new tail version

        Raises:
            InvalidInput: If data is not a mapping of JSON values or content
                is not text
            PersistenceFailure: If the persist hook fails; nothing is committed
        """
        if not isinstance(data, Mapping):
            raise InvalidInput(
                f"Version data must be a mapping, got {type(data).__name__}",
                details={"task_id": self.task_id},
            )

        with self._lock:
            versions = self._versions
            tail = versions[-1] if versions else None
            new_content = data.get("content") or ""

            if tail is None:
                words = word_count(new_content)
                diff = DiffStats(added=words, removed=0, changed=words)
                summary = summarize_creation(words)
            else:
                counts = self.adapter.compare(tail.content, new_content)
                diff = DiffStats(
                    added=counts["added"],
                    removed=counts["removed"],
                    changed=counts["added"] + counts["removed"],
                )
                summary = summarize_diff(diff.added, diff.removed)

            created_at = self._clock()
            if tail is not None and created_at < tail.created_at:
                created_at = tail.created_at

            try:
                version = Version(
                    version_number=len(versions) + 1,
                    data=copy.deepcopy(dict(data)),
                    diff=diff,
                    summary=summary,
                    prev=tail.version_number if tail else None,
                    next=None,
                    created_at=created_at,
                )
            except ValidationError as e:
                raise InvalidInput(
                    f"Invalid version data for task {self.task_id}: {e}",
                    details={"task_id": self.task_id},
                ) from e
            pending = versions + [version]

            if self._persist is not None:
                try:
                    self._persist(self._build_document(pending))
                except AuditTrailError:
                    logger.error("persist_failed", task_id=self.task_id, version=version.version_number)
                    raise
                except Exception as e:
                    logger.error(
                        "persist_failed",
                        task_id=self.task_id,
                        version=version.version_number,
                        error=str(e),
                    )
                    raise PersistenceFailure(
                        f"Failed to persist version {version.version_number} of task {self.task_id}",
                        details={"task_id": self.task_id},
                    ) from e

            self._versions = pending

        logger.info(
            "version_appended",
            task_id=self.task_id,
            version=version.version_number,
            added=diff.added,
            removed=diff.removed,
        )
        return version

    # ============================================================================
    # Reads
    # ============================================================================

    @staticmethod
    def _resolve(version: Version, count: int) -> Version:
        next_number = version.version_number + 1 if version.version_number < count else None
        if version.next == next_number:
            return version
        return version.model_copy(update={"next": next_number})

    def get_all(self) -> List[Version]:
        """Return every version in ascending version order."""
        snapshot = self._versions
        return [self._resolve(v, len(snapshot)) for v in snapshot]

    def get_version(self, number: int) -> VersionView:
        """Return one version with its navigation pair.

        Raises:
            NotFound: If no version with that number exists
        """
        snapshot = self._versions
        if isinstance(number, bool) or not isinstance(number, int) or not 1 <= number <= len(snapshot):
            raise NotFound(
                "Version not found",
                details={"task_id": self.task_id, "version": number},
            )

        version = snapshot[number - 1]
        if version.version_number != number:
            raise ConcurrencyViolation(
                f"Version slot {number} of task {self.task_id} holds version {version.version_number}",
                details={"task_id": self.task_id},
            )

        resolved = self._resolve(version, len(snapshot))
        return VersionView(
            version=resolved,
            navigation=Navigation(prev=resolved.prev, next=resolved.next),
        )

    def latest_version(self) -> Optional[Version]:
        """Return the tail version, or None while the history is empty."""
        snapshot = self._versions
        return snapshot[-1] if snapshot else None

    # ============================================================================
    # Persistence
    # ============================================================================

    def _build_document(self, versions: List[Version]) -> TaskDocument:
        count = len(versions)
        return TaskDocument(
            task_id=self.task_id,
            head_version=1 if count else None,
            tail_version=count or None,
            version_count=count,
            versions=[self._resolve(v, count) for v in versions],
        )

    def to_document(self) -> TaskDocument:
        """Snapshot this history as a storable document."""
        return self._build_document(self._versions)

    @classmethod
    def from_document(
        cls,
        document: TaskDocument,
        adapter: Optional[WordDiffAdapter] = None,
        clock: Optional[Clock] = None,
        persist: Optional[PersistHook] = None,
    ) -> "VersionHistory":
        """Rebuild a history from a stored document.

        Raises:
            ConcurrencyViolation: If the stored chain is not contiguous and
                doubly linked from 1 to its version count
        """
        versions = sorted(document.versions, key=lambda v: v.version_number)
        count = len(versions)

        def broken(reason: str) -> ConcurrencyViolation:
            return ConcurrencyViolation(
                f"Stored history for task {document.task_id} is corrupt: {reason}",
                details={"task_id": document.task_id},
            )

        if document.version_count != count:
            raise broken(f"versionCount {document.version_count} != {count} versions")
        if document.head_version != (1 if count else None):
            raise broken(f"headVersion is {document.head_version}")
        if document.tail_version != (count or None):
            raise broken(f"tailVersion is {document.tail_version}")

        for position, version in enumerate(versions, start=1):
            if version.version_number != position:
                raise broken(f"expected version {position}, found {version.version_number}")
            if version.prev != (position - 1 or None):
                raise broken(f"version {position} has prev={version.prev}")
            if version.next != (position + 1 if position < count else None):
                raise broken(f"version {position} has next={version.next}")
            if position > 1 and version.created_at < versions[position - 2].created_at:
                raise broken(f"version {position} predates its predecessor")

        history = cls(document.task_id, adapter=adapter, clock=clock, persist=persist)
        history._versions = [v.model_copy(update={"next": None}) for v in versions]
        return history
