"""File-backed history store: one JSON document per task."""

import base64
import os
import tempfile
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import ValidationError

from audittrail.exceptions import PersistenceFailure
from audittrail.models.version import TaskDocument
from audittrail.storage.base import HistoryStore

logger = structlog.get_logger(__name__)


class JsonHistoryStore(HistoryStore):
    """Stores each task under ``<data_dir>/tasks/<encoded id>.json``.

    File names are the URL-safe base64 of the task id, so arbitrary ids
    map to valid, collision-free names.
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        """Initialize the store.

        Args:
            data_dir: Root directory for task documents. Defaults to ~/.audittrail/
        """
        if data_dir is None:
            data_dir = Path.home() / ".audittrail"

        self.data_dir = Path(data_dir)
        self.tasks_dir = self.data_dir / "tasks"

    def _ensure_tasks_dir(self) -> None:
        try:
            self.tasks_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceFailure(
                f"Cannot create data directory {self.tasks_dir}: {e}",
                details={"path": str(self.tasks_dir)},
            ) from e

    def path_for(self, task_id: str) -> Path:
        """Return the document path for a task id."""
        encoded = base64.urlsafe_b64encode(task_id.encode("utf-8")).decode("ascii").rstrip("=")
        return self.tasks_dir / f"{encoded}.json"

    def _read(self, path: Path) -> TaskDocument:
        try:
            return TaskDocument.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, UnicodeDecodeError) as e:
            logger.error("history_load_failed", path=str(path), error=str(e))
            raise PersistenceFailure(
                f"Could not read task document {path.name}: {e}",
                details={"path": str(path)},
            ) from e

    def load(self, task_id: str) -> Optional[TaskDocument]:
        path = self.path_for(task_id)
        if not path.exists():
            return None
        return self._read(path)

    def load_all(self) -> List[TaskDocument]:
        if not self.tasks_dir.exists():
            return []

        documents = [self._read(path) for path in self.tasks_dir.glob("*.json")]
        documents.sort(key=lambda doc: doc.task_id)
        logger.debug("histories_loaded", count=len(documents), path=str(self.tasks_dir))
        return documents

    def save(self, document: TaskDocument) -> None:
        """Write a document using a temporary file and rename."""
        self._ensure_tasks_dir()
        target = self.path_for(document.task_id)

        try:
            fd, temp_path = tempfile.mkstemp(
                dir=self.tasks_dir, prefix=".task_", suffix=".json.tmp"
            )
        except OSError as e:
            raise PersistenceFailure(
                f"Cannot write to {self.tasks_dir}: {e}",
                details={"task_id": document.task_id},
            ) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(document.model_dump_json(by_alias=True, indent=2))

            # Atomic rename
            os.replace(temp_path, target)
        except Exception as e:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            if isinstance(e, PersistenceFailure):
                raise
            raise PersistenceFailure(
                f"Failed to save task {document.task_id}: {e}",
                details={"task_id": document.task_id},
            ) from e

        logger.debug("history_saved", task_id=document.task_id, versions=document.version_count)
