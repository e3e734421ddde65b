"""Abstract interface for task history persistence."""

from abc import ABC, abstractmethod
from typing import List, Optional

from audittrail.models.version import TaskDocument


class HistoryStore(ABC):
    """Durable home for one TaskDocument per task id."""

    @abstractmethod
    def load(self, task_id: str) -> Optional[TaskDocument]:
        """Load the document for a task.

        Args:
            task_id: Task identifier

        Returns:
            The stored document, or None if the task was never saved

        Raises:
            PersistenceFailure: If the store cannot be read
        """
        pass

    @abstractmethod
    def load_all(self) -> List[TaskDocument]:
        """Load every stored document, ordered by task id.

        Raises:
            PersistenceFailure: If the store cannot be read
        """
        pass

    @abstractmethod
    def save(self, document: TaskDocument) -> None:
        """Replace the stored document for ``document.task_id`` atomically.

        Raises:
            PersistenceFailure: If the write does not complete
        """
        pass
