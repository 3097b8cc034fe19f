"""Task store interface."""

from typing import Protocol

from timebox.core.tasks import Task


class TaskStore(Protocol):
    """Strongly consistent storage for tasks."""

    def load(self, task_id: str) -> Task:
        """Load a task. Raises NotFound if absent."""
        ...

    def save(self, task: Task) -> Task:
        """Insert or replace a task."""
        ...

    def delete(self, task_id: str) -> None:
        """Delete a task. Raises NotFound if absent."""
        ...

    def list(self) -> list[Task]:
        """All tasks, oldest first."""
        ...
