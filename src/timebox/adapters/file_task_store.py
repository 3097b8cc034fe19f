"""JSON file task storage adapter."""

import json
import logging
import threading
from pathlib import Path

from timebox.core.tasks import Task
from timebox.errors import NotFound

logger = logging.getLogger(__name__)


class FileTaskStore:
    """
    File-based task storage.

    Implements TaskStore protocol. All tasks live in one JSON document,
    {"tasks": [...]}, rewritten on every change.
    """

    def __init__(self, data_dir: Path | str, filename: str = "tasks.json"):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.data_dir / filename
        # Guards the whole file; saves of different tasks still rewrite the same document
        self._lock = threading.Lock()

    def _read(self) -> list[dict]:
        if not self.path.exists():
            return []
        text = self.path.read_text()
        if not text.strip():
            return []
        return json.loads(text).get("tasks", [])

    def _write(self, tasks: list[dict]) -> None:
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"tasks": tasks}, indent=2))
        tmp.replace(self.path)

    def load(self, task_id: str) -> Task:
        with self._lock:
            for data in self._read():
                if data["id"] == task_id:
                    return Task.from_dict(data)
        raise NotFound(f"Task {task_id} not found")

    def save(self, task: Task) -> Task:
        with self._lock:
            tasks = self._read()
            for i, data in enumerate(tasks):
                if data["id"] == task.id:
                    tasks[i] = task.to_dict()
                    break
            else:
                tasks.append(task.to_dict())
            self._write(tasks)
        return task

    def delete(self, task_id: str) -> None:
        with self._lock:
            tasks = self._read()
            remaining = [t for t in tasks if t["id"] != task_id]
            if len(remaining) == len(tasks):
                raise NotFound(f"Task {task_id} not found")
            self._write(remaining)
        logger.debug(f"Deleted task {task_id}")

    def list(self) -> list[Task]:
        with self._lock:
            return [Task.from_dict(t) for t in self._read()]
