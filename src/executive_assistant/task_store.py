"""
In-memory task store.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import TaskNotFoundError
from .models import Task, utc_now_iso


def _due_date_sort_key(task: Task) -> Tuple[int, float]:
    """Sort key placing dated tasks first, earliest due date first."""
    if not task.due_date:
        return (1, 0.0)
    try:
        due = datetime.fromisoformat(task.due_date.replace("Z", "+00:00"))
    except ValueError:
        return (1, 0.0)
    if due.tzinfo is None:
        due = due.replace(tzinfo=timezone.utc)
    return (0, due.timestamp())


class TaskStore:
    """Volatile task storage keyed by generated task ids.

    One instance lives for the whole process and is shared by every request.
    Records are replaced, never mutated in place, so a task returned to a
    caller is a snapshot.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize an empty store."""
        self.logger = logger or logging.getLogger(__name__)
        self._tasks: Dict[str, Task] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    @staticmethod
    def _generate_id() -> str:
        return f"task_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"

    def create(self, title: str, description: Optional[str] = None, due_date: Optional[str] = None,
               priority: Optional[str] = None) -> Task:
        """Create a pending task."""
        now = utc_now_iso()
        task = Task(
            id=self._generate_id(),
            title=title,
            description=description or "",
            due_date=due_date,
            priority=priority or "medium",
            status="pending",
            created_at=now,
            updated_at=now,
        )
        self._tasks[task.id] = task
        self.logger.info(f"Created task: {task.id}")
        return task

    def get(self, task_id: str) -> Task:
        """Look up a task by id."""
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def list(self, status: Optional[str] = None, priority: Optional[str] = None) -> List[Task]:
        """Tasks matching all given filters, ordered by due date with undated tasks last."""
        tasks = list(self._tasks.values())

        if status:
            tasks = [t for t in tasks if t.status == status]

        if priority:
            tasks = [t for t in tasks if t.priority == priority]

        # sorted() is stable, so equal keys keep insertion order
        return sorted(tasks, key=_due_date_sort_key)

    def update(self, task_id: str, updates: Optional[Dict[str, Any]] = None) -> Task:
        """Shallow-merge updates over a task and refresh its updatedAt."""
        task = self.get(task_id)

        merged = task.to_dict()
        for key, value in (updates or {}).items():
            field = Task.model_fields.get(key)
            merged[field.alias if field is not None and field.alias else key] = value
        merged["id"] = task.id
        merged["updatedAt"] = utc_now_iso()

        updated = Task.model_validate(merged)
        self._tasks[task_id] = updated
        self.logger.info(f"Updated task: {task_id}")
        return updated

    def complete(self, task_id: str) -> Task:
        """Mark a task completed."""
        task = self.get(task_id)
        completed = task.model_copy(update={"status": "completed", "updated_at": utc_now_iso()})
        self._tasks[task_id] = completed
        self.logger.info(f"Completed task: {task_id}")
        return completed

    def delete(self, task_id: str) -> None:
        """Remove a task permanently."""
        if self._tasks.pop(task_id, None) is None:
            raise TaskNotFoundError(task_id)
        self.logger.info(f"Deleted task: {task_id}")
