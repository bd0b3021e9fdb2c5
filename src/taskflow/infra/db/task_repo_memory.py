from __future__ import annotations
from typing import Dict, List, Optional
from datetime import datetime

from taskflow.domain.task_models import Task, TaskCreate, TaskStatus, TaskUpdate, as_utc

class InMemoryTaskRepo:
    """
    Process-lifetime store backed by a dict (insertion ordered).
    No locking: concurrent writers on the same id are last-writer-wins.
    """
    def __init__(self):
        self._tasks: Dict[str, Task] = {}

    async def create(self, data: TaskCreate) -> Task:
        task = Task.create(data.title, data.description, data.status)
        self._tasks[task.id] = task
        return task

    async def find_all(self) -> List[Task]:
        return list(self._tasks.values())

    async def find_by_id(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    async def find_by_status(self, status: TaskStatus) -> List[Task]:
        return [t for t in self._tasks.values() if t.status == status]

    async def update(self, task_id: str, changes: TaskUpdate) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        updated = task.apply_update(changes)
        self._tasks[task_id] = updated
        return updated

    async def delete(self, task_id: str) -> bool:
        return self._tasks.pop(task_id, None) is not None

    async def count(self) -> int:
        return len(self._tasks)

    async def count_by_status(self, status: TaskStatus) -> int:
        return sum(1 for t in self._tasks.values() if t.status == status)

    async def clear(self) -> None:
        self._tasks.clear()

    async def exists(self, task_id: str) -> bool:
        return task_id in self._tasks

    async def find_by_date_range(self, start: datetime, end: datetime) -> List[Task]:
        start, end = as_utc(start), as_utc(end)
        return [t for t in self._tasks.values() if start <= t.created_at <= end]

    async def find_by_title(self, title: str) -> List[Task]:
        needle = title.lower()
        return [t for t in self._tasks.values() if needle in t.title.lower()]
