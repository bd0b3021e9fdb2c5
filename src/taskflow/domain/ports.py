from __future__ import annotations
from datetime import datetime
from typing import List, Optional, Protocol

from taskflow.domain.task_models import Task, TaskCreate, TaskStatus, TaskUpdate


class TaskRepo(Protocol):
    """
    Storage contract for tasks. Every method is async so that stores doing
    real I/O (SQLite) and the in-memory store are interchangeable.

    Stores never validate and never raise for a missing task: lookups return
    None, deletes return False. Turning that into an error is TaskService's job.
    """

    async def create(self, data: TaskCreate) -> Task: ...

    async def find_all(self) -> List[Task]: ...

    async def find_by_id(self, task_id: str) -> Optional[Task]: ...

    async def find_by_status(self, status: TaskStatus) -> List[Task]: ...

    async def update(self, task_id: str, changes: TaskUpdate) -> Optional[Task]: ...

    async def delete(self, task_id: str) -> bool: ...

    async def count(self) -> int: ...

    async def count_by_status(self, status: TaskStatus) -> int: ...

    async def clear(self) -> None: ...

    async def exists(self, task_id: str) -> bool: ...

    async def find_by_date_range(self, start: datetime, end: datetime) -> List[Task]:
        """Tasks whose created_at lies within [start, end], both inclusive."""
        ...

    async def find_by_title(self, title: str) -> List[Task]:
        """Case-insensitive substring match on the title."""
        ...
