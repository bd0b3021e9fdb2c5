from __future__ import annotations
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from taskflow.domain.errors import ErrorCode, TaskNotFoundError, TaskValidationError
from taskflow.domain.ports import TaskRepo
from taskflow.domain.task_models import Task, TaskCreate, TaskStatistics, TaskStatus, TaskUpdate, as_utc

logger = logging.getLogger("taskflow.tasks")

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
OPEN_START = datetime.min.replace(tzinfo=timezone.utc)
OPEN_END = datetime.max.replace(tzinfo=timezone.utc)


def completion_rate(done: int, total: int) -> float:
    """Percentage of done tasks, rounded half-up to 2 decimals (0.0 when empty)."""
    if total <= 0:
        return 0.0
    rate = Decimal(done) * 100 / Decimal(total)
    return float(rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class TaskService:
    """
    The only entry point callers should use. Validates input, enforces the
    business rules and turns store sentinels (None/False) into TaskError.
    """

    def __init__(self, repo: TaskRepo):
        self.repo = repo

    async def create_task(self, data: TaskCreate) -> Task:
        self._validate_create(data)
        task = await self.repo.create(data)
        logger.info(
            "task.create",
            extra={"category": "tasks", "event": "task.create", "task_id": task.id, "status": task.status.value},
        )
        return task

    async def get_all_tasks(self) -> List[Task]:
        return await self.repo.find_all()

    async def get_task_by_id(self, task_id: str) -> Task:
        self._validate_id(task_id)
        task = await self.repo.find_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def get_tasks_by_status(self, status: str) -> List[Task]:
        self._validate_status(status)
        return await self.repo.find_by_status(TaskStatus(status))

    async def search_tasks_by_title(self, query: str) -> List[Task]:
        return await self.repo.find_by_title(query or "")

    async def get_tasks_created_between(self, start: datetime, end: datetime) -> List[Task]:
        start, end = _utc_bound(start), _utc_bound(end)
        if start > end:
            raise TaskValidationError("Start date must not be after end date", ErrorCode.INVALID_DATE_RANGE)
        return await self.repo.find_by_date_range(start, end)

    async def search_tasks(
        self,
        title: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Task]:
        """
        Combined listing used by GET /tasks. Missing date bounds are open-ended;
        title matching is always the store's own find_by_title.
        """
        if start is None and end is None:
            if title:
                return await self.search_tasks_by_title(title)
            return await self.get_all_tasks()

        in_range = await self.get_tasks_created_between(
            start if start is not None else OPEN_START,
            end if end is not None else OPEN_END,
        )
        if not title:
            return in_range
        titled = {t.id for t in await self.repo.find_by_title(title)}
        return [t for t in in_range if t.id in titled]

    async def update_task(self, task_id: str, changes: TaskUpdate) -> Task:
        self._validate_id(task_id)
        self._validate_update(changes)
        task = await self.repo.update(task_id, changes)
        if task is None:
            logger.info(
                "task.update.not_found",
                extra={"category": "tasks", "event": "task.update.not_found", "task_id": task_id},
            )
            raise TaskNotFoundError(task_id)
        logger.info(
            "task.update",
            extra={
                "category": "tasks",
                "event": "task.update",
                "task_id": task_id,
                "fields": sorted(changes.changes()),
            },
        )
        return task

    async def delete_task(self, task_id: str) -> None:
        self._validate_id(task_id)
        deleted = await self.repo.delete(task_id)
        if not deleted:
            raise TaskNotFoundError(task_id)
        logger.info("task.delete", extra={"category": "tasks", "event": "task.delete", "task_id": task_id})

    async def mark_task_as_done(self, task_id: str) -> Task:
        return await self.update_task(task_id, TaskUpdate(status=TaskStatus.done.value))

    async def mark_task_as_in_progress(self, task_id: str) -> Task:
        return await self.update_task(task_id, TaskUpdate(status=TaskStatus.in_progress.value))

    async def mark_task_as_pending(self, task_id: str) -> Task:
        return await self.update_task(task_id, TaskUpdate(status=TaskStatus.pending.value))

    async def get_statistics(self) -> TaskStatistics:
        total = await self.repo.count()
        pending = await self.repo.count_by_status(TaskStatus.pending)
        in_progress = await self.repo.count_by_status(TaskStatus.in_progress)
        done = await self.repo.count_by_status(TaskStatus.done)

        return TaskStatistics(
            total=total,
            pending=pending,
            in_progress=in_progress,
            done=done,
            completion_rate=completion_rate(done, total),
        )

    # --- validation ---

    def _validate_create(self, data: TaskCreate) -> None:
        if data.title is None or not data.title.strip():
            raise TaskValidationError("Title is required", ErrorCode.INVALID_TITLE)
        self._validate_title_length(data.title)
        if data.description is None or not data.description.strip():
            raise TaskValidationError("Description is required", ErrorCode.INVALID_DESCRIPTION)
        self._validate_description_length(data.description)
        if data.status is not None:
            self._validate_status(data.status)

    def _validate_update(self, changes: TaskUpdate) -> None:
        if changes.title is not None:
            if not changes.title.strip():
                raise TaskValidationError("Title must not be empty", ErrorCode.INVALID_TITLE)
            self._validate_title_length(changes.title)
        if changes.description is not None:
            if not changes.description.strip():
                raise TaskValidationError("Description must not be empty", ErrorCode.INVALID_DESCRIPTION)
            self._validate_description_length(changes.description)
        if changes.status is not None:
            self._validate_status(changes.status)

    @staticmethod
    def _validate_title_length(title: str) -> None:
        if len(title) > TITLE_MAX_LENGTH:
            raise TaskValidationError(
                f"Title must be at most {TITLE_MAX_LENGTH} characters", ErrorCode.TITLE_TOO_LONG
            )

    @staticmethod
    def _validate_description_length(description: str) -> None:
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise TaskValidationError(
                f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
                ErrorCode.DESCRIPTION_TOO_LONG,
            )

    @staticmethod
    def _validate_id(task_id: Optional[str]) -> None:
        if not task_id or not task_id.strip():
            raise TaskValidationError("Task id is required", ErrorCode.INVALID_ID)

    @staticmethod
    def _validate_status(status: Optional[str]) -> None:
        if status not in TaskStatus.values():
            raise TaskValidationError(
                f"Invalid status, expected one of: {', '.join(TaskStatus.values())}",
                ErrorCode.INVALID_STATUS,
            )


def _utc_bound(dt: datetime) -> datetime:
    try:
        return as_utc(dt)
    except OverflowError:
        raise TaskValidationError(
            f"Date {dt.isoformat()} is out of range", ErrorCode.INVALID_DATE_RANGE
        ) from None
