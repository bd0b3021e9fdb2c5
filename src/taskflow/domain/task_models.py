from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import uuid

class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    done = "done"

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]


class TaskCreate(BaseModel):
    # Loosely typed on purpose: TaskService owns the validation rules.
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        """Fields present in the update. `None` means "leave as is"."""
        return self.model_dump(exclude_none=True)


class Task(BaseModel):
    """
    A single task. Immutable: transitions return an updated copy.
    Serialized with camelCase timestamps (createdAt/updatedAt).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    description: str
    status: TaskStatus = TaskStatus.pending
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def create(cls, title: str, description: str, status: Optional[TaskStatus | str] = None) -> "Task":
        now = utcnow()
        return cls(
            id=new_task_id(),
            title=title,
            description=description,
            status=TaskStatus(status) if status else TaskStatus.pending,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def deserialize(cls, data: dict[str, Any]) -> "Task":
        # Takes every field as given; id and timestamps are never re-stamped.
        return cls.model_validate(data)

    def serialize(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def apply_update(self, changes: TaskUpdate | dict[str, Any] | None = None) -> "Task":
        if isinstance(changes, TaskUpdate):
            fields = changes.changes()
        else:
            fields = {k: v for k, v in (changes or {}).items() if v is not None}

        update: dict[str, Any] = {}
        if "title" in fields:
            update["title"] = fields["title"]
        if "description" in fields:
            update["description"] = fields["description"]
        if "status" in fields:
            update["status"] = TaskStatus(fields["status"])
        update["updated_at"] = next_timestamp(self.updated_at)
        return self.model_copy(update=update)

    def mark_done(self) -> "Task":
        return self.apply_update({"status": TaskStatus.done})

    def mark_in_progress(self) -> "Task":
        return self.apply_update({"status": TaskStatus.in_progress})

    def mark_pending(self) -> "Task":
        return self.apply_update({"status": TaskStatus.pending})

    def is_done(self) -> bool:
        return self.status == TaskStatus.done

    def is_in_progress(self) -> bool:
        return self.status == TaskStatus.in_progress

    def is_pending(self) -> bool:
        return self.status == TaskStatus.pending


class TaskStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    pending: int = 0
    in_progress: int = Field(default=0, alias="inProgress")
    done: int = 0
    completion_rate: float = Field(default=0, alias="completionRate")

    def serialize(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def new_task_id() -> str:
    return str(uuid.uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def next_timestamp(previous: datetime) -> datetime:
    # updated_at must strictly advance, even when the clock hasn't moved
    now = utcnow()
    previous = as_utc(previous)
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now

def as_utc(dt: datetime) -> datetime:
    # naive datetimes are taken as UTC; may raise OverflowError near datetime.min/max
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
