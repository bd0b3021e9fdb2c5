from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import String, Text, DateTime, delete, func, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from taskflow.domain.task_models import Task, TaskCreate, TaskStatus, TaskUpdate, as_utc


class Base(DeclarativeBase):
    pass


def _to_db(dt: datetime) -> datetime:
    # SQLite has no tz support: store naive UTC
    return as_utc(dt).replace(tzinfo=None)


def _from_db(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


class TaskRow(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    @classmethod
    def from_domain(cls, task: Task) -> "TaskRow":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status.value,
            created_at=_to_db(task.created_at),
            updated_at=_to_db(task.updated_at),
        )

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            description=self.description,
            status=TaskStatus(self.status),
            created_at=_from_db(self.created_at),
            updated_at=_from_db(self.updated_at),
        )


class SQLiteTaskRepo:
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self.sessionmaker = sessionmaker

    async def init_schema(self, engine: AsyncEngine) -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def _select(self, *criteria) -> List[Task]:
        stmt = select(TaskRow).where(*criteria).order_by(TaskRow.created_at, TaskRow.id)
        async with self.sessionmaker() as session:
            res = await session.execute(stmt)
            return [r.to_domain() for r in res.scalars().all()]

    async def create(self, data: TaskCreate) -> Task:
        task = Task.create(data.title, data.description, data.status)
        async with self.sessionmaker() as session:
            session.add(TaskRow.from_domain(task))
            await session.commit()
        return task

    async def find_all(self) -> List[Task]:
        return await self._select()

    async def find_by_id(self, task_id: str) -> Optional[Task]:
        async with self.sessionmaker() as session:
            row = await session.get(TaskRow, task_id)
            return row.to_domain() if row else None

    async def find_by_status(self, status: TaskStatus) -> List[Task]:
        return await self._select(TaskRow.status == TaskStatus(status).value)

    async def update(self, task_id: str, changes: TaskUpdate) -> Optional[Task]:
        async with self.sessionmaker() as session:
            row = await session.get(TaskRow, task_id)
            if row is None:
                return None
            updated = row.to_domain().apply_update(changes)
            row.title = updated.title
            row.description = updated.description
            row.status = updated.status.value
            row.updated_at = _to_db(updated.updated_at)
            await session.commit()
            return updated

    async def delete(self, task_id: str) -> bool:
        async with self.sessionmaker() as session:
            res = await session.execute(delete(TaskRow).where(TaskRow.id == task_id))
            await session.commit()
            return res.rowcount > 0

    async def count(self) -> int:
        async with self.sessionmaker() as session:
            return await session.scalar(select(func.count()).select_from(TaskRow)) or 0

    async def count_by_status(self, status: TaskStatus) -> int:
        stmt = select(func.count()).select_from(TaskRow).where(TaskRow.status == TaskStatus(status).value)
        async with self.sessionmaker() as session:
            return await session.scalar(stmt) or 0

    async def clear(self) -> None:
        async with self.sessionmaker() as session:
            await session.execute(delete(TaskRow))
            await session.commit()

    async def exists(self, task_id: str) -> bool:
        stmt = select(TaskRow.id).where(TaskRow.id == task_id).limit(1)
        async with self.sessionmaker() as session:
            return (await session.scalar(stmt)) is not None

    async def find_by_date_range(self, start: datetime, end: datetime) -> List[Task]:
        return await self._select(TaskRow.created_at >= _to_db(start), TaskRow.created_at <= _to_db(end))

    async def find_by_title(self, title: str) -> List[Task]:
        return await self._select(TaskRow.title.icontains(title, autoescape=True))
