from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from taskflow.domain.errors import ErrorCode, TaskError, TaskNotFoundError, TaskValidationError
from taskflow.domain.task_models import TaskCreate, TaskStatus, TaskUpdate
from taskflow.infra.db.task_repo_memory import InMemoryTaskRepo
from taskflow.services.task_service import TaskService, completion_rate


async def create(service: TaskService, title: str = "Task", status: str | None = None):
    return await service.create_task(TaskCreate(title=title, description="desc", status=status))


# --- create ---

@pytest.mark.asyncio
async def test_create_defaults_to_pending(service: TaskService) -> None:
    task = await create(service)
    assert task.status == TaskStatus.pending


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["pending", "in_progress", "done"])
async def test_create_keeps_given_status(service: TaskService, status: str) -> None:
    task = await create(service, status=status)
    assert task.status.value == status


@pytest.mark.asyncio
@pytest.mark.parametrize("title", [None, "", "   "])
async def test_create_rejects_missing_title(service: TaskService, title) -> None:
    with pytest.raises(TaskValidationError) as exc:
        await service.create_task(TaskCreate(title=title, description="desc"))
    assert exc.value.code == ErrorCode.INVALID_TITLE
    assert exc.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("description", [None, "", "\t\n"])
async def test_create_rejects_missing_description(service: TaskService, description) -> None:
    with pytest.raises(TaskValidationError) as exc:
        await service.create_task(TaskCreate(title="t", description=description))
    assert exc.value.code == ErrorCode.INVALID_DESCRIPTION


@pytest.mark.asyncio
async def test_create_rejects_long_fields(service: TaskService) -> None:
    with pytest.raises(TaskValidationError) as exc:
        await service.create_task(TaskCreate(title="a" * 201, description="d"))
    assert exc.value.code == ErrorCode.TITLE_TOO_LONG

    with pytest.raises(TaskValidationError) as exc:
        await service.create_task(TaskCreate(title="t", description="d" * 2001))
    assert exc.value.code == ErrorCode.DESCRIPTION_TOO_LONG


@pytest.mark.asyncio
async def test_create_accepts_fields_at_max_length(service: TaskService) -> None:
    task = await service.create_task(TaskCreate(title="a" * 200, description="d" * 2000))
    assert len(task.title) == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["finished", "", "DONE"])
async def test_create_rejects_unknown_status(service: TaskService, status: str) -> None:
    with pytest.raises(TaskValidationError) as exc:
        await create(service, status=status)
    assert exc.value.code == ErrorCode.INVALID_STATUS


@pytest.mark.asyncio
async def test_invalid_create_stores_nothing(service: TaskService, repo: InMemoryTaskRepo) -> None:
    with pytest.raises(TaskError):
        await service.create_task(TaskCreate(title="", description="d"))
    assert await repo.count() == 0


# --- read ---

@pytest.mark.asyncio
async def test_get_task_by_id_round_trips(service: TaskService) -> None:
    task = await create(service, "A")
    fetched = await service.get_task_by_id(task.id)
    assert fetched.serialize() == task.serialize()


@pytest.mark.asyncio
async def test_get_task_by_id_errors(service: TaskService) -> None:
    with pytest.raises(TaskNotFoundError) as exc:
        await service.get_task_by_id("missing")
    assert exc.value.code == ErrorCode.TASK_NOT_FOUND
    assert exc.value.status_code == 404
    assert exc.value.task_id == "missing"

    with pytest.raises(TaskValidationError) as exc:
        await service.get_task_by_id("  ")
    assert exc.value.code == ErrorCode.INVALID_ID


@pytest.mark.asyncio
async def test_get_tasks_by_status(service: TaskService) -> None:
    await create(service, "A")
    await create(service, "B", "done")

    assert [t.title for t in await service.get_tasks_by_status("done")] == ["B"]
    with pytest.raises(TaskValidationError) as exc:
        await service.get_tasks_by_status("archived")
    assert exc.value.code == ErrorCode.INVALID_STATUS


@pytest.mark.asyncio
async def test_get_all_tasks(service: TaskService) -> None:
    assert await service.get_all_tasks() == []
    await create(service, "A")
    await create(service, "B")
    assert [t.title for t in await service.get_all_tasks()] == ["A", "B"]


@pytest.mark.asyncio
async def test_search_tasks_by_title(service: TaskService) -> None:
    await create(service, "Comprar pão")
    await create(service, "Comprar leite")
    await create(service, "Lavar carro")

    found = await service.search_tasks_by_title("COMPRAR")
    assert sorted(t.title for t in found) == ["Comprar leite", "Comprar pão"]


@pytest.mark.asyncio
async def test_get_tasks_created_between(service: TaskService) -> None:
    task = await create(service, "A")
    naive = task.created_at.replace(tzinfo=None)

    assert await service.get_tasks_created_between(naive, naive) == [task]
    with pytest.raises(TaskValidationError) as exc:
        await service.get_tasks_created_between(task.created_at, task.created_at - timedelta(seconds=1))
    assert exc.value.code == ErrorCode.INVALID_DATE_RANGE


# --- update / delete ---

@pytest.mark.asyncio
async def test_update_status_keeps_other_fields(service: TaskService) -> None:
    task = await create(service, "A")

    updated = await service.update_task(task.id, TaskUpdate(status="done"))

    assert updated.status == TaskStatus.done
    assert updated.title == task.title
    assert updated.description == task.description
    assert updated.updated_at > task.updated_at
    assert updated.created_at == task.created_at


@pytest.mark.asyncio
async def test_update_validates_present_fields(service: TaskService) -> None:
    task = await create(service, "A")

    cases = [
        (TaskUpdate(title=" "), ErrorCode.INVALID_TITLE),
        (TaskUpdate(title="x" * 201), ErrorCode.TITLE_TOO_LONG),
        (TaskUpdate(description=""), ErrorCode.INVALID_DESCRIPTION),
        (TaskUpdate(description="x" * 2001), ErrorCode.DESCRIPTION_TOO_LONG),
        (TaskUpdate(status="closed"), ErrorCode.INVALID_STATUS),
    ]
    for changes, code in cases:
        with pytest.raises(TaskValidationError) as exc:
            await service.update_task(task.id, changes)
        assert exc.value.code == code

    assert (await service.get_task_by_id(task.id)) == task


@pytest.mark.asyncio
@pytest.mark.parametrize("changes", [TaskUpdate(title="x"), TaskUpdate()])
async def test_update_missing_task(service: TaskService, changes: TaskUpdate) -> None:
    with pytest.raises(TaskNotFoundError):
        await service.update_task("missing", changes)


@pytest.mark.asyncio
async def test_update_rejects_empty_id(service: TaskService) -> None:
    with pytest.raises(TaskValidationError) as exc:
        await service.update_task("", TaskUpdate(title="x"))
    assert exc.value.code == ErrorCode.INVALID_ID


@pytest.mark.asyncio
async def test_delete_then_get_fails(service: TaskService) -> None:
    task = await create(service)

    await service.delete_task(task.id)

    with pytest.raises(TaskNotFoundError):
        await service.get_task_by_id(task.id)
    with pytest.raises(TaskNotFoundError):
        await service.delete_task(task.id)


@pytest.mark.asyncio
async def test_mark_helpers(service: TaskService) -> None:
    task = await create(service)

    assert (await service.mark_task_as_in_progress(task.id)).status == TaskStatus.in_progress
    assert (await service.mark_task_as_done(task.id)).status == TaskStatus.done
    assert (await service.mark_task_as_pending(task.id)).status == TaskStatus.pending
    with pytest.raises(TaskNotFoundError):
        await service.mark_task_as_done("missing")


# --- statistics ---

@pytest.mark.asyncio
async def test_statistics_empty(service: TaskService) -> None:
    stats = await service.get_statistics()
    assert stats.serialize() == {"total": 0, "pending": 0, "inProgress": 0, "done": 0, "completionRate": 0}


@pytest.mark.asyncio
async def test_statistics_counts(service: TaskService) -> None:
    for status in ["pending", "pending", "in_progress", "done"]:
        await create(service, status=status)

    stats = await service.get_statistics()

    assert stats.serialize() == {"total": 4, "pending": 2, "inProgress": 1, "done": 1, "completionRate": 25}


@pytest.mark.asyncio
async def test_statistics_rounds_to_two_decimals(service: TaskService) -> None:
    for status in ["done", "pending", "pending"]:
        await create(service, status=status)

    stats = await service.get_statistics()
    assert stats.completion_rate == 33.33


@pytest.mark.parametrize(
    "done,total,expected",
    [
        (0, 0, 0),
        (1, 1, 100),
        (2, 3, 66.67),
        (1, 8, 12.5),
        (1, 6, 16.67),
        # 0.125 rounds half-up, not half-even
        (1, 800, 0.13),
    ],
)
def test_completion_rate(done: int, total: int, expected: float) -> None:
    assert completion_rate(done, total) == expected


# --- logging ---

@pytest.mark.asyncio
async def test_create_logs_structured_event(service: TaskService, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="taskflow.tasks"):
        task = await create(service)

    record = next(r for r in caplog.records if r.getMessage() == "task.create")
    assert record.event == "task.create"
    assert record.task_id == task.id


# --- combined listing ---

@pytest.mark.asyncio
async def test_search_tasks_without_filters_lists_everything(service: TaskService) -> None:
    await create(service, "A")
    await create(service, "B")

    assert [t.title for t in await service.search_tasks()] == ["A", "B"]
    assert [t.title for t in await service.search_tasks(title="b")] == ["B"]


@pytest.mark.asyncio
async def test_search_tasks_combines_title_and_date_range(service: TaskService) -> None:
    first = await create(service, "Comprar pão")
    await create(service, "Lavar carro")
    at = first.created_at

    assert await service.search_tasks(title="COMPRAR", start=at, end=at) == [first]
    assert await service.search_tasks(title="lavar", start=at, end=at) == []
    assert [t.title for t in await service.search_tasks(title="comprar", start=at)] == ["Comprar pão"]
    assert len(await service.search_tasks(end=datetime.now(timezone.utc) + timedelta(days=1))) == 2


@pytest.mark.asyncio
async def test_search_tasks_uses_store_title_matching() -> None:
    class CountingRepo(InMemoryTaskRepo):
        def __init__(self):
            super().__init__()
            self.title_queries: list[str] = []

        async def find_by_title(self, title: str):
            self.title_queries.append(title)
            return await super().find_by_title(title)

    counting = CountingRepo()
    svc = TaskService(counting)
    task = await create(svc, "Comprar leite")

    found = await svc.search_tasks(title="leite", start=task.created_at, end=task.created_at)

    assert found == [task]
    assert counting.title_queries == ["leite"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "bound",
    [
        datetime(9999, 12, 31, 23, 0, tzinfo=timezone(timedelta(hours=-5))),
        datetime(1, 1, 1, 0, 30, tzinfo=timezone(timedelta(hours=1))),
    ],
)
async def test_out_of_range_date_bound_is_validation_error(service: TaskService, bound: datetime) -> None:
    with pytest.raises(TaskValidationError) as exc:
        await service.search_tasks(start=bound)
    assert exc.value.code == ErrorCode.INVALID_DATE_RANGE

    with pytest.raises(TaskValidationError) as exc:
        await service.get_tasks_created_between(datetime(2024, 1, 1), bound)
    assert exc.value.code == ErrorCode.INVALID_DATE_RANGE


def test_completion_rate_is_always_float() -> None:
    assert isinstance(completion_rate(0, 0), float)
    assert isinstance(completion_rate(1, 1), float)
