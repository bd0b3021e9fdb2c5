from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request
from taskflow.app.envelope import success_response
from taskflow.domain.task_models import Task, TaskCreate, TaskUpdate
from taskflow.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_service(request: Request) -> TaskService:
    # Wired in create_app(); there is no module-level default service.
    return request.app.state.task_service


def _many(tasks: list[Task]) -> dict:
    return success_response([t.serialize() for t in tasks], count=len(tasks))


# Static paths first so they are not captured by /{task_id}
@router.get("/stats")
async def get_statistics(svc: TaskService = Depends(get_service)):
    stats = await svc.get_statistics()
    return success_response(stats.serialize())


@router.get("/status/{status}")
async def list_tasks_by_status(status: str, svc: TaskService = Depends(get_service)):
    return _many(await svc.get_tasks_by_status(status))


@router.get("")
async def list_tasks(
    title: Optional[str] = None,
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    svc: TaskService = Depends(get_service),
):
    return _many(await svc.search_tasks(title=title, start=created_from, end=created_to))


@router.get("/{task_id}")
async def get_task(task_id: str, svc: TaskService = Depends(get_service)):
    task = await svc.get_task_by_id(task_id)
    return success_response(task.serialize())


@router.post("", status_code=201)
async def create_task(payload: TaskCreate, svc: TaskService = Depends(get_service)):
    task = await svc.create_task(payload)
    return success_response(task.serialize(), message="Task created")


@router.put("/{task_id}")
async def update_task(task_id: str, payload: TaskUpdate, svc: TaskService = Depends(get_service)):
    task = await svc.update_task(task_id, payload)
    return success_response(task.serialize(), message="Task updated")


@router.delete("/{task_id}")
async def delete_task(task_id: str, svc: TaskService = Depends(get_service)):
    await svc.delete_task(task_id)
    return success_response(message="Task deleted")


@router.patch("/{task_id}/done")
async def mark_done(task_id: str, svc: TaskService = Depends(get_service)):
    task = await svc.mark_task_as_done(task_id)
    return success_response(task.serialize(), message="Task marked as done")


@router.patch("/{task_id}/in-progress")
async def mark_in_progress(task_id: str, svc: TaskService = Depends(get_service)):
    task = await svc.mark_task_as_in_progress(task_id)
    return success_response(task.serialize(), message="Task marked as in progress")


@router.patch("/{task_id}/pending")
async def mark_pending(task_id: str, svc: TaskService = Depends(get_service)):
    task = await svc.mark_task_as_pending(task_id)
    return success_response(task.serialize(), message="Task marked as pending")
