from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from ..deps import get_service
from ..schemas import TaskCreate, TaskOut, TaskUpdate
from ..timer_service import TimerService

router = APIRouter(prefix="/api/v1", tags=["tasks"])


@router.get("/tasks", response_model=list[TaskOut])
def list_tasks(user_id: int | None = None, service: TimerService = Depends(get_service)) -> list[TaskOut]:
    return [TaskOut(**item.to_dict()) for item in service.tasks.list_tasks(user_id)]


@router.post("/tasks", response_model=TaskOut, status_code=201)
def create_task(payload: TaskCreate, service: TimerService = Depends(get_service)) -> TaskOut:
    task = service.tasks.create_task(payload.user_id, payload.title, completed=payload.completed)
    return TaskOut(**task.to_dict())


@router.put("/tasks/{task_id}", response_model=TaskOut)
def update_task(task_id: int, payload: TaskUpdate, service: TimerService = Depends(get_service)) -> TaskOut:
    task = service.tasks.update_task(task_id, title=payload.title, completed=payload.completed)
    if task is None:
        raise HTTPException(status_code=404, detail="task not found")
    return TaskOut(**task.to_dict())


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(task_id: int, service: TimerService = Depends(get_service)) -> Response:
    if not service.tasks.delete_task(task_id):
        raise HTTPException(status_code=404, detail="task not found")
    return Response(status_code=204)
