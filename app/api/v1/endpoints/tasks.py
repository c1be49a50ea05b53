from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.task import Task, TaskStatus
from app.models.user import User
from app.schemas.task import (
    SubTaskCreate,
    TaskCreate,
    TaskResponse,
    TaskStats,
    TaskStatusUpdate,
    TaskUpdate,
)
from app.services import tasks as tasks_service

router = APIRouter()


def to_task_response(task: Task) -> TaskResponse:
    response = TaskResponse.model_validate(task)
    response.completion_rate = tasks_service.calculate_task_completion_rate(task)
    return response


def task_or_404(task):
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task or sub-task not found"
        )
    return to_task_response(task)


@router.get("/", response_model=List[TaskResponse])
async def get_tasks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    tasks = await tasks_service.get_user_tasks(db, current_user.id)
    return [to_task_response(task) for task in tasks]


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not task.title.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title is required"
        )
    db_task = await tasks_service.create_task(
        db, current_user.id, task.title, task.description, task.subtasks
    )
    return to_task_response(db_task)


@router.get("/stats", response_model=TaskStats)
async def get_task_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Average completion across the user's tasks"""
    tasks = await tasks_service.get_user_tasks(db, current_user.id)
    return TaskStats(
        total_tasks=len(tasks),
        completed_tasks=sum(1 for task in tasks if task.status == TaskStatus.COMPLETED.value),
        completion_rate=tasks_service.calculate_completion_rate(tasks),
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return task_or_404(await tasks_service.get_task(db, task_id, current_user.id))


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_update: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    task = await tasks_service.update_task(
        db, task_id, current_user.id,
        title=task_update.title, description=task_update.description,
    )
    return task_or_404(task)


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: int,
    status_update: TaskStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Set the status; tasks with sub-tasks keep following them"""
    task = await tasks_service.update_task_status(
        db, task_id, current_user.id, status_update.status.value
    )
    return task_or_404(task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not await tasks_service.delete_task(db, task_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )
    return {"message": "Task deleted successfully", "id": task_id}


@router.post("/{task_id}/subtasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def add_subtask(
    task_id: int,
    subtask: SubTaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    task = await tasks_service.add_subtask(db, task_id, current_user.id, subtask.text)
    return task_or_404(task)


@router.put("/{task_id}/subtasks/{subtask_id}", response_model=TaskResponse)
async def update_subtask(
    task_id: int,
    subtask_id: int,
    subtask: SubTaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    task = await tasks_service.update_subtask(db, task_id, current_user.id, subtask_id, subtask.text)
    return task_or_404(task)


@router.post("/{task_id}/subtasks/{subtask_id}/toggle", response_model=TaskResponse)
async def toggle_subtask(
    task_id: int,
    subtask_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    task = await tasks_service.toggle_subtask(db, task_id, current_user.id, subtask_id)
    return task_or_404(task)


@router.delete("/{task_id}/subtasks/{subtask_id}", response_model=TaskResponse)
async def delete_subtask(
    task_id: int,
    subtask_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    task = await tasks_service.delete_subtask(db, task_id, current_user.id, subtask_id)
    return task_or_404(task)
