"""Tasks with ordered sub-tasks.

While a task has sub-tasks its status follows them: the last sub-task
completed flips the parent to completed, and un-completing any sub-task
of a completed parent flips it back to pending. Every sub-task mutation
re-applies that rule before committing.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.share import ShareType
from app.models.task import SubTask, Task, TaskStatus
from app.services.shares import delete_shares_for_item

logger = logging.getLogger(__name__)


def rollup_status(current_status: str, subtasks: Iterable[SubTask]) -> str:
    subtasks = list(subtasks)
    if not subtasks:
        return current_status
    if all(subtask.completed for subtask in subtasks):
        return TaskStatus.COMPLETED.value
    if current_status == TaskStatus.COMPLETED.value:
        return TaskStatus.PENDING.value
    return current_status


def apply_rollup(task: Task) -> None:
    new_status = rollup_status(task.status, task.subtasks)
    if new_status != task.status:
        logger.info("task_status_rolled_up task_id=%s from=%s to=%s", task.id, task.status, new_status)
        task.status = new_status


async def get_user_tasks(db: AsyncSession, user_id: int) -> List[Task]:
    result = await db.execute(
        select(Task)
        .options(selectinload(Task.subtasks))
        .where(Task.user_id == user_id)
        .order_by(Task.created_at.desc(), Task.id.desc())
    )
    return list(result.scalars().all())


async def get_task(db: AsyncSession, task_id: int, user_id: int) -> Optional[Task]:
    """Return a task owned by ``user_id`` with fresh sub-tasks, or None"""
    result = await db.execute(
        select(Task)
        .options(selectinload(Task.subtasks))
        .where(and_(Task.id == task_id, Task.user_id == user_id))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_task(
    db: AsyncSession,
    user_id: int,
    title: str,
    description: Optional[str] = None,
    subtasks: Optional[List[str]] = None,
) -> Task:
    task = Task(
        user_id=user_id,
        title=title.strip(),
        description=(description or "").strip() or None,
        status=TaskStatus.PENDING.value,
        subtasks=[
            SubTask(text=text.strip(), completed=False)
            for text in (subtasks or [])
            if text.strip()
        ],
    )
    db.add(task)
    await db.commit()
    logger.info("task_created task_id=%s user_id=%s subtasks=%s", task.id, user_id, len(task.subtasks))
    return await get_task(db, task.id, user_id)


async def update_task(
    db: AsyncSession,
    task_id: int,
    user_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
) -> Optional[Task]:
    task = await get_task(db, task_id, user_id)
    if not task:
        return None

    if title is not None:
        task.title = title.strip()
    if description is not None:
        task.description = description.strip() or None

    await db.commit()
    return await get_task(db, task_id, user_id)


async def update_task_status(
    db: AsyncSession, task_id: int, user_id: int, status: str
) -> Optional[Task]:
    """Set the status directly; a task with sub-tasks still follows them"""
    task = await get_task(db, task_id, user_id)
    if not task:
        return None

    task.status = TaskStatus(status).value
    apply_rollup(task)
    await db.commit()
    logger.info("task_status_updated task_id=%s status=%s", task_id, task.status)
    return await get_task(db, task_id, user_id)


async def delete_task(db: AsyncSession, task_id: int, user_id: int) -> bool:
    task = await get_task(db, task_id, user_id)
    if not task:
        return False

    await delete_shares_for_item(db, ShareType.TASK, task_id)
    await db.delete(task)
    await db.commit()
    logger.info("task_deleted task_id=%s user_id=%s", task_id, user_id)
    return True


def _find_subtask(task: Task, subtask_id: int) -> Optional[SubTask]:
    for subtask in task.subtasks:
        if subtask.id == subtask_id:
            return subtask
    return None


async def add_subtask(db: AsyncSession, task_id: int, user_id: int, text: str) -> Optional[Task]:
    task = await get_task(db, task_id, user_id)
    if not task:
        return None

    task.subtasks.append(SubTask(text=text.strip(), completed=False))
    apply_rollup(task)
    await db.commit()
    return await get_task(db, task_id, user_id)


async def toggle_subtask(
    db: AsyncSession, task_id: int, user_id: int, subtask_id: int
) -> Optional[Task]:
    task = await get_task(db, task_id, user_id)
    if not task:
        return None

    subtask = _find_subtask(task, subtask_id)
    if not subtask:
        return None

    subtask.completed = not subtask.completed
    apply_rollup(task)
    await db.commit()
    return await get_task(db, task_id, user_id)


async def delete_subtask(
    db: AsyncSession, task_id: int, user_id: int, subtask_id: int
) -> Optional[Task]:
    task = await get_task(db, task_id, user_id)
    if not task:
        return None

    subtask = _find_subtask(task, subtask_id)
    if not subtask:
        return None

    task.subtasks.remove(subtask)
    apply_rollup(task)
    await db.commit()
    return await get_task(db, task_id, user_id)


async def update_subtask(
    db: AsyncSession, task_id: int, user_id: int, subtask_id: int, text: str
) -> Optional[Task]:
    task = await get_task(db, task_id, user_id)
    if not task:
        return None

    subtask = _find_subtask(task, subtask_id)
    if not subtask:
        return None

    subtask.text = text.strip()
    apply_rollup(task)
    await db.commit()
    return await get_task(db, task_id, user_id)


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def calculate_task_completion_rate(task: Task) -> int:
    """Percent of completed sub-tasks, or 0/100 from the status when there are none"""
    if not task.subtasks:
        return 100 if task.status == TaskStatus.COMPLETED.value else 0
    completed = sum(1 for subtask in task.subtasks if subtask.completed)
    return _round_half_up(completed * 100 / len(task.subtasks))


def calculate_completion_rate(tasks: List[Task]) -> int:
    if not tasks:
        return 0
    total = sum(calculate_task_completion_rate(task) for task in tasks)
    return _round_half_up(total / len(tasks))
