from __future__ import annotations

import logging
from typing import Optional

from .clock import Clock, RealClock
from .errors import ValidationError
from .models import Task
from .stats import StatsAggregator
from .storage import Storage

MAX_TITLE_LENGTH = 200


def normalize_title(raw: str) -> str:
    title = " ".join(str(raw).split())
    if not title:
        raise ValidationError("task title must not be empty")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"task title must be at most {MAX_TITLE_LENGTH} characters")
    return title


class TaskStore:
    """CRUD over a user's tasks.

    Marking a task complete bumps ``tasks_completed`` for today once per
    incomplete-to-complete change. Un-completing does not decrement it.
    """

    def __init__(
        self,
        storage: Storage,
        stats: StatsAggregator | None = None,
        clock: Clock | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._storage = storage
        self._stats = stats
        self._clock = clock or RealClock()
        self._logger = logger or logging.getLogger("pomolog.tasks")

    def create_task(self, user_id: int, title: str, completed: bool = False) -> Task:
        task = self._storage.create_task(
            user_id=user_id,
            title=normalize_title(title),
            completed=bool(completed),
            created_at=self._clock.now(),
        )
        self._logger.info("Task created: id=%s user=%s", task.id, user_id)
        if task.completed:
            self._record_completion(task)
        return task

    def get_task(self, task_id: int) -> Task | None:
        return self._storage.get_task(task_id)

    def list_tasks(self, user_id: int | None = None) -> list[Task]:
        return self._storage.list_tasks(user_id)

    def update_task(
        self,
        task_id: int,
        *,
        title: str | None = None,
        completed: bool | None = None,
    ) -> Task | None:
        existing = self._storage.get_task(task_id)
        if existing is None:
            return None

        clean_title = normalize_title(title) if title is not None else None
        updated = self._storage.update_task(
            task_id,
            title=clean_title,
            completed=None if completed is None else bool(completed),
        )
        if updated is None:
            return None
        if updated.completed and not existing.completed:
            self._record_completion(updated)
        return updated

    def delete_task(self, task_id: int) -> bool:
        deleted = self._storage.delete_task(task_id)
        if deleted:
            self._logger.info("Task deleted: id=%s", task_id)
        return deleted

    def _record_completion(self, task: Task) -> None:
        if self._stats is None:
            return
        self._stats.record_task_completed(task.user_id)
