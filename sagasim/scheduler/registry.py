"""Run-scoped store of tasks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sagasim.scheduler.task import Coroutine, Task
from sagasim.scheduler.types import Wait

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Owns every task of one run.

    Tasks live in an arena indexed by id, so finished tasks stay reachable
    as dependency references. The pending set keeps registration order.
    """

    def __init__(self) -> None:
        self._tasks: dict[int, Task] = {}
        self._pending: dict[int, Task] = {}
        self._finished: list[Task] = []
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def create(
        self,
        name: str,
        *,
        wait: Wait = False,
        parent: Task | None = None,
        detached: bool = False,
        coroutine: Coroutine | None = None,
        entry: Callable[[], Any] | None = None,
    ) -> Task:
        task = Task(
            id=self._next_id,
            name=name,
            wait=wait,
            parent_id=None if parent is None else parent.id,
            detached=detached,
            coroutine=coroutine,
            entry=entry,
        )
        self._next_id += 1
        self._tasks[task.id] = task
        self._pending[task.id] = task
        if parent is not None:
            parent.add_child(task)
        logger.debug("created task %s (%s) wait=%s parent=%s", task.id, name, wait, task.parent_id)
        return task

    def get(self, task_id: int) -> Task:
        return self._tasks[task_id]

    def parent_of(self, task: Task) -> Task | None:
        if task.parent_id is None:
            return None
        return self._tasks[task.parent_id]

    def coroutine_owner(self, task: Task) -> Task:
        """Nearest ancestor-or-self of ``task`` that runs tested code."""
        current: Task | None = task
        while current is not None:
            if current.coroutine is not None:
                return current
            current = self.parent_of(current)
        return task

    def pending(self) -> list[Task]:
        return list(self._pending.values())

    def has_pending(self) -> bool:
        return bool(self._pending)

    def retire(self, task: Task) -> None:
        """Move a finished task from the pending set to the reap buffer."""
        if self._pending.pop(task.id, None) is not None:
            self._finished.append(task)

    def reap(self) -> list[Task]:
        finished, self._finished = self._finished, []
        return finished


__all__ = ["TaskRegistry"]
