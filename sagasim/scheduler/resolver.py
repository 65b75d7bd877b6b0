"""Dependency resolution (bubble-up).

Finished tasks are detached from their parents and matched against the
interruptions that reference them. Satisfied interruptions resume their
owners right away, and whatever finishes as a consequence is bubbled in the
same pass.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from sagasim.scheduler.cancellation import cancel_tree
from sagasim.scheduler.priority import is_now
from sagasim.scheduler.task import Task
from sagasim.scheduler.types import Completed, Interruption, InterruptionKind

if TYPE_CHECKING:
    from sagasim.scheduler.scheduler import TaskScheduler

logger = logging.getLogger(__name__)


# ============================================
# Pending shapes
# ============================================


def map_pending(pending: Any, fn: Callable[[Any], Any]) -> Any:
    """Apply ``fn`` to every slot of a single / list / keyed structure."""
    if isinstance(pending, Mapping):
        return {key: fn(slot) for key, slot in pending.items()}
    if isinstance(pending, (list, tuple)):
        return [fn(slot) for slot in pending]
    return fn(pending)


def pending_slots(pending: Any) -> list[Any]:
    if isinstance(pending, Mapping):
        return list(pending.values())
    if isinstance(pending, (list, tuple)):
        return list(pending)
    return [pending]


def waiting_on(pending: Any) -> list[Task]:
    return [slot for slot in pending_slots(pending) if isinstance(slot, Task)]


def unwrap(pending: Any) -> Any:
    """Value of a pending structure; unresolved slots become ``None``."""
    return map_pending(pending, lambda slot: slot.value if isinstance(slot, Completed) else None)


def _settle_slot(slot: Any) -> Any:
    if isinstance(slot, Task) and slot.is_done:
        return Completed(slot.result)
    return slot


def settle_finished(pending: Any) -> Any:
    """Wrap the results of finished tasks in ``Completed``."""
    return map_pending(pending, _settle_slot)


# ============================================
# Resolver
# ============================================


class DependencyResolver:
    def __init__(self, scheduler: TaskScheduler) -> None:
        self._scheduler = scheduler
        self._registry = scheduler.registry

    def bubble(self, finished: list[Task]) -> None:
        while finished:
            self._scheduler.tracer.bubbling(finished, self._registry)
            ids = {task.id for task in finished}
            for task in self._registry.pending():
                if task.is_done:
                    continue
                task.remove_children(ids)
                interruption = task.interruption
                if interruption is None or interruption.resolved:
                    continue
                if not self.settle(task, interruption, ids):
                    continue
                logger.debug("task %s unblocked (%s)", task.id, interruption.kind.value)
                if is_now(task.wait) and not task.is_running:
                    self._scheduler.run_task(task)
            finished = self._registry.reap()

    def settle(self, task: Task, interruption: Interruption, finished_ids: set[int]) -> bool:
        """Apply the finished ids to ``interruption``; return whether it is satisfied."""
        match interruption.kind:
            case InterruptionKind.CHILDREN:
                if task.children:
                    return False
                interruption.resolve(interruption.pending)
                return True
            case InterruptionKind.GENERATOR:
                (dependency,) = interruption.dependencies
                if dependency not in finished_ids:
                    return False
                interruption.resolve(self._registry.get(dependency).result)
                return True
            case InterruptionKind.JOIN | InterruptionKind.ALL:
                if finished_ids.isdisjoint(interruption.dependencies):
                    return False
                interruption.pending = settle_finished(interruption.pending)
                remaining = waiting_on(interruption.pending)
                interruption.dependencies = tuple(t.id for t in remaining)
                if remaining:
                    return False
                interruption.resolve(unwrap(interruption.pending))
                return True
            case InterruptionKind.RACE:
                return self._settle_race(interruption, finished_ids)
        return False

    def _settle_race(self, interruption: Interruption, finished_ids: set[int]) -> bool:
        winner = next((t for t in waiting_on(interruption.pending) if t.id in finished_ids), None)
        if winner is None:
            return False
        for loser in waiting_on(interruption.pending):
            if loser is not winner and not loser.is_done:
                cancel_tree(loser)
                loser.abandoned = True
        interruption.pending = map_pending(
            interruption.pending, lambda slot: Completed(slot.result) if slot is winner else None
        )
        interruption.dependencies = (winner.id,)
        interruption.resolve(unwrap(interruption.pending))
        return True


__all__ = [
    "DependencyResolver",
    "map_pending",
    "pending_slots",
    "settle_finished",
    "unwrap",
    "waiting_on",
]
