"""Total order over wait states, and ready-batch selection.

``False`` and every symbolic tier sort as "now" (lowest, first), numeric ticks
follow by value, and ``True`` comes last.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from sagasim.scheduler.types import Wait, WaitTier

if TYPE_CHECKING:
    from sagasim.scheduler.task import Task

_NOW = 0
_TICK = 1
_LAST = 2


def is_now(wait: Wait) -> bool:
    return wait is False or isinstance(wait, WaitTier)


def priority_key(wait: Wait) -> tuple[int, int]:
    if wait is True:
        return (_LAST, 0)
    if is_now(wait):
        return (_NOW, 0)
    return (_TICK, int(wait))


def compare_waits(a: Wait, b: Wait) -> int:
    """Return -1, 0 or 1 as ``a`` runs before, together with, or after ``b``."""
    key_a, key_b = priority_key(a), priority_key(b)
    if key_a == key_b:
        return 0
    return -1 if key_a < key_b else 1


def sort_by_priority(tasks: Iterable[Task]) -> list[Task]:
    """Stable sort: ties keep registration order."""
    return sorted(tasks, key=lambda t: priority_key(t.wait))


def select_ready_batch(tasks: Iterable[Task]) -> list[Task]:
    """Pick the next batch among ``tasks`` (in registration order).

    Only selectable tasks are considered: no children, not running, and no
    interruption that is still unresolved. The batch holds every "now" task
    plus every numeric tick up to the lowest numeric tick present. ``True``
    tasks run only when nothing else is eligible.
    """
    eligible = [t for t in tasks if t.is_selectable]
    ticks = [t.wait for t in eligible if not is_now(t.wait) and t.wait is not True]
    cutoff = min(ticks) if ticks else None

    batch = []
    for task in eligible:
        if is_now(task.wait):
            batch.append(task)
        elif task.wait is not True and task.wait <= cutoff:
            batch.append(task)
    if batch:
        return batch
    return [task for task in eligible if task.wait is True]


__all__ = [
    "compare_waits",
    "is_now",
    "priority_key",
    "select_ready_batch",
    "sort_by_priority",
]
