"""Cooperative cancellation.

Cancelling never stops a task: it flags the task and its structural
descendants, and tested code observes the flag with ``yield cancelled()``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sagasim.scheduler.task import Task

logger = logging.getLogger(__name__)


def cancel_tree(task: Task) -> list[Task]:
    """Flag ``task`` and every descendant it owns right now.

    The set of descendants is collected before any flag is written, so
    tasks created afterwards by the cancelled ones stay untouched.
    """
    snapshot = []
    stack = [task]
    while stack:
        current = stack.pop()
        snapshot.append(current)
        stack.extend(reversed(current.children))
    for member in snapshot:
        member.is_cancelled = True
    logger.debug("cancelled tasks %s", [t.id for t in snapshot])
    return snapshot


def cancel_all(tasks: Iterable[Task]) -> list[Task]:
    cancelled: list[Task] = []
    for task in tasks:
        cancelled.extend(cancel_tree(task))
    return cancelled


__all__ = ["cancel_all", "cancel_tree"]
