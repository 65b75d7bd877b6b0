"""Step ceiling and deadlock detection."""

from __future__ import annotations

import logging

from sagasim.errors import DeadlockError
from sagasim.scheduler.debug import build_dump
from sagasim.scheduler.registry import TaskRegistry

logger = logging.getLogger(__name__)

DEFAULT_STEP_LIMIT = 10000


class DeadlockGuard:
    """Counts scheduler iterations and interpreter steps against a ceiling."""

    def __init__(self, registry: TaskRegistry, step_limit: int = DEFAULT_STEP_LIMIT) -> None:
        self._registry = registry
        self.step_limit = step_limit
        self.steps = 0

    def tick(self) -> int:
        self.steps += 1
        if self.steps > self.step_limit:
            logger.debug("step limit %s exceeded", self.step_limit)
            raise DeadlockError(
                build_dump(self._registry, f"Step limit of {self.step_limit} exceeded: "),
                step=self.steps,
                reason="step-limit",
            )
        return self.steps

    def deadlock(self) -> DeadlockError:
        logger.debug("deadlock at step %s", self.steps)
        return DeadlockError(build_dump(self._registry, "Deadlock: "), step=self.steps, reason="deadlock")


__all__ = ["DEFAULT_STEP_LIMIT", "DeadlockGuard"]
