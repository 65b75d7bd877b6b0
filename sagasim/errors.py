"""Error taxonomy of the saga scheduler.

Every error raised by the harness itself derives from :class:`SagaTesterError`.
Those are never thrown into tested code: only exceptions that originate in
tested code travel through coroutines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sagasim.scheduler.debug import TaskDump


class SagaTesterError(Exception):
    """Base class for failures of the harness (not of the tested code)."""


class ConfigurationError(SagaTesterError):
    """Raised when the tester or run options are malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Error in the configuration of SagaTester: {message}")


class UnmatchedEffectError(SagaTesterError):
    """Raised when an effect reaches a handler with no matching expectation.

    Attributes:
        effect: The effect (or call) that could not be matched.
        step: Scheduler step at which the mismatch was detected.
    """

    def __init__(self, message: str, *, effect: Any = None, step: int | None = None) -> None:
        self.effect = effect
        self.step = step
        suffix = f" (step {step})" if step is not None else ""
        super().__init__(f"{message}{suffix}")


@dataclass(eq=False)
class TestedCodeError(SagaTesterError):
    """An exception from tested code that nobody caught.

    Raised when the root task fails, or when a detached task fails and spawn
    errors are not swallowed.

    Attributes:
        original: The exception raised by tested code
        task_id: Id of the task the exception escaped from
        task_name: Name of that task
        step: Scheduler step at which it escaped
    """

    __test__ = False

    original: BaseException
    task_id: int | None = None
    task_name: str | None = None
    step: int | None = None

    def __post_init__(self) -> None:
        self.__cause__ = self.original

    def __str__(self) -> str:
        where = f"task {self.task_name or '?'} (id {self.task_id})"
        return (
            f"Error was thrown while running SagaTester in {where} (step {self.step}): "
            f"{type(self.original).__name__}: {self.original}"
        )


@dataclass(eq=False)
class DeadlockError(SagaTesterError):
    """No pending task can make progress, or the step ceiling was exceeded.

    Attributes:
        dump: Snapshot of every pending task at the time of the failure.
        step: Value of the step counter.
    """

    dump: "TaskDump"
    step: int = 0
    reason: str = field(default="deadlock")

    def __str__(self) -> str:
        from sagasim.scheduler.debug import render_dump

        return render_dump(self.dump)


__all__ = [
    "ConfigurationError",
    "DeadlockError",
    "SagaTesterError",
    "TestedCodeError",
    "UnmatchedEffectError",
]
