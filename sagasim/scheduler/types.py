"""
Scheduler value types.

This module contains:
- WaitTier / Wait: the priority and blocking state of a task
- InterruptionKind / Interruption: why and on what a task is blocked
- Completed: a resolved slot inside an interruption's pending structure
- Advance / Block / Enter: outcomes of interpreting one effect
- Suspended / Done / Failed: outcomes of resuming a coroutine
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Generator

    from sagasim.scheduler.task import Task


# ============================================
# Wait tiers
# ============================================


class WaitTier(Enum):
    """Symbolic tiers of blocked tasks; all of them sort as "now"."""

    GENERATOR = "generator-wait"
    RACE = "race-wait"
    ALL = "all-wait"
    CHILDREN = "children-wait"

    def __str__(self) -> str:
        return self.value


Wait: TypeAlias = "bool | int | WaitTier"


# ============================================
# Interruptions
# ============================================


class InterruptionKind(Enum):
    GENERATOR = "generator"
    JOIN = "join"
    RACE = "race"
    ALL = "all"
    CHILDREN = "children"

    @property
    def tier(self) -> WaitTier:
        return _KIND_TIERS[self]


_KIND_TIERS = {
    InterruptionKind.GENERATOR: WaitTier.GENERATOR,
    InterruptionKind.JOIN: WaitTier.GENERATOR,
    InterruptionKind.RACE: WaitTier.RACE,
    InterruptionKind.ALL: WaitTier.ALL,
    InterruptionKind.CHILDREN: WaitTier.CHILDREN,
}


@dataclass(frozen=True)
class Completed:
    """A slot of a pending structure whose value is known."""

    value: Any


@dataclass
class Interruption:
    """Record of why a task cannot progress on its own.

    ``pending`` mirrors the blocking shape: a single ``Task``, a list, or a
    dict whose entries are either ``Task`` (still blocked) or ``Completed``.
    """

    kind: InterruptionKind
    pending: Any
    dependencies: tuple[int, ...]
    resolved: bool = False
    value: Any = None

    def resolve(self, value: Any) -> None:
        self.resolved = True
        self.value = value


# ============================================
# Interpreter outcomes
# ============================================


@dataclass(frozen=True)
class Advance:
    """Resume the yielding coroutine with ``value``."""

    value: Any = None


@dataclass(frozen=True)
class Block:
    """The task cannot progress until ``interruption`` is satisfied."""

    interruption: Interruption


@dataclass(frozen=True)
class Enter:
    """Run ``generator`` inline, as a new frame of the yielding task."""

    generator: "Generator[Any, Any, Any]"


StepOutcome: TypeAlias = "Advance | Block | Enter"


@dataclass(frozen=True)
class Deferred:
    """Outcome of an external handler that blocks behind ``task``."""

    task: "Task"


# ============================================
# Coroutine outcomes
# ============================================


@dataclass(frozen=True)
class Suspended:
    """The coroutine yielded ``effect`` and waits to be resumed."""

    effect: Any


@dataclass(frozen=True)
class Done:
    """The coroutine returned ``value``."""

    value: Any


@dataclass(frozen=True)
class Failed:
    """The coroutine raised ``error``."""

    error: BaseException


__all__ = [
    "Advance",
    "Block",
    "Completed",
    "Deferred",
    "Done",
    "Enter",
    "Failed",
    "Interruption",
    "InterruptionKind",
    "StepOutcome",
    "Suspended",
    "Wait",
    "WaitTier",
]
