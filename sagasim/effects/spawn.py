"""Concurrent task effects: fork, spawn, join, cancel, cancelled."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, ClassVar

from ._validators import ensure_callable, ensure_markers, ensure_tuple
from .base import EffectBase, EffectKind
from .call import callable_name

if TYPE_CHECKING:
    from sagasim.scheduler.task import TaskMarker


@dataclass(frozen=True)
class ForkEffect(EffectBase):
    """Run ``fn(*args)`` as a new task and return its ``TaskMarker``.

    An attached fork becomes a structural child of the forking task: the
    parent waits for it before finishing and receives its failure. A detached
    fork (``spawn``) has no parent.
    """

    kind: ClassVar[EffectKind] = EffectKind.RUN_CONCURRENTLY

    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
    detached: bool = False

    def __post_init__(self) -> None:
        ensure_callable(self.fn, name="fn")
        ensure_tuple(self.args, name="args")

    @property
    def name(self) -> str:
        return callable_name(self.fn)

    def invoke(self) -> Any:
        return self.fn(*self.args, **self.kwargs)


@dataclass(frozen=True)
class JoinEffect(EffectBase):
    """Wait for one task, a list of tasks or a dict of tasks."""

    kind: ClassVar[EffectKind] = EffectKind.JOIN

    targets: Any

    def __post_init__(self) -> None:
        ensure_markers(self.targets, name="targets")


@dataclass(frozen=True)
class CancelEffect(EffectBase):
    """Cancel tasks; ``targets=None`` cancels the yielding task itself."""

    kind: ClassVar[EffectKind] = EffectKind.CANCEL

    targets: Any = None

    def __post_init__(self) -> None:
        if self.targets is not None:
            ensure_markers(self.targets, name="targets")


@dataclass(frozen=True)
class CancelledEffect(EffectBase):
    """Query the cancellation flag of the yielding task."""

    kind: ClassVar[EffectKind] = EffectKind.IS_CANCELLED


def fork(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> ForkEffect:
    return ForkEffect(fn=fn, args=args, kwargs=kwargs)


def spawn(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> ForkEffect:
    return ForkEffect(fn=fn, args=args, kwargs=kwargs, detached=True)


def join(targets: "TaskMarker | list[TaskMarker] | dict[Any, TaskMarker]") -> JoinEffect:
    return JoinEffect(targets=targets)


def cancel(targets: Any = None) -> CancelEffect:
    return CancelEffect(targets=targets)


def cancelled() -> CancelledEffect:
    return CancelledEffect()


__all__ = [
    "CancelEffect",
    "CancelledEffect",
    "ForkEffect",
    "JoinEffect",
    "cancel",
    "cancelled",
    "fork",
    "join",
    "spawn",
]
