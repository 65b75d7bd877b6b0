"""Tasks, their markers, and the resumable computation they drive."""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any

from sagasim.scheduler.types import Done, Interruption, Suspended, Wait

ROOT_ID = 0


def _send(generator: Generator[Any, Any, Any], value: Any) -> Any:
    return generator.send(value)


def _throw(generator: Generator[Any, Any, Any], error: BaseException) -> Any:
    return generator.throw(error)


class Coroutine:
    """A stack of generator frames resumed as one computation.

    Inline calls push a frame; a finished frame hands its return value (or
    its exception) to the frame below it. Only the bottom frame finishing
    finishes the coroutine.
    """

    def __init__(self, generator: Generator[Any, Any, Any]) -> None:
        self._frames: list[Generator[Any, Any, Any]] = [generator]
        self._started = False

    def resume(self, value: Any = None) -> Suspended | Done:
        if not self._started:
            self._started = True
            return self._advance(_send, None)
        return self._advance(_send, value)

    def throw_into(self, error: BaseException) -> Suspended | Done:
        self._started = True
        return self._advance(_throw, error)

    def enter(self, generator: Generator[Any, Any, Any]) -> Suspended | Done:
        self._frames.append(generator)
        return self._advance(_send, None)

    def _advance(self, action: Callable[[Generator[Any, Any, Any], Any], Any], arg: Any) -> Suspended | Done:
        while True:
            frame = self._frames[-1]
            try:
                effect = action(frame, arg)
            except StopIteration as stop:
                self._frames.pop()
                if not self._frames:
                    return Done(stop.value)
                action, arg = _send, stop.value
                continue
            except Exception as exc:
                self._frames.pop()
                if not self._frames:
                    raise
                action, arg = _throw, exc
                continue
            return Suspended(effect)


@dataclass(eq=False)
class Task:
    """A scheduling and ownership unit.

    ``coroutine`` is ``None`` for synthetic tasks (mocked outputs, delays,
    composite placeholders); ``entry`` is the deferred start of a task that
    has not run yet.
    """

    id: int
    name: str
    wait: Wait = False
    parent_id: int | None = None
    detached: bool = False
    coroutine: Coroutine | None = None
    entry: Callable[[], Any] | None = field(default=None, repr=False)
    children: list[Task] = field(default_factory=list, repr=False)
    interruption: Interruption | None = field(default=None, repr=False)
    result: Any = field(default=None, repr=False)
    error: BaseException | None = field(default=None, repr=False)
    is_cancelled: bool = False
    is_running: bool = False
    is_done: bool = False
    abandoned: bool = False

    @property
    def is_blocked(self) -> bool:
        return self.interruption is not None and not self.interruption.resolved

    @property
    def is_selectable(self) -> bool:
        return not self.is_done and not self.children and not self.is_running and not self.is_blocked

    def add_child(self, child: Task) -> None:
        if all(c.id != child.id for c in self.children):
            self.children.append(child)

    def remove_children(self, ids: set[int]) -> bool:
        before = len(self.children)
        self.children = [c for c in self.children if c.id not in ids]
        return len(self.children) != before

    def block(self, interruption: Interruption) -> None:
        self.interruption = interruption
        self.wait = interruption.kind.tier

    def consume(self) -> Any:
        """Discard a resolved interruption and return its value."""
        interruption = self.interruption
        if interruption is None or not interruption.resolved:
            raise RuntimeError(f"task {self.id} has no resolved interruption to consume")
        self.interruption = None
        return interruption.value

    def abandon(self) -> Interruption | None:
        interruption, self.interruption = self.interruption, None
        return interruption

    def finish(self, result: Any) -> None:
        self.result = result
        self.wait = False
        self.interruption = None
        self.coroutine = None
        self.is_done = True

    def marker(self) -> TaskMarker:
        return TaskMarker(self)


class TaskMarker:
    """Read-only view of a task handed to tested code."""

    __slots__ = ("_task",)

    def __init__(self, task: Task) -> None:
        self._task = task

    @property
    def id(self) -> int:
        return self._task.id

    @property
    def name(self) -> str:
        return self._task.name

    @property
    def wait(self) -> Wait:
        return self._task.wait

    @property
    def is_cancelled(self) -> bool:
        return self._task.is_cancelled

    @property
    def is_done(self) -> bool:
        return self._task.is_done

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TaskMarker) and other.id == self.id

    def __hash__(self) -> int:
        return hash(("TaskMarker", self.id))

    def __repr__(self) -> str:
        return f"TaskMarker(id={self.id}, name={self.name!r})"


__all__ = ["ROOT_ID", "Coroutine", "Task", "TaskMarker"]
