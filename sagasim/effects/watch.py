"""Watcher helpers: take_every, take_latest, take_leading, debounce, throttle.

Each helper forks a watcher task named after the helper. The watcher looks up
the first effective action matching ``pattern`` and forks
``worker(*args, action)`` for it; with no matching action it finishes without
running the worker. ``debounce`` waits ``ticks`` before forking the worker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ._validators import ensure_callable, ensure_non_negative_int, ensure_pattern
from .base import EffectBase
from .spawn import ForkEffect, fork
from .time import delay

WATCHER_HELPERS = ("take_every", "take_latest", "take_leading", "debounce", "throttle")


@dataclass(frozen=True)
class WatchEffect(EffectBase):
    """Look up the effective action a watcher reacts to.

    Answered with the first matching action, or ``None``. The action stays
    available to later ``take`` effects.
    """

    helper: str
    pattern: Any = "*"

    def __post_init__(self) -> None:
        if self.helper not in WATCHER_HELPERS:
            raise ValueError(f"helper must be one of {WATCHER_HELPERS}, got {self.helper!r}")
        ensure_pattern(self.pattern, name="pattern")


class Watcher:
    """The generator function a watcher task runs."""

    def __init__(
        self,
        helper: str,
        pattern: Any,
        worker: Callable[..., Any],
        args: tuple[Any, ...],
        ticks: int = 0,
    ) -> None:
        ensure_callable(worker, name="worker")
        ensure_non_negative_int(ticks, name="ticks")
        self.__name__ = helper
        self.effect = WatchEffect(helper=helper, pattern=pattern)
        self.worker = worker
        self.args = args
        self.ticks = ticks

    def __call__(self):
        action = yield self.effect
        if action is None:
            return None
        if self.ticks:
            yield delay(self.ticks)
        return (yield fork(self.worker, *self.args, action))

    def __repr__(self) -> str:
        return f"Watcher({self.__name__}, pattern={self.effect.pattern!r})"


def _watch(helper: str, pattern: Any, worker: Callable[..., Any], args: tuple[Any, ...], ticks: int = 0) -> ForkEffect:
    return ForkEffect(fn=Watcher(helper, pattern, worker, args, ticks))


def take_every(pattern: Any, worker: Callable[..., Any], *args: Any) -> ForkEffect:
    return _watch("take_every", pattern, worker, args)


def take_latest(pattern: Any, worker: Callable[..., Any], *args: Any) -> ForkEffect:
    return _watch("take_latest", pattern, worker, args)


def take_leading(pattern: Any, worker: Callable[..., Any], *args: Any) -> ForkEffect:
    return _watch("take_leading", pattern, worker, args)


def debounce(ticks: int, pattern: Any, worker: Callable[..., Any], *args: Any) -> ForkEffect:
    return _watch("debounce", pattern, worker, args, ticks)


def throttle(ticks: int, pattern: Any, worker: Callable[..., Any], *args: Any) -> ForkEffect:
    ensure_non_negative_int(ticks, name="ticks")
    return _watch("throttle", pattern, worker, args)


__all__ = [
    "WATCHER_HELPERS",
    "WatchEffect",
    "Watcher",
    "debounce",
    "take_every",
    "take_latest",
    "take_leading",
    "throttle",
]
