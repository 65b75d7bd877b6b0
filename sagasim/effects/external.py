"""Effects handed whole to external handlers: put, select, take."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from ._validators import ensure_callable, ensure_pattern, ensure_tuple
from .base import EffectBase


def _ensure_action(value: object) -> None:
    if not isinstance(value, Mapping) or "type" not in value:
        raise TypeError(f"action must be a mapping with a 'type' key, got {value!r}")


@dataclass(frozen=True)
class PutEffect(EffectBase):
    """Dispatch an action."""

    action: Mapping[str, Any]

    def __post_init__(self) -> None:
        _ensure_action(self.action)


@dataclass(frozen=True)
class SelectEffect(EffectBase):
    """Read a value from the state through ``selector(state, *args)``."""

    selector: Callable[..., Any]
    args: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        ensure_callable(self.selector, name="selector")
        ensure_tuple(self.args, name="args")


@dataclass(frozen=True)
class TakeEffect(EffectBase):
    """Wait for an external action matching ``pattern``.

    ``pattern`` is ``"*"``, an action type, a predicate, or a list of those.
    """

    pattern: Any = "*"

    def __post_init__(self) -> None:
        ensure_pattern(self.pattern, name="pattern")


def put(action: Mapping[str, Any]) -> PutEffect:
    return PutEffect(action=action)


def select(selector: Callable[..., Any], *args: Any) -> SelectEffect:
    return SelectEffect(selector=selector, args=args)


def take(pattern: Any = "*") -> TakeEffect:
    return TakeEffect(pattern=pattern)


__all__ = ["PutEffect", "SelectEffect", "TakeEffect", "put", "select", "take"]
