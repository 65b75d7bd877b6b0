"""Runtime validators for effect attribute type checking."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Any


def _type_name(value: object) -> str:
    return type(value).__name__


def _is_effect_like(value: object) -> bool:
    """Check if value can be interpreted as a composite member."""
    from sagasim.effects.base import EffectBase

    return isinstance(value, EffectBase) or inspect.isgenerator(value)


def ensure_callable(value: object, *, name: str) -> None:
    if not callable(value):
        raise TypeError(f"{name} must be callable, got {_type_name(value)}")


def ensure_tuple(value: object, *, name: str) -> None:
    if not isinstance(value, tuple):
        raise TypeError(f"{name} must be tuple, got {_type_name(value)}")


def ensure_non_negative_int(value: object, *, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise TypeError(f"{name} must be non-negative int, got {_type_name(value)}={value!r}")


def ensure_wait(value: object, *, name: str) -> None:
    """A configurable wait is ``False``, ``True`` or a non-negative tick."""
    if isinstance(value, bool):
        return
    ensure_non_negative_int(value, name=name)


def ensure_pattern(value: object, *, name: str) -> None:
    """A take pattern is ``"*"``, an action type, a predicate, or a list of those."""
    items = value if isinstance(value, (list, tuple)) else [value]
    for item in items:
        if not isinstance(item, str) and not callable(item):
            raise TypeError(f"{name} entries must be str or callable, got {_type_name(item)}")


def ensure_effect_like(value: object, *, name: str) -> None:
    if not _is_effect_like(value):
        raise TypeError(f"{name} must be an effect or a generator, got {_type_name(value)}")


def ensure_effect_members(values: object, *, name: str) -> None:
    if isinstance(values, Mapping):
        if not values:
            raise ValueError(f"{name} must not be empty")
        for key, item in values.items():
            ensure_effect_like(item, name=f"{name}[{key!r}]")
        return
    ensure_tuple(values, name=name)
    if not values:
        raise ValueError(f"{name} must not be empty")
    for index, item in enumerate(values):
        ensure_effect_like(item, name=f"{name}[{index}]")


def ensure_markers(values: Any, *, name: str) -> None:
    from sagasim.scheduler.task import TaskMarker

    if isinstance(values, TaskMarker):
        return
    items = values.values() if isinstance(values, Mapping) else values
    if not isinstance(items, (tuple, list)) and not isinstance(values, Mapping):
        raise TypeError(f"{name} must be a TaskMarker, a list or a dict of them, got {_type_name(values)}")
    for item in items:
        if not isinstance(item, TaskMarker):
            raise TypeError(f"{name} entries must be TaskMarker, got {_type_name(item)}")


__all__ = [
    "ensure_callable",
    "ensure_effect_like",
    "ensure_effect_members",
    "ensure_markers",
    "ensure_non_negative_int",
    "ensure_pattern",
    "ensure_tuple",
    "ensure_wait",
]
