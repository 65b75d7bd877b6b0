"""Argument and action matching.

Expected parameters are compared with ``==``, except for the placeholders
``ANY``, ``TASK``, ``of_type(t)`` and ``matching(predicate)``.
"""

from __future__ import annotations

import difflib
import pprint
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sagasim.scheduler.task import TaskMarker


class _Placeholder(ABC):
    def __init__(self, label: str) -> None:
        self._label = label

    def __repr__(self) -> str:
        return self._label

    @abstractmethod
    def accepts(self, value: Any) -> bool: ...


class _Any(_Placeholder):
    def accepts(self, value: Any) -> bool:
        return True


class _TaskPlaceholder(_Placeholder):
    def accepts(self, value: Any) -> bool:
        return isinstance(value, TaskMarker)


ANY = _Any("ANY")
TASK = _TaskPlaceholder("TASK")


@dataclass(frozen=True)
class OfType:
    type: type | tuple[type, ...]

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.type)


@dataclass(frozen=True)
class Matching:
    predicate: Callable[[Any], bool]

    def accepts(self, value: Any) -> bool:
        return bool(self.predicate(value))


def of_type(expected: type | tuple[type, ...]) -> OfType:
    return OfType(expected)


def matching(predicate: Callable[[Any], bool]) -> Matching:
    return Matching(predicate)


def value_matches(expected: Any, received: Any) -> bool:
    if isinstance(expected, (_Placeholder, OfType, Matching)):
        return expected.accepts(received)
    return expected == received


def params_match(params: Sequence[Any] | None, args: Sequence[Any]) -> bool:
    """Whether call ``args`` satisfy expected ``params`` (``None`` accepts anything)."""
    if params is None:
        return True
    if len(params) != len(args):
        return False
    return all(value_matches(p, a) for p, a in zip(params, args))


def does_action_match(action: Any, pattern: Any) -> bool:
    """Whether ``action`` satisfies a take pattern."""
    if pattern == "*":
        return action is not None
    if callable(pattern) and not isinstance(pattern, str):
        return bool(pattern(action))
    if not isinstance(action, Mapping):
        return False
    matchers = pattern if isinstance(pattern, (list, tuple)) else [pattern]
    action_type = str(action.get("type"))
    return any(m == action_type if isinstance(m, str) else bool(m(action)) for m in matchers)


def diff_values(expected: Any, received: Any) -> str:
    """Unified diff of the pretty-printed ``expected`` and ``received`` values."""
    lines = difflib.unified_diff(
        pprint.pformat(expected).splitlines(),
        pprint.pformat(received).splitlines(),
        fromfile="expected",
        tofile="received",
        lineterm="",
    )
    return "\n".join(lines) or "(no difference)"


__all__ = [
    "ANY",
    "TASK",
    "Matching",
    "OfType",
    "diff_values",
    "does_action_match",
    "matching",
    "of_type",
    "params_match",
    "value_matches",
]
