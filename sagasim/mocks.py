"""Stand-ins for generator functions and selectors under test."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from sagasim.effects.call import CallEffect


def is_mocked(fn: Any) -> bool:
    return getattr(fn, "__mocked__", False) is True


def _mock(name: str) -> Callable[..., CallEffect]:
    def mocked(*args: Any, **kwargs: Any) -> CallEffect:
        return CallEffect(fn=mocked, args=args, kwargs=kwargs)

    mocked.__name__ = name
    mocked.__qualname__ = name
    mocked.__mocked__ = True  # type: ignore[attr-defined]
    return mocked


def mock_generator(target: Any) -> Any:
    """Replace a generator function by a named stand-in that never runs.

    ``target`` is a name, a generator function, or a mapping whose generator
    function values get replaced (other values are kept). Calling the
    stand-in yields a call effect, so ``yield mocked(1)``,
    ``yield call(mocked, 1)`` and ``yield fork(mocked, 1)`` all resolve
    against ``expected_calls`` under the stand-in's name.
    """
    if isinstance(target, str):
        return _mock(target)
    if isinstance(target, Mapping):
        return {
            key: _mock(value.__name__) if inspect.isgeneratorfunction(value) else value
            for key, value in target.items()
        }
    if not inspect.isgeneratorfunction(target):
        raise TypeError(
            f"mock_generator expects a generator function, a name or a mapping, got {type(target).__name__}"
        )
    return _mock(target.__name__)


@dataclass(frozen=True)
class MockedSelection:
    """Result of a mocked selector; replaced by the configured value."""

    name: str


def mock_selector(name: str) -> Callable[..., MockedSelection]:
    """A selector whose value comes from the tester's ``selectors`` config."""

    def selector(state: Any, *args: Any) -> MockedSelection:
        return MockedSelection(name)

    selector.__name__ = f"mock_{name}"
    return selector


__all__ = ["MockedSelection", "is_mocked", "mock_generator", "mock_selector"]
