"""Run options.

Options are given either as keyword arguments or as a mapping. Mapping keys
may be snake_case or camelCase (``stepLimit``, ``waitForSpawned``, ...).
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, TypeAlias

from sagasim.errors import ConfigurationError

DebugSelector: TypeAlias = "bool | int | str | list[int | str] | None"

_CAMEL_CASE = {
    "stepLimit": "step_limit",
    "failOnUnconfigured": "fail_on_unconfigured",
    "swallowSpawnErrors": "swallow_spawn_errors",
    "waitForSpawned": "wait_for_spawned",
    "passOnUndefined": "pass_on_none",
    "passOnNone": "pass_on_none",
}


def _check_selector(name: str, value: Any) -> None:
    if value is None or isinstance(value, (bool, int, str)):
        return
    if isinstance(value, (list, tuple)) and all(
        isinstance(v, (int, str)) and not isinstance(v, bool) for v in value
    ):
        return
    raise ConfigurationError(f"debug.{name} must be a bool, an id, a name or a list of ids and names")


@dataclass(frozen=True)
class DebugOptions:
    """Which tasks the debug tracer reports on, per event."""

    unblock: DebugSelector = None
    bubble: DebugSelector = None
    interrupt: DebugSelector = None

    def __post_init__(self) -> None:
        for f in fields(self):
            _check_selector(f.name, getattr(self, f.name))

    @property
    def enabled(self) -> bool:
        return any(getattr(self, f.name) not in (None, False) for f in fields(self))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> DebugOptions:
        if data is None:
            return cls()
        if isinstance(data, DebugOptions):
            return data
        if not isinstance(data, Mapping):
            raise ConfigurationError("debug must be a mapping with unblock, bubble and interrupt keys")
        unknown = set(data) - {f.name for f in fields(cls)}
        if unknown:
            raise ConfigurationError(f"unknown debug options: {sorted(unknown)}")
        return cls(**data)


@dataclass(frozen=True)
class RunOptions:
    """Knobs of a single run.

    Attributes:
        step_limit: Ceiling of the step counter before the run is aborted
        fail_on_unconfigured: Raise on calls with no expectation instead of
            running them for real
        swallow_spawn_errors: Log failures of spawned tasks instead of
            aborting the run
        wait_for_spawned: Keep running until spawned tasks finish too
        pass_on_none: Accept ``None`` from real selectors
        debug: Debug tracer selection
    """

    step_limit: int = 10000
    fail_on_unconfigured: bool = True
    swallow_spawn_errors: bool = False
    wait_for_spawned: bool = False
    pass_on_none: bool = False
    debug: DebugOptions = field(default_factory=DebugOptions)

    def __post_init__(self) -> None:
        if isinstance(self.step_limit, bool) or not isinstance(self.step_limit, int) or self.step_limit <= 0:
            raise ConfigurationError(f"step_limit must be a positive int, got {self.step_limit!r}")
        for name in ("fail_on_unconfigured", "swallow_spawn_errors", "wait_for_spawned", "pass_on_none"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a bool, got {getattr(self, name)!r}")
        if not isinstance(self.debug, DebugOptions):
            object.__setattr__(self, "debug", DebugOptions.from_mapping(self.debug))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> RunOptions:
        if data is None:
            return cls()
        if isinstance(data, RunOptions):
            return data
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"options must be a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_CASE.get(key, key)
            if name not in known:
                raise ConfigurationError(f"unknown option {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    def replace(self, **changes: Any) -> RunOptions:
        return dataclasses.replace(self, **changes)


__all__ = ["DebugOptions", "DebugSelector", "RunOptions"]
