"""Expected calls and expected actions, with their call counters.

Expectations are parsed from plain configuration (lists of dicts) and count
the calls they match during one run. Whatever is left unmet at the end of
the run is reported by ``unmet_messages``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sagasim.errors import ConfigurationError, UnmatchedEffectError
from sagasim.handlers.matching import diff_values, params_match, value_matches
from sagasim.scheduler.types import Wait

_CALL_KEYS = frozenset({"name", "params", "times", "output", "throw", "call", "wait"})
_ACTION_KEYS = frozenset({"type", "action", "times", "strict"})


def _check_times(times: Any, where: str) -> None:
    if times is None:
        return
    if isinstance(times, bool) or not isinstance(times, int) or times < 0:
        raise ConfigurationError(f"{where}: times must be a non-negative int, got {times!r}")


def _describe_times(times: int | None) -> str:
    return "at least one" if times is None else str(times)


# ============================================
# Calls
# ============================================


@dataclass
class CallExpectation:
    """One configured call of a function, matched by name and parameters."""

    name: str
    params: tuple[Any, ...] | None = None
    times: int | None = None
    output: Any = None
    throw: BaseException | type[BaseException] | None = None
    call: bool = False
    wait: Wait = False
    times_called: int = 0
    received: list[tuple[Any, ...]] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> CallExpectation:
        where = f"expected call to {name}"
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"{where} must be a mapping, got {type(data).__name__}")
        unknown = set(data) - _CALL_KEYS
        if unknown:
            raise ConfigurationError(f"{where} has unknown keys {sorted(unknown)}")
        params = data.get("params")
        if params is not None and not isinstance(params, (list, tuple)):
            raise ConfigurationError(f"{where}: params must be a list")
        _check_times(data.get("times"), where)
        throw = data.get("throw")
        if throw is not None and not (
            isinstance(throw, BaseException) or (isinstance(throw, type) and issubclass(throw, BaseException))
        ):
            raise ConfigurationError(f"{where}: throw must be an exception, got {throw!r}")
        wait = data.get("wait", False)
        if not isinstance(wait, bool) and (not isinstance(wait, int) or wait < 0):
            raise ConfigurationError(f"{where}: wait must be a bool or a non-negative int, got {wait!r}")
        if throw is not None and data.get("call"):
            raise ConfigurationError(f"{where}: throw and call cannot be combined")
        return cls(
            name=name,
            params=None if params is None else tuple(params),
            times=data.get("times"),
            output=data.get("output"),
            throw=throw,
            call=bool(data.get("call", False)),
            wait=wait,
        )

    def matches(self, args: Sequence[Any]) -> bool:
        return params_match(self.params, args)

    def record(self, args: tuple[Any, ...]) -> None:
        self.times_called += 1
        self.received.append(args)

    @property
    def is_unmet(self) -> bool:
        if self.times_called == 0:
            return self.times != 0
        return self.times is not None and self.times != self.times_called


class CallExpectations:
    """Expected calls grouped by function name, in configuration order."""

    def __init__(self, by_name: Mapping[str, list[CallExpectation]] | None = None) -> None:
        self._by_name: dict[str, list[CallExpectation]] = {k: list(v) for k, v in (by_name or {}).items()}

    @classmethod
    def parse(cls, config: Any) -> CallExpectations:
        """Build from ``[{"name": ..., ...}]`` or ``{name: [{...}]}``."""
        if config is None:
            return cls()
        by_name: dict[str, list[CallExpectation]] = {}
        if isinstance(config, Mapping):
            for name, entries in config.items():
                if not isinstance(entries, (list, tuple)):
                    raise ConfigurationError("expected_calls must be an object containing arrays")
                by_name[name] = [CallExpectation.from_mapping(name, entry) for entry in entries]
            return cls(by_name)
        if isinstance(config, (list, tuple)):
            for entry in config:
                if not isinstance(entry, Mapping) or not isinstance(entry.get("name"), str):
                    raise ConfigurationError("every entry of expected_calls must be a mapping with a 'name'")
                by_name.setdefault(entry["name"], []).append(CallExpectation.from_mapping(entry["name"], entry))
            return cls(by_name)
        raise ConfigurationError(f"expected_calls must be a list or a mapping, got {type(config).__name__}")

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def match(self, name: str, args: tuple[Any, ...], *, step: int | None = None) -> CallExpectation:
        """Count and return the first expectation of ``name`` accepting ``args``."""
        candidates = self._by_name[name]
        for expectation in candidates:
            if expectation.matches(args):
                expectation.record(args)
                return expectation
        diffs = "\n\n".join(diff_values(list(e.params or ()), list(args)) for e in candidates)
        raise UnmatchedEffectError(
            f"Function '{name}' was called, but no matching set of parameters was found!\n\n{diffs}",
            effect=name,
            step=step,
        )

    def unmet_messages(self) -> list[str]:
        messages = []
        for name, expectations in self._by_name.items():
            for expectation in expectations:
                if expectation.is_unmet:
                    messages.append(
                        _unmet_message(
                            expectation.times,
                            "call(s) to",
                            name,
                            None if expectation.params is None else list(expectation.params),
                            [list(args) for args in expectation.received],
                            expectation.times_called,
                        )
                    )
        return messages


# ============================================
# Actions
# ============================================


@dataclass
class ActionExpectation:
    """An expected ``put``, by action type or by full action."""

    type: str | None = None
    action: Mapping[str, Any] | None = None
    times: int | None = None
    strict: bool = True
    times_called: int = 0
    received: list[Any] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ActionExpectation:
        if not isinstance(data, Mapping) or ("type" not in data and "action" not in data):
            raise ConfigurationError(
                'expected_actions must be a list of mappings containing either an attribute "type" or "action"'
            )
        unknown = set(data) - _ACTION_KEYS
        if unknown:
            raise ConfigurationError(f"expected action has unknown keys {sorted(unknown)}")
        action = data.get("action")
        if action is not None and (not isinstance(action, Mapping) or "type" not in action):
            raise ConfigurationError(f"expected action must be a mapping with a 'type', got {action!r}")
        _check_times(data.get("times"), "expected action")
        return cls(
            type=data.get("type"),
            action=action,
            times=data.get("times"),
            strict=bool(data.get("strict", True)),
        )

    @property
    def action_type(self) -> str:
        return self.type if self.type is not None else self.action["type"]

    def matches(self, action: Mapping[str, Any]) -> bool:
        if self.type is not None:
            return action.get("type") == self.type
        if set(action) != set(self.action):
            return False
        return all(value_matches(v, action.get(k)) for k, v in self.action.items())

    def record(self, action: Any) -> None:
        self.times_called += 1
        self.received.append(action)

    @property
    def is_unmet(self) -> bool:
        if self.times_called == 0:
            return self.times != 0
        return self.times is not None and self.times != self.times_called


class ActionExpectations:
    """Expected actions plus the same-type actions that matched none of them."""

    def __init__(self, expectations: Sequence[ActionExpectation] = ()) -> None:
        self._expectations = list(expectations)
        self._partial: dict[str, list[Any]] = {}

    @classmethod
    def parse(cls, config: Any) -> ActionExpectations:
        if config is None:
            return cls()
        if not isinstance(config, (list, tuple)):
            raise ConfigurationError(
                'expected_actions must be a list of mappings containing either an attribute "type" or "action"'
            )
        return cls([ActionExpectation.from_mapping(entry) for entry in config])

    def record(self, action: Mapping[str, Any], *, step: int | None = None) -> None:
        action_type = action.get("type")
        for expectation in self._expectations:
            if expectation.matches(action):
                expectation.record(action)
                return
        strict = [
            e.action
            for e in self._expectations
            if e.strict and e.action is not None and e.action_type == action_type
        ]
        if strict:
            diffs = "\n\n".join(diff_values(dict(expected), dict(action)) for expected in strict)
            raise UnmatchedEffectError(
                f"Received a strictly matched action of type '{action_type}', but no matching actions were found!"
                f"\n\n{diffs}",
                effect=action,
                step=step,
            )
        if any(e.action_type == action_type for e in self._expectations):
            self._partial.setdefault(action_type, []).append(action)

    def unmet_messages(self) -> list[str]:
        messages = []
        for expectation in self._expectations:
            if not expectation.is_unmet:
                continue
            partial = self._partial.get(expectation.action_type, [])
            messages.append(
                _unmet_message(
                    expectation.times,
                    "call(s) to action",
                    expectation.action_type,
                    None if expectation.action is None else dict(expectation.action),
                    [*expectation.received, *partial],
                    expectation.times_called + len(partial),
                )
            )
        return messages


def _unmet_message(
    times: int | None,
    label: str,
    name: str,
    expected_input: Any,
    received: list[Any],
    times_called: int,
) -> str:
    with_args = "" if expected_input is None else f", with args {expected_input!r}"
    details = ""
    if received and expected_input is not None:
        details = "\nReceived elements include:\n" + "\n\n".join(diff_values(expected_input, r) for r in received)
    elif received:
        details = f"\nReceived elements include: {received!r}"
    return f"Expected to receive {_describe_times(times)} {label} {name}{with_args}. Received {times_called}{details}"


__all__ = [
    "ActionExpectation",
    "ActionExpectations",
    "CallExpectation",
    "CallExpectations",
]
