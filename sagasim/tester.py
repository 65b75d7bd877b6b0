"""SagaTester: run a saga against configured expectations.

Usage::

    tester = SagaTester(
        checkout,
        expected_calls=[{"name": "charge", "params": [42], "output": "ok"}],
        expected_actions=[{"type": "CHECKOUT_DONE", "times": 1}],
    )
    tester.run({"type": "CHECKOUT", "amount": 42})
    assert tester.return_value == "ok"
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import Any

from sagasim.config import DebugOptions, RunOptions
from sagasim.errors import ConfigurationError
from sagasim.handlers import (
    ActionExpectations,
    CallExpectations,
    ExpectationPlanner,
    PutHandler,
    SelectHandler,
    TakeHandler,
    standard_handlers,
)
from sagasim.scheduler.scheduler import TaskScheduler


def _is_action(value: Any) -> bool:
    return isinstance(value, Mapping) and "type" in value


class SagaTester:
    """Runs a saga with mocked calls, state and actions, then checks expectations.

    Every ``run`` starts from a fresh scheduler and fresh expectation
    counters. After a run, ``return_value`` holds the saga's result and
    ``error_list`` the unmet expectations; those raise one ``AssertionError``
    unless ``should_assert`` is false.
    """

    def __init__(
        self,
        saga: Callable[..., Any],
        *,
        expected_calls: Any = None,
        expected_actions: Any = None,
        state: Mapping[str, Any] | None = None,
        selectors: Mapping[str, Any] | None = None,
        effective_actions: list[Mapping[str, Any]] | None = None,
        options: RunOptions | Mapping[str, Any] | None = None,
        debug: DebugOptions | Mapping[str, Any] | None = None,
        should_assert: bool = True,
    ) -> None:
        if not inspect.isgeneratorfunction(saga):
            raise ConfigurationError(
                "The generator function received is invalid. It must be a reference to a generator function, "
                "and it cannot be a running generator."
            )
        if state is not None and not isinstance(state, Mapping):
            raise ConfigurationError("state must be a mapping")
        if selectors is not None and not isinstance(selectors, Mapping):
            raise ConfigurationError("selectors must be a mapping of mocked selector names to values")
        if effective_actions is not None and (
            not isinstance(effective_actions, (list, tuple)) or not all(_is_action(a) for a in effective_actions)
        ):
            raise ConfigurationError('effective_actions must be a list of mappings containing an attribute "type"')

        # Parse once up front so configuration errors surface at construction.
        CallExpectations.parse(expected_calls)
        ActionExpectations.parse(expected_actions)

        self.saga = saga
        self.expected_calls = expected_calls
        self.expected_actions = expected_actions
        self.state = state
        self.selectors = selectors
        self.effective_actions = list(effective_actions or [])
        self.options = RunOptions.from_mapping(options)
        if debug is not None:
            self.options = self.options.replace(debug=DebugOptions.from_mapping(debug))
        self.should_assert = should_assert

        self.return_value: Any = None
        self.error_list: list[str] = []
        self.dispatched: list[Mapping[str, Any]] = []
        self.scheduler: TaskScheduler | None = None

    def run(self, *args: Any, **kwargs: Any) -> Any:
        """Run the saga with ``args`` to completion and check expectations.

        When no effective actions are configured, a first argument that looks
        like an action is what ``take`` receives.
        """
        calls = CallExpectations.parse(self.expected_calls)
        actions = ActionExpectations.parse(self.expected_actions)
        effective = list(self.effective_actions)
        if not effective and args and _is_action(args[0]):
            effective = [args[0]]

        put = PutHandler(actions)
        scheduler = TaskScheduler(
            planner=ExpectationPlanner(
                calls,
                fail_on_unconfigured=self.options.fail_on_unconfigured,
                step=lambda: scheduler.guard.steps,
            ),
            handlers=standard_handlers(
                put,
                SelectHandler(self.state, self.selectors, pass_on_none=self.options.pass_on_none),
                TakeHandler(effective),
            ),
            options=self.options,
        )
        self.scheduler = scheduler
        self.dispatched = put.dispatched
        self.return_value = None
        self.error_list = []

        self.return_value = scheduler.run(self.saga, *args, **kwargs)

        self.error_list = [*actions.unmet_messages(), *calls.unmet_messages()]
        if self.should_assert and self.error_list:
            raise AssertionError("Errors while running SagaTester.\n\n" + "\n\n".join(self.error_list))
        return self.return_value


__all__ = ["SagaTester"]
