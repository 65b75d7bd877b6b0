"""Planning calls and forks from expected calls."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sagasim.effects.call import CallEffect
from sagasim.effects.spawn import ForkEffect
from sagasim.errors import ConfigurationError, UnmatchedEffectError
from sagasim.handlers.expectations import CallExpectations
from sagasim.mocks import is_mocked
from sagasim.scheduler.contracts import CallPlan

logger = logging.getLogger(__name__)


class ExpectationPlanner:
    """Call planner backed by ``CallExpectations``.

    Configured calls and forks use the first matching expectation. Mocked
    generators must always be configured. Other unconfigured forks run for
    real; other unconfigured calls run for real only when
    ``fail_on_unconfigured`` is off.
    """

    def __init__(
        self,
        expectations: CallExpectations,
        *,
        fail_on_unconfigured: bool = True,
        step: Callable[[], int] | None = None,
    ) -> None:
        self._expectations = expectations
        self._fail_on_unconfigured = fail_on_unconfigured
        self._step = step or (lambda: 0)

    def __call__(self, effect: CallEffect | ForkEffect, *, forked: bool) -> CallPlan:
        name = effect.name
        mocked = is_mocked(effect.fn)
        if name not in self._expectations:
            if mocked:
                raise UnmatchedEffectError(
                    f"Received mocked generator call with name {name} and args {list(effect.args)!r}, "
                    "but no such generator was defined in expected_calls",
                    effect=effect,
                    step=self._step(),
                )
            if self._fail_on_unconfigured and not forked:
                raise UnmatchedEffectError(
                    f"Received call to a function named {name}, but the SagaTester was not configured "
                    "to receive this call",
                    effect=effect,
                    step=self._step(),
                )
            logger.debug("running unconfigured %s for real", name)
            return CallPlan()

        expectation = self._expectations.match(name, effect.args, step=self._step())
        if expectation.throw is not None:
            return CallPlan(invoke=False, error=_as_exception(expectation.throw), wait=expectation.wait)
        if expectation.call:
            if mocked:
                raise ConfigurationError(f"{name} is a mocked generator and cannot be called for real")
            return CallPlan(invoke=True, wait=expectation.wait)
        return CallPlan(invoke=False, output=expectation.output, wait=expectation.wait)


def _as_exception(throw: Any) -> BaseException:
    return throw() if isinstance(throw, type) else throw


__all__ = ["ExpectationPlanner"]
