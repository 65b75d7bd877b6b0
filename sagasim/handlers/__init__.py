"""Handlers of external effects and expectation-backed call planning."""

from sagasim.effects.external import PutEffect, SelectEffect, TakeEffect
from sagasim.effects.watch import WatchEffect
from sagasim.scheduler.contracts import (
    CallPlan,
    CallPlanner,
    Handler,
    HandlerContext,
    HandlerRegistry,
    run_for_real,
)

from .actions import PutHandler, TakeHandler
from .calls import ExpectationPlanner
from .expectations import ActionExpectation, ActionExpectations, CallExpectation, CallExpectations
from .matching import ANY, TASK, diff_values, does_action_match, matching, of_type, params_match
from .select import SelectHandler, freeze


def standard_handlers(put: PutHandler, select: SelectHandler, take: TakeHandler) -> HandlerRegistry:
    return HandlerRegistry({PutEffect: put, SelectEffect: select, TakeEffect: take, WatchEffect: take.watch})


__all__ = [
    "ANY",
    "TASK",
    "ActionExpectation",
    "ActionExpectations",
    "CallExpectation",
    "CallExpectations",
    "CallPlan",
    "CallPlanner",
    "ExpectationPlanner",
    "Handler",
    "HandlerContext",
    "HandlerRegistry",
    "PutHandler",
    "SelectHandler",
    "TakeHandler",
    "diff_values",
    "does_action_match",
    "freeze",
    "matching",
    "of_type",
    "params_match",
    "run_for_real",
    "standard_handlers",
]
