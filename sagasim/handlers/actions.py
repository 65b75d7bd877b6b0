"""Handlers for dispatched actions (``put``) and awaited actions (``take``)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sagasim.effects.external import PutEffect, TakeEffect
from sagasim.effects.watch import WatchEffect
from sagasim.errors import UnmatchedEffectError
from sagasim.handlers.expectations import ActionExpectations
from sagasim.handlers.matching import does_action_match
from sagasim.scheduler.contracts import HandlerContext
from sagasim.scheduler.types import Advance, Deferred


class PutHandler:
    """Records every dispatched action against the expected actions."""

    def __init__(self, expectations: ActionExpectations) -> None:
        self.expectations = expectations
        self.dispatched: list[Mapping[str, Any]] = []

    def __call__(self, effect: PutEffect, ctx: HandlerContext) -> Advance:
        self.dispatched.append(effect.action)
        self.expectations.record(effect.action, step=ctx.step)
        return Advance(None)


class TakeHandler:
    """Serves ``take`` from a queue of effective actions.

    A matched action is consumed. Inside a race or all, an unmatched take
    waits at the lowest priority and resolves to ``None``; anywhere else it
    is a configuration mistake.
    """

    def __init__(self, actions: Iterable[Mapping[str, Any]] = ()) -> None:
        self.actions: list[Mapping[str, Any]] = list(actions)

    def __call__(self, effect: TakeEffect, ctx: HandlerContext) -> Advance | Deferred:
        for index, action in enumerate(self.actions):
            if does_action_match(action, effect.pattern):
                del self.actions[index]
                return Advance(action)
        if ctx.in_composite:
            return ctx.defer(None, wait=True, name="take")
        raise UnmatchedEffectError(
            f"Found a take action looking for an action of type {effect.pattern!r}, but no such effective "
            "action exists. Add this action in the effective_actions config to solve this issue.",
            effect=effect,
            step=ctx.step,
        )

    def watch(self, effect: WatchEffect, ctx: HandlerContext) -> Advance:
        """Answer a watcher with the first matching action, without consuming it."""
        for action in self.actions:
            if does_action_match(action, effect.pattern):
                return Advance(action)
        return Advance(None)


__all__ = ["PutHandler", "TakeHandler"]
