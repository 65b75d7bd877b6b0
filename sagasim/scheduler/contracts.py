"""Contracts between the effect interpreter and its collaborators.

External effects are handed to a handler looked up by effect type; calls
and forks are planned by a call planner.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

from sagasim.scheduler.types import Advance, Deferred, Wait

if TYPE_CHECKING:
    from sagasim.effects.base import EffectBase
    from sagasim.effects.call import CallEffect
    from sagasim.effects.spawn import ForkEffect
    from sagasim.scheduler.task import Task


@dataclass(frozen=True)
class HandlerContext:
    """What a handler may know about, and do to, the yielding task.

    Attributes:
        task: Task the effect is interpreted for (a placeholder when
            ``in_composite``)
        in_composite: Whether the effect is a race / all member
        step: Current value of the step counter
    """

    task: Task
    in_composite: bool
    step: int
    _defer: Callable[[Any, Wait, str | None], Task] = field(repr=False)

    def defer(self, value: Any = None, *, wait: Wait = True, name: str | None = None) -> Deferred:
        """Block the task behind a synthetic child finishing with ``value``."""
        return Deferred(self._defer(value, wait, name))


Handler: TypeAlias = "Callable[[EffectBase, HandlerContext], Advance | Deferred]"


class HandlerRegistry:
    """Maps effect types to handlers; subclasses inherit their base's handler."""

    def __init__(self, handlers: Mapping[type, Handler] | None = None) -> None:
        self._handlers: dict[type, Handler] = dict(handlers or {})

    def register(self, effect_type: type, handler: Handler) -> None:
        self._handlers[effect_type] = handler

    def lookup(self, effect_type: type) -> Handler | None:
        for klass in effect_type.__mro__:
            handler = self._handlers.get(klass)
            if handler is not None:
                return handler
        return None

    def __contains__(self, effect_type: object) -> bool:
        return isinstance(effect_type, type) and self.lookup(effect_type) is not None


# ============================================
# Call planning
# ============================================


@dataclass(frozen=True)
class CallPlan:
    """How a call or fork produces its value, and at which tier.

    ``invoke`` runs the real function; otherwise ``error`` is raised if set,
    else ``output`` is returned.
    """

    invoke: bool = True
    output: Any = None
    error: BaseException | None = None
    wait: Wait = False

    def produce(self, effect: CallEffect | ForkEffect) -> Any:
        if self.error is not None:
            raise self.error
        if self.invoke:
            return effect.invoke()
        return self.output


class CallPlanner(Protocol):
    def __call__(self, effect: CallEffect | ForkEffect, *, forked: bool) -> CallPlan: ...


def run_for_real(effect: CallEffect | ForkEffect, *, forked: bool) -> CallPlan:
    return CallPlan()


__all__ = [
    "CallPlan",
    "CallPlanner",
    "Handler",
    "HandlerContext",
    "HandlerRegistry",
    "run_for_real",
]
