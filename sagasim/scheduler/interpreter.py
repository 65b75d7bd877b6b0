"""Single-step interpretation of yielded effects.

``step`` maps (task, effect) to ``Advance``, ``Block`` or ``Enter``. Core
kinds are interpreted here; ``EXTERNAL`` effects go to the handler
registered for their type.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from functools import partial
from typing import TYPE_CHECKING, Any

from sagasim.effects.base import EffectBase, EffectKind
from sagasim.errors import SagaTesterError, UnmatchedEffectError
from sagasim.scheduler.cancellation import cancel_all, cancel_tree
from sagasim.scheduler.contracts import HandlerContext
from sagasim.scheduler.resolver import map_pending, pending_slots, settle_finished, unwrap, waiting_on
from sagasim.scheduler.task import Coroutine, Task
from sagasim.scheduler.types import (
    Advance,
    Block,
    Deferred,
    Enter,
    Interruption,
    InterruptionKind,
    StepOutcome,
    Wait,
    WaitTier,
)

if TYPE_CHECKING:
    from sagasim.effects.call import CallEffect
    from sagasim.effects.gather import CompositeEffect
    from sagasim.effects.spawn import CancelEffect, ForkEffect, JoinEffect
    from sagasim.effects.time import DelayEffect
    from sagasim.scheduler.scheduler import TaskScheduler

logger = logging.getLogger(__name__)


def _marker_shape(targets: Any) -> Any:
    if isinstance(targets, Mapping):
        return dict(targets)
    if isinstance(targets, (list, tuple)):
        return list(targets)
    return targets


class EffectInterpreter:
    def __init__(self, scheduler: TaskScheduler) -> None:
        self._scheduler = scheduler
        self._registry = scheduler.registry

    def step(self, task: Task, effect: Any, *, in_composite: bool = False) -> StepOutcome:
        self._scheduler.guard.tick()
        if inspect.isgenerator(effect):
            return Enter(effect)
        if not isinstance(effect, EffectBase):
            raise UnmatchedEffectError(
                f"Task {task.name} yielded {effect!r}, which is not an effect",
                effect=effect,
                step=self._scheduler.guard.steps,
            )

        match effect.kind:
            case EffectKind.INLINE_CALL:
                return self._call(task, effect)
            case EffectKind.RUN_CONCURRENTLY:
                return self._fork(task, effect)
            case EffectKind.JOIN:
                return self._join(effect)
            case EffectKind.RACE | EffectKind.ALL:
                return self._composite(task, effect)
            case EffectKind.CANCEL:
                return self._cancel(task, effect)
            case EffectKind.IS_CANCELLED:
                return Advance(self._registry.coroutine_owner(task).is_cancelled)
            case EffectKind.DELAY:
                return self._delay(task, effect)
            case _:
                return self._external(task, effect, in_composite)

    # ============================================
    # Core kinds
    # ============================================

    def _wait_on(self, child: Task) -> Block:
        return Block(Interruption(InterruptionKind.GENERATOR, pending=child, dependencies=(child.id,)))

    def _call(self, task: Task, effect: CallEffect) -> StepOutcome:
        plan = self._scheduler.planner(effect, forked=False)
        if plan.wait is False:
            value = plan.produce(effect)
            return Enter(value) if inspect.isgenerator(value) else Advance(value)
        child = self._registry.create(
            effect.name, wait=plan.wait, parent=task, entry=partial(plan.produce, effect)
        )
        return self._wait_on(child)

    def _fork(self, task: Task, effect: ForkEffect) -> Advance:
        plan = self._scheduler.planner(effect, forked=True)
        parent = None if effect.detached else self._registry.coroutine_owner(task)
        child = self._registry.create(
            effect.name,
            wait=plan.wait,
            parent=parent,
            detached=effect.detached,
            entry=partial(plan.produce, effect),
        )
        if plan.wait is False:
            self._scheduler.start(child)
            if child.error is not None and not child.detached:
                raise child.error
        return Advance(child.marker())

    def _join(self, effect: JoinEffect) -> StepOutcome:
        pending = map_pending(_marker_shape(effect.targets), lambda marker: self._registry.get(marker.id))
        pending = settle_finished(pending)
        remaining = waiting_on(pending)
        if not remaining:
            return Advance(unwrap(pending))
        return Block(
            Interruption(InterruptionKind.JOIN, pending=pending, dependencies=tuple(t.id for t in remaining))
        )

    def _cancel(self, task: Task, effect: CancelEffect) -> Advance:
        if effect.targets is None:
            targets = [self._registry.coroutine_owner(task)]
        else:
            targets = [self._registry.get(marker.id) for marker in pending_slots(_marker_shape(effect.targets))]
        cancel_all(targets)
        return Advance(None)

    def _delay(self, task: Task, effect: DelayEffect) -> Block:
        child = self._registry.create("delay", wait=effect.ticks, parent=task)
        return self._wait_on(child)

    # ============================================
    # Composites
    # ============================================

    def _composite(self, task: Task, effect: CompositeEffect) -> StepOutcome:
        is_race = effect.kind is EffectKind.RACE
        tier = WaitTier.RACE if is_race else WaitTier.ALL
        placeholders = {}
        for key, member in effect.items():
            placeholder = self._registry.create(f"{effect.kind.value}[{key}]", wait=tier, parent=task)
            placeholders[key] = placeholder
            self._run_member(placeholder, member)

        for placeholder in placeholders.values():
            if placeholder.error is not None:
                raise placeholder.error

        shape = placeholders if effect.is_keyed else list(placeholders.values())
        pending = settle_finished(shape)
        remaining = waiting_on(pending)
        if is_race and len(remaining) < len(placeholders):
            for loser in remaining:
                cancel_tree(loser)
                loser.abandoned = True
            return Advance(unwrap(pending))
        if not remaining:
            return Advance(unwrap(pending))
        kind = InterruptionKind.RACE if is_race else InterruptionKind.ALL
        return Block(Interruption(kind, pending=pending, dependencies=tuple(t.id for t in remaining)))

    def _run_member(self, placeholder: Task, member: Any) -> None:
        scheduler = self._scheduler
        # Running while its member is interpreted, so failures of eager
        # children surface here instead of propagating.
        placeholder.is_running = True
        try:
            outcome = self.step(placeholder, member, in_composite=True)
        except SagaTesterError:
            raise
        except Exception as exc:
            placeholder.is_running = False
            scheduler.fail(placeholder, exc)
            return
        placeholder.is_running = False
        match outcome:
            case Advance(value=value):
                scheduler.complete(placeholder, value)
            case Enter(generator=generator):
                placeholder.coroutine = Coroutine(generator)
                scheduler.drive(placeholder)
            case Block(interruption=interruption):
                scheduler.suspend(placeholder, interruption)

    # ============================================
    # External effects
    # ============================================

    def _defer(self, task: Task, value: Any, wait: Wait, name: str | None) -> Task:
        return self._registry.create(name or "deferred", wait=wait, parent=task, entry=lambda: value)

    def _external(self, task: Task, effect: EffectBase, in_composite: bool) -> StepOutcome:
        handler = self._scheduler.handlers.lookup(type(effect))
        if handler is None:
            raise UnmatchedEffectError(
                f"No handler registered for {type(effect).__name__}",
                effect=effect,
                step=self._scheduler.guard.steps,
            )
        ctx = HandlerContext(
            task=task,
            in_composite=in_composite,
            step=self._scheduler.guard.steps,
            _defer=partial(self._defer, task),
        )
        match handler(effect, ctx):
            case Advance() as outcome:
                return outcome
            case Deferred(task=deferred):
                return self._wait_on(deferred)
            case other:
                raise SagaTesterError(f"Handler for {type(effect).__name__} returned {other!r}")


__all__ = ["EffectInterpreter"]
