"""The interrupt/resume loop.

The root task runs eagerly until it blocks. From then on every iteration
selects a ready batch, runs it, and bubbles whatever finished, until the
root task is finished (and, when asked, every spawned task too).
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from sagasim.config import RunOptions
from sagasim.effects.call import callable_name
from sagasim.errors import ConfigurationError, SagaTesterError, TestedCodeError
from sagasim.scheduler.cancellation import cancel_all, cancel_tree
from sagasim.scheduler.contracts import CallPlanner, HandlerRegistry, run_for_real
from sagasim.scheduler.debug import Tracer, trace_logger
from sagasim.scheduler.guard import DeadlockGuard
from sagasim.scheduler.interpreter import EffectInterpreter
from sagasim.scheduler.priority import select_ready_batch
from sagasim.scheduler.registry import TaskRegistry
from sagasim.scheduler.resolver import DependencyResolver, waiting_on
from sagasim.scheduler.task import Coroutine, Task
from sagasim.scheduler.types import (
    Advance,
    Block,
    Done,
    Enter,
    Failed,
    Interruption,
    InterruptionKind,
    Suspended,
)

logger = logging.getLogger(__name__)


class TaskScheduler:
    """Runs one saga to completion.

    A scheduler holds all the state of a single run (registry, step counter,
    reap buffer) and cannot be reused.
    """

    def __init__(
        self,
        *,
        planner: CallPlanner = run_for_real,
        handlers: HandlerRegistry | None = None,
        options: RunOptions | None = None,
    ) -> None:
        self.options = options or RunOptions()
        self.planner = planner
        self.handlers = handlers if handlers is not None else HandlerRegistry()
        self.registry = TaskRegistry()
        self.guard = DeadlockGuard(self.registry, self.options.step_limit)
        self.tracer = Tracer(self.options.debug)
        self.interpreter = EffectInterpreter(self)
        self.resolver = DependencyResolver(self)
        self.root: Task | None = None

    # ============================================
    # Entry point
    # ============================================

    def run(self, saga: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        if self.root is not None:
            raise SagaTesterError("A TaskScheduler runs a single saga; create a new one")
        generator = saga(*args, **kwargs)
        if not inspect.isgenerator(generator):
            raise ConfigurationError(f"{callable_name(saga)} must be a generator function")

        root = self.registry.create(callable_name(saga), coroutine=Coroutine(generator))
        self.root = root
        self.drive(root)
        self.resolver.bubble(self.registry.reap())

        while not self._settled():
            self.guard.tick()
            batch = select_ready_batch(self.registry.pending())
            if not batch:
                raise self.guard.deadlock()
            self.tracer.unblocking(batch, self.registry)
            for task in batch:
                if task.is_selectable:
                    self.run_task(task)
            self.resolver.bubble(self.registry.reap())

        logger.debug("run finished after %s steps", self.guard.steps)
        return root.result

    def _settled(self) -> bool:
        assert self.root is not None
        if not self.root.is_done:
            return False
        return not self.options.wait_for_spawned or not self.registry.has_pending()

    # ============================================
    # Running tasks
    # ============================================

    def run_task(self, task: Task) -> None:
        """Run a selected task: consume its resolved interruption or start it."""
        interruption = task.interruption
        if interruption is None:
            self.start(task)
            return
        value = task.consume()
        if interruption.kind is InterruptionKind.CHILDREN:
            match value:
                case Failed(error=error):
                    self._finalize(task, error)
                case Done(value=result):
                    self._finalize(task, result)
            return
        if task.coroutine is None:
            self.complete(task, value)
        else:
            self.drive(task, value)

    def start(self, task: Task) -> None:
        entry, task.entry = task.entry, None
        if entry is None:
            self.complete(task, task.result)
            return
        try:
            produced = entry()
        except SagaTesterError:
            raise
        except Exception as exc:
            self.fail(task, exc)
            return
        if inspect.isgenerator(produced):
            task.coroutine = Coroutine(produced)
            self.drive(task)
        else:
            self.complete(task, produced)

    def drive(self, task: Task, value: Any = None, error: BaseException | None = None) -> None:
        """Resume ``task`` (with ``value`` or by throwing ``error``) until it blocks or ends."""
        task.is_running = True
        try:
            outcome = self._advance(task, value, error)
        finally:
            task.is_running = False
        match outcome:
            case Done(value=result):
                self.complete(task, result)
            case Failed(error=exc):
                self.fail(task, exc)
            case Block(interruption=interruption):
                self.suspend(task, interruption)

    def _advance(self, task: Task, value: Any, error: BaseException | None) -> Done | Failed | Block:
        coroutine = task.coroutine
        assert coroutine is not None
        try:
            state = coroutine.throw_into(error) if error is not None else coroutine.resume(value)
            while True:
                match state:
                    case Done():
                        return state
                    case Suspended(effect=effect):
                        try:
                            outcome = self.interpreter.step(task, effect)
                        except SagaTesterError:
                            raise
                        except Exception as exc:
                            logger.debug("task %s: %r raised into its coroutine", task.id, exc)
                            state = coroutine.throw_into(exc)
                            continue
                        match outcome:
                            case Advance(value=result):
                                state = coroutine.resume(result)
                            case Enter(generator=generator):
                                state = coroutine.enter(generator)
                            case Block():
                                return outcome
        except SagaTesterError:
            raise
        except Exception as exc:
            return Failed(exc)

    # ============================================
    # Task transitions
    # ============================================

    def suspend(self, task: Task, interruption: Interruption) -> None:
        task.block(interruption)
        logger.debug("task %s blocked on %s %s", task.id, interruption.kind.value, interruption.dependencies)
        self.tracer.interrupt(task, self.registry)

    def _hold_for_children(self, task: Task, held: Done | Failed) -> bool:
        live = [child for child in task.children if not child.is_done]
        task.children = live
        if not live:
            return False
        task.coroutine = None
        self.suspend(
            task,
            Interruption(InterruptionKind.CHILDREN, pending=held, dependencies=tuple(c.id for c in live)),
        )
        return True

    def complete(self, task: Task, value: Any) -> None:
        """The computation of ``task`` returned; wait for its children, then finish."""
        if not self._hold_for_children(task, Done(value)):
            self._finalize(task, value)

    def _finalize(self, task: Task, result: Any) -> None:
        task.finish(result)
        self.registry.retire(task)
        logger.debug("task %s (%s) finished", task.id, task.name)

    def fail(self, task: Task, error: BaseException) -> None:
        """``error`` escaped ``task``: cancel what it owns and notify its parent."""
        if task.error is not None:
            return
        task.error = error
        logger.debug("task %s (%s) failed with %r", task.id, task.name, error)
        cancel_all(list(task.children))
        if not self._hold_for_children(task, Failed(error)):
            self._finalize(task, error)
        self._propagate(task, error)

    def _propagate(self, task: Task, error: BaseException) -> None:
        if task.parent_id is None:
            if task.detached and self.options.swallow_spawn_errors:
                trace_logger.warning(
                    "Swallowed error of spawned task {} (id {}): {!r}", task.name, task.id, error
                )
                return
            raise TestedCodeError(error, task_id=task.id, task_name=task.name, step=self.guard.steps) from error

        if task.abandoned:
            logger.debug("task %s was abandoned; dropping %r", task.id, error)
            return
        parent = self.registry.get(task.parent_id)
        if parent.is_running or parent.error is not None or parent.abandoned:
            return
        direct = self._abandon(parent, task)
        if parent.coroutine is None:
            self.fail(parent, error)
            return
        if not direct:
            cancel_all(list(parent.children))
        self.drive(parent, error=error)

    def _abandon(self, parent: Task, failed: Task) -> bool:
        """Drop the interruption of ``parent``; return whether it waited on ``failed`` directly."""
        interruption = parent.abandon()
        if interruption is None or interruption.kind is InterruptionKind.JOIN:
            return False
        if interruption.kind is InterruptionKind.CHILDREN:
            return False
        for other in waiting_on(interruption.pending):
            if other is not failed and other.parent_id == parent.id and not other.is_done:
                cancel_tree(other)
                other.abandoned = True
        return failed.id in interruption.dependencies


__all__ = ["TaskScheduler"]
