"""Tests for the scheduler loop: forks, joins, composites, delays and failures.

Tick priorities are injected through a call planner keyed by the first
argument of the called or forked function.
"""

from dataclasses import dataclass

import pytest

from sagasim import (
    DeadlockError,
    EffectBase,
    HandlerRegistry,
    RunOptions,
    TaskScheduler,
    TestedCodeError,
    UnmatchedEffectError,
    call,
    cancelled,
    delay,
    fork,
    gather,
    join,
    race,
    spawn,
)
from sagasim.scheduler.contracts import CallPlan
from sagasim.scheduler.types import Advance, WaitTier


def tick_planner(waits):
    """Plan real calls whose tier comes from ``waits[first argument]``."""

    def plan(effect, *, forked):
        key = effect.args[0] if effect.args else None
        return CallPlan(wait=waits.get(key, False))

    return plan


def identity(value):
    return value


# ============================================================================
# Ordering
# ============================================================================


class TestTickOrdering:
    def test_join_list_resumes_in_join_order(self) -> None:
        """Tasks with ticks 50, 60, 70 joined as a list resume in list order."""
        finished = []

        def worker(n):
            finished.append(n)
            return n * 2

        def saga():
            tasks = []
            for n in (70, 50, 60):
                tasks.append((yield fork(worker, n)))
            return (yield join(tasks))

        scheduler = TaskScheduler(planner=tick_planner({50: 50, 60: 60, 70: 70}))
        assert scheduler.run(saga) == [140, 100, 120]
        assert finished == [50, 60, 70]

    def test_same_tick_runs_in_registration_order(self) -> None:
        finished = []

        def worker(name):
            finished.append(name)

        def saga():
            a = yield fork(worker, "a")
            b = yield fork(worker, "b")
            c = yield fork(worker, "c")
            yield join([a, b, c])

        TaskScheduler(planner=tick_planner({"a": 10, "b": 10, "c": 5})).run(saga)
        assert finished == ["c", "a", "b"]

    def test_true_tier_runs_last(self) -> None:
        finished = []

        def worker(name):
            finished.append(name)

        def saga():
            tasks = []
            for name in ("last", "late", "early"):
                tasks.append((yield fork(worker, name)))
            yield join(tasks)

        TaskScheduler(planner=tick_planner({"last": True, "late": 500, "early": 1})).run(saga)
        assert finished == ["early", "late", "last"]

    def test_delays_order_by_ticks(self) -> None:
        order = []

        def sleeper(ticks):
            yield delay(ticks)
            order.append(ticks)

        def saga():
            tasks = []
            for ticks in (30, 10, 20):
                tasks.append((yield fork(sleeper, ticks)))
            yield join(tasks)

        TaskScheduler().run(saga)
        assert order == [10, 20, 30]


# ============================================================================
# Calls and forks
# ============================================================================


class TestCallsAndForks:
    def test_inline_generator_call_runs_as_a_frame(self) -> None:
        def double(x):
            yield delay(1)
            return x * 2

        def saga():
            a = yield call(double, 2)
            b = yield double(5)
            c = yield from double(7)
            return a, b, c

        scheduler = TaskScheduler()
        assert scheduler.run(saga) == (4, 10, 14)
        assert scheduler.root.is_done

    def test_plain_function_call(self) -> None:
        def saga():
            return (yield call(identity, "x"))

        assert TaskScheduler().run(saga) == "x"

    def test_deferred_call_blocks_the_caller(self) -> None:
        order = []

        def record(name):
            order.append(name)
            return name

        def saga():
            yield fork(record, "forked")
            value = yield call(record, "called")
            order.append("resumed")
            return value

        scheduler = TaskScheduler(planner=tick_planner({"forked": 5, "called": 10}))
        assert scheduler.run(saga) == "called"
        assert order == ["forked", "called", "resumed"]

    def test_eager_fork_runs_until_it_blocks(self) -> None:
        order = []

        def worker():
            order.append("worker start")
            yield delay(1)
            order.append("worker end")

        def saga():
            task = yield fork(worker)
            order.append("after fork")
            yield join(task)

        TaskScheduler().run(saga)
        assert order == ["worker start", "after fork", "worker end"]

    def test_fork_returns_a_marker(self) -> None:
        def worker():
            return "w"
            yield

        def saga():
            task = yield fork(worker)
            return task

        marker = TaskScheduler().run(saga)
        assert marker.name == "worker"
        assert marker.is_done

    def test_parent_waits_for_children(self) -> None:
        order = []

        def worker():
            yield delay(10)
            order.append("child done")

        def saga():
            yield fork(worker)
            order.append("parent returned")
            return "result"

        scheduler = TaskScheduler()
        assert scheduler.run(saga) == "result"
        assert order == ["parent returned", "child done"]

    def test_spawned_tasks_are_not_awaited_by_default(self) -> None:
        order = []

        def worker():
            yield delay(10)
            order.append("spawned done")

        def saga():
            yield spawn(worker)
            return "result"

        assert TaskScheduler().run(saga) == "result"
        assert order == []

    def test_wait_for_spawned(self) -> None:
        order = []

        def worker():
            yield delay(10)
            order.append("spawned done")

        def saga():
            yield spawn(worker)
            return "result"

        scheduler = TaskScheduler(options=RunOptions(wait_for_spawned=True))
        assert scheduler.run(saga) == "result"
        assert order == ["spawned done"]
        assert not scheduler.registry.has_pending()


# ============================================================================
# Composites
# ============================================================================


class TestRaceAndAll:
    def test_race_resolves_with_lowest_tick_and_cancels_loser(self) -> None:
        flags = {}

        def fetch(name):
            flags[name] = yield cancelled()
            return f"{name}-result"

        def saga():
            return (yield race({"slow": call(fetch, "slow"), "fast": call(fetch, "fast")}))

        scheduler = TaskScheduler(planner=tick_planner({"slow": 20, "fast": 10}))
        assert scheduler.run(saga) == {"slow": None, "fast": "fast-result"}
        assert flags == {"fast": False, "slow": True}

    def test_race_with_an_immediate_member(self) -> None:
        def saga():
            return (yield race([call(identity, "now"), delay(10)]))

        assert TaskScheduler().run(saga) == ["now", None]

    def test_race_of_delay_and_join(self) -> None:
        def slow():
            yield delay(50)
            return "slow"

        def fast():
            yield delay(5)
            return "fast"

        def saga():
            s = yield fork(slow)
            f = yield fork(fast)
            first = yield race([delay(10), join(s)])
            second = yield race([join(f), delay(20)])
            return first, second

        assert TaskScheduler().run(saga) == ([None, None], ["fast", None])

    def test_all_collects_in_member_order(self) -> None:
        def saga():
            return (yield gather(call(identity, "a"), call(identity, "b"), call(identity, "c")))

        scheduler = TaskScheduler(planner=tick_planner({"a": 30, "b": 10}))
        assert scheduler.run(saga) == ["a", "b", "c"]

    def test_keyed_all_with_generator_members(self) -> None:
        def wait_then(value, ticks):
            yield delay(ticks)
            return value

        def saga():
            return (yield gather({"x": wait_then("x", 20), "y": wait_then("y", 10)}))

        assert TaskScheduler().run(saga) == {"x": "x", "y": "y"}

    def test_placeholders_are_registered_in_member_order(self) -> None:
        def saga():
            yield gather([delay(3), delay(1), delay(2)])

        scheduler = TaskScheduler()
        scheduler.run(saga)
        names = [scheduler.registry.get(i).name for i in range(1, len(scheduler.registry))]
        assert names[:3] == ["all[0]", "delay", "all[1]"]
        placeholders = [n for n in names if n.startswith("all[")]
        assert placeholders == ["all[0]", "all[1]", "all[2]"]

    def test_nested_composites(self) -> None:
        def saga():
            return (yield gather([race([delay(5), call(identity, "late")]), call(identity, "b")]))

        scheduler = TaskScheduler(planner=tick_planner({"late": 1}))
        assert scheduler.run(saga) == [[None, "late"], "b"]


# ============================================================================
# Failures
# ============================================================================


class TestFailures:
    def test_uncaught_error_raises_tested_code_error(self) -> None:
        def saga():
            yield delay(1)
            raise ValueError("boom")

        with pytest.raises(TestedCodeError) as info:
            TaskScheduler().run(saga)
        assert isinstance(info.value.original, ValueError)
        assert info.value.task_id == 0
        assert info.value.__cause__ is info.value.original

    def test_raising_call_is_thrown_at_the_call_site(self) -> None:
        def broken():
            raise KeyError("missing")

        def saga():
            try:
                yield call(broken)
            except KeyError:
                return "handled"

        assert TaskScheduler().run(saga) == "handled"

    def test_deferred_raising_call_is_thrown_at_the_call_site(self) -> None:
        def broken(_):
            raise KeyError("missing")

        def saga():
            try:
                yield call(broken, "later")
            except KeyError:
                return "handled"

        assert TaskScheduler(planner=tick_planner({"later": 10})).run(saga) == "handled"

    def test_eager_fork_failure_is_raised_at_the_fork(self) -> None:
        def boom():
            raise ValueError("eager")
            yield

        def saga():
            try:
                yield fork(boom)
            except ValueError as exc:
                return f"caught {exc}"

        assert TaskScheduler().run(saga) == "caught eager"

    def test_child_failure_reaches_blocked_parent_and_cancels_siblings(self) -> None:
        flags = {}

        def failing():
            yield delay(5)
            raise ValueError("boom")

        def sibling():
            yield delay(10)
            flags["sibling"] = yield cancelled()

        def saga():
            yield fork(sibling)
            task = yield fork(failing)
            try:
                yield join(task)
            except ValueError as exc:
                return ("caught", str(exc))

        assert TaskScheduler().run(saga) == ("caught", "boom")
        assert flags == {"sibling": True}

    def test_joining_a_failed_task_yields_the_error(self) -> None:
        def failing():
            yield delay(1)
            raise ValueError("spawned")

        def saga():
            task = yield spawn(failing)
            yield delay(5)
            return (yield join(task))

        scheduler = TaskScheduler(options=RunOptions(swallow_spawn_errors=True))
        result = scheduler.run(saga)
        assert isinstance(result, ValueError)
        assert str(result) == "spawned"

    def test_spawn_failure_is_fatal_by_default(self) -> None:
        def failing():
            yield delay(1)
            raise ValueError("spawned")

        def saga():
            yield spawn(failing)
            yield delay(5)

        with pytest.raises(TestedCodeError) as info:
            TaskScheduler().run(saga)
        assert info.value.task_name == "failing"

    def test_race_member_failure_is_raised_into_owner(self) -> None:
        def broken(_):
            raise RuntimeError("member")

        def saga():
            try:
                yield race([call(broken, "x"), delay(10)])
            except RuntimeError as exc:
                return str(exc)

        assert TaskScheduler(planner=tick_planner({"x": 1})).run(saga) == "member"

    def test_abandoned_call_failure_is_dropped(self) -> None:
        def worker_fails():
            yield delay(5)
            raise KeyError("worker")

        def slow_call(_):
            raise ValueError("late abandoned call")

        def saga():
            log = []
            yield fork(worker_fails)
            try:
                yield call(slow_call, "slow")
            except KeyError:
                log.append("worker error caught at call")
            try:
                yield delay(100)
                log.append("delay finished")
            except ValueError as exc:
                log.append(f"raised into delay: {exc}")
            return log

        scheduler = TaskScheduler(planner=tick_planner({"slow": 20}))
        assert scheduler.run(saga) == ["worker error caught at call", "delay finished"]
        tasks = [scheduler.registry.get(i) for i in range(len(scheduler.registry))]
        (slow,) = [task for task in tasks if task.name == "slow_call"]
        assert slow.abandoned
        assert isinstance(slow.error, ValueError)

    def test_harness_errors_are_not_thrown_into_tested_code(self) -> None:
        def saga():
            try:
                yield "not an effect"
            except Exception:
                return "swallowed"

        with pytest.raises(UnmatchedEffectError):
            TaskScheduler().run(saga)


# ============================================================================
# Deadlocks and the step ceiling
# ============================================================================


class TestDeadlockGuard:
    def test_cyclic_join_is_a_deadlock(self) -> None:
        markers = {}

        def a():
            yield delay(1)
            return (yield join(markers["b"]))

        def b():
            yield delay(1)
            return (yield join(markers["a"]))

        def saga():
            markers["a"] = yield fork(a)
            markers["b"] = yield fork(b)
            return (yield join([markers["a"], markers["b"]]))

        with pytest.raises(DeadlockError) as info:
            TaskScheduler().run(saga)
        error = info.value
        assert error.reason == "deadlock"
        assert error.step < RunOptions().step_limit
        assert {entry.name for entry in error.dump.entries} == {"saga", "a", "b"}
        assert "3 tasks did not finish" in str(error)

    def test_step_limit(self) -> None:
        def saga():
            while True:
                yield cancelled()

        with pytest.raises(DeadlockError) as info:
            TaskScheduler(options=RunOptions(step_limit=50)).run(saga)
        assert info.value.reason == "step-limit"
        assert info.value.step == 51

    def test_scheduler_is_single_use(self) -> None:
        def saga():
            return 1
            yield

        scheduler = TaskScheduler()
        scheduler.run(saga)
        with pytest.raises(Exception, match="single saga"):
            scheduler.run(saga)


# ============================================================================
# External effects
# ============================================================================


@dataclass(frozen=True)
class Ask(EffectBase):
    key: str


class TestExternalEffects:
    def test_registered_handler_answers(self) -> None:
        handlers = HandlerRegistry({Ask: lambda effect, ctx: Advance(effect.key.upper())})

        def saga():
            return (yield Ask("hello"))

        assert TaskScheduler(handlers=handlers).run(saga) == "HELLO"

    def test_deferred_handler_blocks_until_its_task_runs(self) -> None:
        def handler(effect, ctx):
            return ctx.defer(f"late {effect.key}", wait=15, name="ask")

        order = []

        def other():
            yield delay(10)
            order.append("other")

        def saga():
            yield fork(other)
            value = yield Ask("x")
            order.append(value)

        TaskScheduler(handlers=HandlerRegistry({Ask: handler})).run(saga)
        assert order == ["other", "late x"]

    def test_unhandled_effect(self) -> None:
        def saga():
            yield Ask("x")

        with pytest.raises(UnmatchedEffectError, match="No handler registered for Ask"):
            TaskScheduler().run(saga)

    def test_children_tier_is_visible_while_waiting(self) -> None:
        seen = {}

        def worker(parent_marker):
            yield delay(1)
            seen["wait"] = parent_marker.wait

        def saga():
            yield fork(worker, (yield Ask("me")))

        def handler(effect, ctx):
            return Advance(ctx.task.marker())

        TaskScheduler(handlers=HandlerRegistry({Ask: handler})).run(saga)
        assert seen["wait"] is WaitTier.CHILDREN
