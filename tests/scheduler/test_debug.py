"""Tests for task dumps, fixed-width rendering and the debug tracer."""

import pytest
from loguru import logger

from sagasim import DeadlockError, RunOptions, TaskScheduler, delay, fork, join
from sagasim.config import DebugOptions
from sagasim.scheduler.debug import (
    build_dump,
    render_dump,
    render_wait,
    should_apply,
    task_header,
)
from sagasim.scheduler.registry import TaskRegistry
from sagasim.scheduler.task import Task
from sagasim.scheduler.types import Completed, Interruption, InterruptionKind, WaitTier


@pytest.fixture
def messages():
    collected = []
    handler_id = logger.add(collected.append, format="{message}")
    yield collected
    logger.remove(handler_id)


class TestHeaders:
    def test_short_names_are_padded(self) -> None:
        header = task_header(Task(id=3, name="worker", wait=10))
        assert header == "worker".ljust(20) + "id: 3  wait: 10".ljust(22)
        assert len(header) == 42

    def test_long_names_are_kept_whole(self) -> None:
        name = "a_rather_long_task_name_indeed"
        header = task_header(Task(id=12, name=name, wait=False))
        assert header.startswith(f"{name}id: 12 wait: false")

    def test_wait_rendering(self) -> None:
        assert render_wait(False) == "false"
        assert render_wait(True) == "true"
        assert render_wait(40) == "40"
        assert render_wait(WaitTier.CHILDREN) == "children-wait"


class TestDump:
    def test_dump_lists_pending_tasks_and_dependencies(self) -> None:
        registry = TaskRegistry()
        root = registry.create("root")
        child = registry.create("child", wait=30, parent=root)
        root.block(
            Interruption(
                InterruptionKind.ALL,
                pending=[Completed(1), child],
                dependencies=(child.id,),
            )
        )

        dump = build_dump(registry, "Deadlock: ")
        assert dump.ids == [0, 1]
        assert dump.entries[0].dependencies == (1,)
        assert dump.entries[1].dependencies == ()

        text = render_dump(dump)
        lines = text.splitlines()
        assert lines[0] == "Deadlock: 2 tasks did not finish. Remaining tasks:"
        assert "Dependencies: [1] Partially resolved value:" in text
        assert "Resolved (1)" in text
        assert "TASK child" in text

    def test_children_wait_lists_pending_children(self) -> None:
        registry = TaskRegistry()
        parent = registry.create("parent")
        a = registry.create("a", parent=parent)
        b = registry.create("b", parent=parent)
        parent.block(Interruption(InterruptionKind.CHILDREN, pending=None, dependencies=(a.id, b.id)))

        entry = build_dump(registry, "").entries[0]
        assert entry.dependencies == (1, 2)
        assert entry.partial_value is None

    def test_deadlock_error_message(self) -> None:
        def waiter(markers):
            yield delay(1)
            yield join(markers["self"])

        def saga():
            markers = {}
            markers["self"] = yield fork(waiter, markers)
            yield join(markers["self"])

        with pytest.raises(DeadlockError) as info:
            TaskScheduler().run(saga)
        message = str(info.value)
        assert message.startswith("Deadlock: 2 tasks did not finish.")
        assert "waiter" in message


class TestShouldApply:
    def test_selectors(self) -> None:
        tasks = [Task(id=4, name="fetch"), Task(id=5, name="save")]
        assert should_apply(tasks, True)
        assert not should_apply(tasks, False)
        assert not should_apply(tasks, None)
        assert should_apply(tasks, 4)
        assert should_apply(tasks, "save")
        assert should_apply(tasks, [9, "fetch"])
        assert not should_apply(tasks, [9, "other"])


class TestTracer:
    def test_tracer_is_silent_by_default(self, messages) -> None:
        def saga():
            yield delay(1)

        TaskScheduler().run(saga)
        assert not any("UNBLOCKING" in m for m in messages)

    def test_enabled_blocks_are_logged(self, messages) -> None:
        def saga():
            yield delay(1)

        options = RunOptions(debug=DebugOptions(unblock=True, bubble=True, interrupt=True))
        TaskScheduler(options=options).run(saga)
        text = "".join(messages)
        assert "-- UNBLOCKING:" in text
        assert "-- TASKS TO BUBBLE:" in text
        assert "-- INTERRUPT:" in text
        assert "kind: generator dependencies: [1]" in text

    def test_selection_by_name(self, messages) -> None:
        def worker():
            yield delay(5)

        def saga():
            yield join((yield fork(worker)))

        options = RunOptions(debug={"interrupt": "worker"})
        TaskScheduler(options=options).run(saga)
        interrupts = [m for m in messages if "-- INTERRUPT:" in m]
        assert len(interrupts) == 1
        assert interrupts[0].splitlines()[1].startswith("worker")
