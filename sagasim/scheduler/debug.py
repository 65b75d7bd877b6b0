"""
Diagnostics for the scheduler.

This module contains:
- DumpEntry / TaskDump: the snapshot carried by ``DeadlockError``
- render_dump / render_task_tree: fixed-width text renderings of tasks
- Tracer: opt-in trace of unblocking, bubbling and interrupts via loguru
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from sagasim.scheduler.task import Task
from sagasim.scheduler.types import Completed, WaitTier

if TYPE_CHECKING:
    from sagasim.config import DebugOptions, DebugSelector
    from sagasim.scheduler.registry import TaskRegistry

trace_logger = logger.bind(component="sagasim")

_NAME_WIDTH = 20
_HEADER_WIDTH = 42


# ============================================
# Dump payload
# ============================================


@dataclass(frozen=True)
class DumpEntry:
    id: int
    name: str
    wait: Any
    dependencies: tuple[int, ...]
    partial_value: str | None = None


@dataclass(frozen=True)
class TaskDump:
    header: str
    entries: tuple[DumpEntry, ...]

    @property
    def ids(self) -> list[int]:
        return [entry.id for entry in self.entries]


def task_dependencies(task: Task, pending: Sequence[Task]) -> tuple[int, ...]:
    """Ids a pending task is waiting on."""
    if task.wait is WaitTier.CHILDREN:
        return tuple(p.id for p in pending if p.parent_id == task.id)
    if task.interruption is not None:
        return tuple(task.interruption.dependencies)
    return ()


def build_dump(registry: TaskRegistry, header: str) -> TaskDump:
    pending = registry.pending()
    entries = tuple(
        DumpEntry(
            id=task.id,
            name=task.name,
            wait=task.wait,
            dependencies=task_dependencies(task, pending),
            partial_value=_partial_value(task),
        )
        for task in pending
    )
    return TaskDump(header=header, entries=entries)


# ============================================
# Rendering
# ============================================


def render_wait(wait: Any) -> str:
    if isinstance(wait, bool):
        return str(wait).lower()
    return str(wait)


def _header(task_id: int, name: str, wait: Any) -> str:
    prefix = name if len(name) >= _NAME_WIDTH else name.ljust(_NAME_WIDTH)
    main = f"{prefix}id: {str(task_id).ljust(2)} wait: {render_wait(wait)}"
    return main.ljust(_HEADER_WIDTH)


def task_header(task: Task) -> str:
    return _header(task.id, task.name, task.wait)


def _render_pending(value: Any, level: int = 0) -> tuple[bool, str]:
    """Render a pending structure; the flag says whether all of it is resolved."""
    if isinstance(value, Task):
        return False, f"TASK {task_header(value)}"
    if isinstance(value, Completed):
        return True, f"Resolved ({value.value!r})"
    if level > 1 or not isinstance(value, (list, tuple, Mapping)):
        return True, repr(value)
    keyed = isinstance(value, Mapping)
    items = value.items() if keyed else enumerate(value)
    resolved = True
    lines = []
    indent = " " * ((level + 1) * 2)
    for key, item in items:
        item_resolved, text = _render_pending(item, level + 1)
        resolved = resolved and item_resolved
        lines.append(f"{indent}{key}: {text}" if keyed else f"{indent}{text}")
    opening, closing = ("{", "}") if keyed else ("[", "]")
    body = ",\n".join(lines)
    return resolved, f"{opening}\n{body}\n{' ' * (level * 2)}{closing}"


def _partial_value(task: Task) -> str | None:
    interruption = task.interruption
    if interruption is None or interruption.resolved:
        return None
    if not isinstance(interruption.pending, (list, tuple, Mapping)):
        return None
    resolved, text = _render_pending(interruption.pending)
    return None if resolved else text


def render_dump(dump: TaskDump) -> str:
    lines = [f"{dump.header}{len(dump.entries)} tasks did not finish. Remaining tasks:", ""]
    for entry in dump.entries:
        deps = ",".join(str(d) for d in entry.dependencies)
        line = f"{_header(entry.id, entry.name, entry.wait)} Dependencies: [{deps}]"
        if entry.partial_value is not None:
            line = f"{line} Partially resolved value:\n{entry.partial_value}"
        lines.append(line)
    return "\n".join(lines)


def render_task_tree(tasks: Sequence[Task]) -> str:
    return "\n".join(
        f"{task_header(t)} Dependencies: [{','.join(str(d) for d in task_dependencies(t, tasks))}]"
        for t in tasks
    )


def render_task(task: Task) -> str:
    value = ""
    if task.is_done:
        value = f"value: {task.result!r}"
    elif task.interruption is not None and task.interruption.resolved:
        value = f"value: {task.interruption.value!r}"
    return f"{task_header(task)}{value}"


def render_pending_tasks(tasks: Sequence[Task]) -> str:
    lines = []
    for task in tasks:
        children = ",".join(str(c.id) for c in task.children)
        header = f"{task_header(task)} Children: [{children}]"
        partial = _partial_value(task)
        lines.append(f"{header} (pending)" if partial is None else f"{header} Partially resolved value:\n{partial}")
    return "\n".join(lines)


# ============================================
# Debug tracer
# ============================================


def should_apply(tasks: Iterable[Task], selector: DebugSelector) -> bool:
    """Whether a debug option selects any of ``tasks`` (by id or name)."""
    if selector is None or selector is False:
        return False
    if selector is True:
        return True
    keys: set[Any] = set()
    for task in tasks:
        keys.add(task.id)
        keys.add(task.name)
    wanted = selector if isinstance(selector, (list, tuple)) else [selector]
    return any(not isinstance(w, bool) and w in keys for w in wanted)


class Tracer:
    """Emits the debug blocks requested through ``DebugOptions``."""

    def __init__(self, options: DebugOptions) -> None:
        self._options = options

    @property
    def enabled(self) -> bool:
        return self._options.enabled

    def unblocking(self, batch: Sequence[Task], registry: TaskRegistry) -> None:
        if not should_apply(batch, self._options.unblock):
            return
        running = "\n".join(render_task(t) for t in batch)
        tree = render_task_tree(registry.pending())
        trace_logger.info("-- UNBLOCKING:\n{}\n-- TREE:\n{}\n", running, tree)

    def bubbling(self, finished: Sequence[Task], registry: TaskRegistry) -> None:
        if not should_apply(finished, self._options.bubble):
            return
        bubbled = "\n".join(render_task(t) for t in finished)
        tree = render_pending_tasks(registry.pending())
        trace_logger.info("-- TASKS TO BUBBLE:\n{}\n-- TREE:\n{}\n", bubbled, tree)

    def interrupt(self, task: Task, registry: TaskRegistry) -> None:
        if not should_apply([task], self._options.interrupt):
            return
        kind = task.interruption.kind.value if task.interruption is not None else None
        deps = ",".join(str(d) for d in task_dependencies(task, registry.pending()))
        trace_logger.info("-- INTERRUPT:\n{} kind: {} dependencies: [{}]\n", task_header(task), kind, deps)


__all__ = [
    "DumpEntry",
    "TaskDump",
    "Tracer",
    "build_dump",
    "render_dump",
    "render_pending_tasks",
    "render_task",
    "render_task_tree",
    "render_wait",
    "should_apply",
    "task_dependencies",
    "task_header",
]
