"""Deterministic scheduler for generator-based tasks."""

from .contracts import CallPlan, CallPlanner, Handler, HandlerContext, HandlerRegistry, run_for_real
from .debug import DumpEntry, TaskDump, render_dump
from .guard import DEFAULT_STEP_LIMIT, DeadlockGuard
from .priority import compare_waits, is_now, priority_key, select_ready_batch, sort_by_priority
from .registry import TaskRegistry
from .scheduler import TaskScheduler
from .task import ROOT_ID, Coroutine, Task, TaskMarker
from .types import (
    Advance,
    Block,
    Completed,
    Deferred,
    Done,
    Enter,
    Failed,
    Interruption,
    InterruptionKind,
    Suspended,
    Wait,
    WaitTier,
)

__all__ = [
    "DEFAULT_STEP_LIMIT",
    "ROOT_ID",
    "Advance",
    "Block",
    "CallPlan",
    "CallPlanner",
    "Completed",
    "Coroutine",
    "DeadlockGuard",
    "Deferred",
    "Done",
    "DumpEntry",
    "Enter",
    "Failed",
    "Handler",
    "HandlerContext",
    "HandlerRegistry",
    "Interruption",
    "InterruptionKind",
    "Suspended",
    "Task",
    "TaskDump",
    "TaskMarker",
    "TaskRegistry",
    "TaskScheduler",
    "Wait",
    "WaitTier",
    "compare_waits",
    "is_now",
    "priority_key",
    "render_dump",
    "run_for_real",
    "select_ready_batch",
    "sort_by_priority",
]
