"""
sagasim - deterministic scheduler and test harness for generator sagas.

Tested code is written as generator functions yielding effect descriptors
(``call``, ``fork``, ``join``, ``race``, ``take``, ...). The scheduler runs
them single-threaded in a fully repeatable order; ``SagaTester`` adds mocked
calls, state and actions on top.
"""

from sagasim.config import DebugOptions, RunOptions
from sagasim.effects import (
    AllEffect,
    CallEffect,
    CancelEffect,
    CancelledEffect,
    DelayEffect,
    EffectBase,
    EffectKind,
    ForkEffect,
    JoinEffect,
    PutEffect,
    RaceEffect,
    SelectEffect,
    TakeEffect,
    WatchEffect,
    call,
    cancel,
    cancelled,
    debounce,
    delay,
    fork,
    gather,
    join,
    put,
    race,
    select,
    spawn,
    take,
    take_every,
    take_latest,
    take_leading,
    throttle,
)
from sagasim.errors import (
    ConfigurationError,
    DeadlockError,
    SagaTesterError,
    TestedCodeError,
    UnmatchedEffectError,
)
from sagasim.handlers import ANY, TASK, HandlerContext, HandlerRegistry, matching, of_type
from sagasim.mocks import mock_generator, mock_selector
from sagasim.scheduler import Advance, TaskMarker, TaskScheduler, WaitTier
from sagasim.tester import SagaTester

__version__ = "0.1.0"

__all__ = [
    "ANY",
    "TASK",
    "Advance",
    "AllEffect",
    "CallEffect",
    "CancelEffect",
    "CancelledEffect",
    "ConfigurationError",
    "DeadlockError",
    "DebugOptions",
    "DelayEffect",
    "EffectBase",
    "EffectKind",
    "ForkEffect",
    "HandlerContext",
    "HandlerRegistry",
    "JoinEffect",
    "PutEffect",
    "RaceEffect",
    "RunOptions",
    "SagaTester",
    "SagaTesterError",
    "SelectEffect",
    "TakeEffect",
    "TaskMarker",
    "TaskScheduler",
    "TestedCodeError",
    "UnmatchedEffectError",
    "WaitTier",
    "WatchEffect",
    "call",
    "cancel",
    "cancelled",
    "debounce",
    "delay",
    "fork",
    "gather",
    "join",
    "matching",
    "mock_generator",
    "mock_selector",
    "of_type",
    "put",
    "race",
    "select",
    "spawn",
    "take",
    "take_every",
    "take_latest",
    "take_leading",
    "throttle",
]
