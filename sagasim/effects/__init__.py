"""Effect descriptors yielded by tested code."""

from .base import EffectBase, EffectKind
from .call import CallEffect, call
from .external import PutEffect, SelectEffect, TakeEffect, put, select, take
from .gather import AllEffect, CompositeEffect, RaceEffect, gather, race
from .spawn import (
    CancelEffect,
    CancelledEffect,
    ForkEffect,
    JoinEffect,
    cancel,
    cancelled,
    fork,
    join,
    spawn,
)
from .time import DelayEffect, delay
from .watch import WatchEffect, debounce, take_every, take_latest, take_leading, throttle

__all__ = [
    "AllEffect",
    "CallEffect",
    "CancelEffect",
    "CancelledEffect",
    "CompositeEffect",
    "DelayEffect",
    "EffectBase",
    "EffectKind",
    "ForkEffect",
    "JoinEffect",
    "PutEffect",
    "RaceEffect",
    "SelectEffect",
    "TakeEffect",
    "WatchEffect",
    "call",
    "cancel",
    "cancelled",
    "debounce",
    "delay",
    "fork",
    "gather",
    "join",
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
