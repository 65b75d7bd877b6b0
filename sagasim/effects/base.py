"""
Base types for effect modules.

Effects are immutable descriptors yielded by tested code. The scheduler
dispatches on the class-level ``kind`` tag; every kind other than
``EXTERNAL`` is interpreted structurally by the core.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class EffectKind(Enum):
    INLINE_CALL = "inline-call"
    RUN_CONCURRENTLY = "run-concurrently"
    JOIN = "join"
    RACE = "race"
    ALL = "all"
    CANCEL = "cancel"
    IS_CANCELLED = "is-cancelled"
    DELAY = "delay"
    EXTERNAL = "external"


@dataclass(frozen=True)
class EffectBase:
    """Base class of every effect descriptor.

    Subclasses that do not override ``kind`` are handed whole to the handler
    registered for their type.
    """

    kind: ClassVar[EffectKind] = EffectKind.EXTERNAL


__all__ = ["EffectBase", "EffectKind"]
