from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from ._validators import ensure_non_negative_int
from .base import EffectBase, EffectKind


@dataclass(frozen=True)
class DelayEffect(EffectBase):
    """Block the yielding task behind a synthetic task of tier ``ticks``."""

    kind: ClassVar[EffectKind] = EffectKind.DELAY

    ticks: int

    def __post_init__(self) -> None:
        ensure_non_negative_int(self.ticks, name="ticks")


def delay(ticks: int) -> DelayEffect:
    return DelayEffect(ticks=ticks)


__all__ = ["DelayEffect", "delay"]
