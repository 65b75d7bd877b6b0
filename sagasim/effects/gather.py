"""Composite effects: race and all.

Members are given as a list, as a dict, or as positional arguments. The
result keeps the shape of the members: a list for lists, a dict for dicts.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from ._validators import ensure_effect_members
from .base import EffectBase, EffectKind


def _normalize_members(members: tuple[Any, ...]) -> Any:
    if len(members) == 1 and isinstance(members[0], Mapping):
        return dict(members[0])
    if len(members) == 1 and isinstance(members[0], (list, tuple)):
        return tuple(members[0])
    return tuple(members)


@dataclass(frozen=True)
class CompositeEffect(EffectBase):
    members: Any

    def __post_init__(self) -> None:
        ensure_effect_members(self.members, name="members")

    @property
    def is_keyed(self) -> bool:
        return isinstance(self.members, Mapping)

    def items(self) -> list[tuple[Any, Any]]:
        if self.is_keyed:
            return list(self.members.items())
        return list(enumerate(self.members))


@dataclass(frozen=True)
class RaceEffect(CompositeEffect):
    """Resolve with the first member to complete; losers are cancelled."""

    kind: ClassVar[EffectKind] = EffectKind.RACE


@dataclass(frozen=True)
class AllEffect(CompositeEffect):
    """Resolve once every member has completed."""

    kind: ClassVar[EffectKind] = EffectKind.ALL


def race(*members: Any) -> RaceEffect:
    return RaceEffect(members=_normalize_members(members))


def gather(*members: Any) -> AllEffect:
    return AllEffect(members=_normalize_members(members))


__all__ = ["AllEffect", "CompositeEffect", "RaceEffect", "gather", "race"]
