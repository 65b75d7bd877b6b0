"""Inline call effects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar

from ._validators import ensure_callable, ensure_tuple
from .base import EffectBase, EffectKind


def callable_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__name__", None) or type(fn).__name__


@dataclass(frozen=True)
class CallEffect(EffectBase):
    """Call ``fn(*args, **kwargs)`` on behalf of the yielding task.

    A generator result is entered inline, as a new frame of the same task.
    """

    kind: ClassVar[EffectKind] = EffectKind.INLINE_CALL

    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        ensure_callable(self.fn, name="fn")
        ensure_tuple(self.args, name="args")

    @property
    def name(self) -> str:
        return callable_name(self.fn)

    def invoke(self) -> Any:
        return self.fn(*self.args, **self.kwargs)


def call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> CallEffect:
    return CallEffect(fn=fn, args=args, kwargs=kwargs)


__all__ = ["CallEffect", "call", "callable_name"]
