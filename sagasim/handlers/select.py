"""Handler for ``select``: selectors read from a frozen state."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from frozendict import frozendict

from sagasim.effects.external import SelectEffect
from sagasim.errors import UnmatchedEffectError
from sagasim.mocks import MockedSelection
from sagasim.scheduler.contracts import HandlerContext
from sagasim.scheduler.types import Advance


def freeze(value: Any) -> Any:
    """Recursively turn mappings into ``frozendict`` and lists into tuples."""
    if isinstance(value, Mapping):
        return frozendict({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


class SelectHandler:
    def __init__(
        self,
        state: Mapping[str, Any] | None = None,
        selectors: Mapping[str, Any] | None = None,
        *,
        pass_on_none: bool = False,
    ) -> None:
        self.state = freeze(state or {})
        self.selectors = frozendict(selectors or {})
        self.pass_on_none = pass_on_none

    def __call__(self, effect: SelectEffect, ctx: HandlerContext) -> Advance:
        try:
            result = effect.selector(self.state, *effect.args)
        except Exception as exc:
            raise UnmatchedEffectError(
                "A selector crashed while executing. Either provide the value in state, or mock it using "
                f"mock_selector: {type(exc).__name__}: {exc}",
                effect=effect,
                step=ctx.step,
            ) from exc

        if isinstance(result, MockedSelection):
            if result.name not in self.selectors:
                raise UnmatchedEffectError(
                    f"Received selector with id {result.name}, but the SagaTester was not configured to handle "
                    "this selector",
                    effect=effect,
                    step=ctx.step,
                )
            return Advance(self.selectors[result.name])

        if result is None and not self.pass_on_none:
            raise UnmatchedEffectError(
                "A selector returned None. If this is desirable, set pass_on_none. Otherwise, provide the "
                "value in state or mock the selector",
                effect=effect,
                step=ctx.step,
            )
        return Advance(result)


__all__ = ["SelectHandler", "freeze"]
