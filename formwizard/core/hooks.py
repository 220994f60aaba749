"""Before/after hook registries.

Each phase keeps one callback per selector: a step number or the wildcard.
Dispatch evaluates the wildcard callback first; a non-empty result
short-circuits and the step-specific callback is never invoked. None and
other falsy results (empty string, empty dict) count as "no response".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Final, Literal, Optional, Union

if TYPE_CHECKING:
    from formwizard.core.form import WizardController

WILDCARD: Final = "*"

HookSelector = Union[int, Literal["*"]]
HookCallback = Callable[["WizardController"], Optional[Any]]


def _normalize_selector(selector: HookSelector) -> HookSelector:
    if selector == WILDCARD:
        return WILDCARD
    if isinstance(selector, bool) or not isinstance(selector, int):
        raise ValueError(f"Hook selector must be a step number or {WILDCARD!r}: {selector!r}")
    return selector


class HookRegistry:
    def __init__(self, phase: str) -> None:
        self.phase = phase
        self._callbacks: dict[HookSelector, HookCallback] = {}

    def register(self, selector: HookSelector, callback: HookCallback) -> None:
        self._callbacks[_normalize_selector(selector)] = callback

    def get(self, selector: HookSelector) -> HookCallback | None:
        return self._callbacks.get(selector)

    def dispatch(self, step: int, form: WizardController) -> Any | None:
        return dispatch_hooks(self._callbacks, step, form)

    def __contains__(self, selector: object) -> bool:
        return selector in self._callbacks


def dispatch_hooks(
    callbacks: dict[HookSelector, HookCallback],
    step: int,
    form: WizardController,
) -> Any | None:
    for selector in (WILDCARD, step):
        callback = callbacks.get(selector)
        if callback is None:
            continue
        response = callback(form)
        if response:
            return response
    return None
