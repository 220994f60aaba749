from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping


@dataclass(frozen=True)
class StepDefinition:
    """Static configuration for one step: validation rules, messages, render data."""

    rules: dict[str, Any] = field(default_factory=dict)
    messages: dict[str, str] = field(default_factory=dict)
    extra_data: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_mapping(payload: Mapping[str, Any] | None) -> StepDefinition:
        if not payload:
            return StepDefinition()
        rules = payload.get("rules")
        messages = payload.get("messages")
        extra_data = payload.get("data")
        return StepDefinition(
            rules=dict(rules) if isinstance(rules, Mapping) else {},
            messages=dict(messages) if isinstance(messages, Mapping) else {},
            extra_data=dict(extra_data) if isinstance(extra_data, Mapping) else {},
        )


class StepRegistry:
    def __init__(self) -> None:
        self._steps: dict[int, StepDefinition] = {}

    def add_step(self, step: int, config: StepDefinition | Mapping[str, Any] | None = None) -> None:
        if isinstance(config, StepDefinition):
            definition = config
        else:
            definition = StepDefinition.from_mapping(config)
        self._steps[int(step)] = definition

    def step_config(self, step: int) -> StepDefinition:
        return self._steps.get(step) or StepDefinition()

    def has_step(self, step: int) -> bool:
        return step in self._steps

    def last_step(self) -> int:
        if not self._steps:
            return 1
        return max(self._steps)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._steps))

    def __len__(self) -> int:
        return len(self._steps)
