from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol


class Renderer(Protocol):
    def render(self, template_id: str, context: Mapping[str, Any]) -> str: ...


@dataclass(frozen=True)
class ViewResponse:
    template: str
    context: dict[str, Any]
    body: str
    status_code: int = 200


@dataclass(frozen=True)
class PayloadResponse:
    data: dict[str, Any] = field(default_factory=dict)
    form: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "form": self.form}


@dataclass(frozen=True)
class RedirectBack:
    """Tells the transport to send the browser back to the form page."""

    fallback_url: str = "/"
