from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from starlette.requests import Request

_JSON_MARKERS = ("/json", "+json")


def wants_json(accept_header: str | None) -> bool:
    if not accept_header:
        return False
    first = accept_header.split(",")[0].split(";")[0].strip().lower()
    return any(marker in first for marker in _JSON_MARKERS)


@dataclass
class FormRequest:
    method: str = "GET"
    input: dict[str, Any] = field(default_factory=dict)
    wants_json: bool = False
    url: str = "/"
    referer: str | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.input.get(key, default)

    def all(self) -> dict[str, Any]:
        return dict(self.input)

    def is_method(self, name: str) -> bool:
        return self.method.upper() == name.upper()

    @staticmethod
    async def from_starlette(request: Request) -> FormRequest:
        values: dict[str, Any] = dict(request.query_params)
        if request.method.upper() != "GET":
            values.update(await _read_body(request))
        return FormRequest(
            method=request.method.upper(),
            input=values,
            wants_json=wants_json(request.headers.get("accept")),
            url=str(request.url),
            referer=request.headers.get("referer"),
        )


async def _read_body(request: Request) -> Mapping[str, Any]:
    content_type = (request.headers.get("content-type") or "").lower()
    if "json" in content_type:
        raw = await request.body()
        if not raw:
            return {}
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return payload if isinstance(payload, dict) else {}
    form = await request.form()
    return {key: value for key, value in form.items()}
