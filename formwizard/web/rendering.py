from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape


class Jinja2Renderer:
    """Renders form views from a template directory.

    Template ids use slash-separated names without the extension:
    ``"registration/form"`` loads ``registration/form.html``.
    """

    def __init__(self, templates_path: Path, *, extension: str = ".html") -> None:
        self._extension = extension
        self._env = Environment(
            loader=FileSystemLoader(str(templates_path)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_id: str, context: Mapping[str, Any]) -> str:
        name = template_id if template_id.endswith(self._extension) else f"{template_id}{self._extension}"
        return self._env.get_template(name).render(**context)
