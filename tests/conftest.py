import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from formwizard.storage.session_store import InMemorySessionStore  # noqa: E402


class RecordingRenderer:
    """Renderer double: remembers every call and returns a marker body."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def render(self, template_id: str, context) -> str:
        self.calls.append((template_id, dict(context)))
        return f"<rendered {template_id}>"


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()
