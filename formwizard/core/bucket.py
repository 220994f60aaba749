from __future__ import annotations

from typing import Any, Mapping

from formwizard.storage.session_store import SessionStore

STEP_FIELD = "form_step"
RESET_STEP = 0


def coerce_step(value: Any) -> int:
    """Read a step number the way both resolution and validation see it.

    Only integers and integer strings count; anything else (including
    "2.0" and 2.0) becomes the reset sentinel, which the step-indicator
    rule rejects.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return RESET_STEP
    try:
        return int(value.strip())
    except ValueError:
        return RESET_STEP


class SessionBucket:
    """Namespaced accumulator of validated field data plus the step pointer.

    An absent namespace key reads as an empty bucket. Field data is written
    only through ``merge`` and ``replace``; the step pointer additionally
    through ``set_step`` and ``increment_step``.
    """

    def __init__(self, store: SessionStore, namespace: str) -> None:
        if not namespace or "." in namespace:
            raise ValueError(f"Namespace must be non-empty and contain no dots: {namespace!r}")
        self._store = store
        self.namespace = namespace

    def load(self) -> dict[str, Any]:
        data = self._store.get(self.namespace, {})
        return dict(data) if isinstance(data, Mapping) else {}

    def get(self, key: str, fallback: Any = None) -> Any:
        return self._store.get(f"{self.namespace}.{key}", fallback)

    def persisted_step(self) -> Any:
        return self.get(STEP_FIELD)

    def merge(self, fields: Mapping[str, Any], step: int) -> dict[str, Any]:
        merged = {**self.load(), **fields, STEP_FIELD: step}
        self._store.put(self.namespace, merged)
        self.persist()
        return merged

    def replace(self, data: Mapping[str, Any]) -> None:
        self._store.put(self.namespace, dict(data))
        self.persist()

    def set_step(self, step: int) -> None:
        self._store.put(f"{self.namespace}.{STEP_FIELD}", step)
        self.persist()

    def increment_step(self) -> None:
        self._store.increment(f"{self.namespace}.{STEP_FIELD}")
        self.persist()

    def persist(self) -> None:
        self._store.save()

    def to_dict(self) -> dict[str, Any]:
        return self.load()
