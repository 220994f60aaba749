from __future__ import annotations

import abc
import copy
import json
import logging
import re
import time
from pathlib import Path
from typing import Any, Protocol

LOGGER = logging.getLogger(__name__)

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{8,128}$")
_MISSING = object()


class SessionStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def put(self, key: str, value: Any) -> None: ...

    def increment(self, key: str, amount: int = 1) -> int: ...

    def forget(self, key: str) -> None: ...

    def all(self) -> dict[str, Any]: ...

    def save(self) -> None: ...


class DottedSessionStore(abc.ABC):
    """Key-value session attributes addressed with dot notation.

    ``put("ns.form_step", 2)`` writes ``{"ns": {"form_step": 2}}``; a scalar
    sitting on an intermediate segment is replaced by a dict.
    """

    def __init__(self, attributes: dict[str, Any] | None = None) -> None:
        self._attributes: dict[str, Any] = attributes if attributes is not None else {}

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self._attributes
        for segment in key.split("."):
            if not isinstance(node, dict):
                return default
            node = node.get(segment, _MISSING)
            if node is _MISSING:
                return default
        return copy.deepcopy(node)

    def put(self, key: str, value: Any) -> None:
        segments = key.split(".")
        node = self._attributes
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[segments[-1]] = copy.deepcopy(value)

    def increment(self, key: str, amount: int = 1) -> int:
        current = self.get(key, 0)
        value = int(current) + amount
        self.put(key, value)
        return value

    def forget(self, key: str) -> None:
        segments = key.split(".")
        node: Any = self._attributes
        for segment in segments[:-1]:
            node = node.get(segment) if isinstance(node, dict) else None
            if node is None:
                return
        if isinstance(node, dict):
            node.pop(segments[-1], None)

    def all(self) -> dict[str, Any]:
        return copy.deepcopy(self._attributes)

    @abc.abstractmethod
    def save(self) -> None:
        raise NotImplementedError


class InMemorySessionStore(DottedSessionStore):
    def __init__(self, attributes: dict[str, Any] | None = None) -> None:
        super().__init__(attributes)
        self.save_count = 0

    def save(self) -> None:
        self.save_count += 1


class JsonFileSessionStore(DottedSessionStore):
    """One JSON document per session id, written atomically."""

    def __init__(
        self,
        base_path: Path,
        session_id: str,
        *,
        ttl_seconds: int = 7200,
        now: float | None = None,
    ) -> None:
        if not _SESSION_ID_RE.match(session_id):
            raise ValueError(f"Unsafe session id: {session_id!r}")
        self._base_path = base_path
        self._session_id = session_id
        self._ttl_seconds = max(60, int(ttl_seconds))
        super().__init__(self._load(now if now is not None else time.time()))

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def path(self) -> Path:
        return self._base_path / f"{self._session_id}.json"

    def save(self) -> None:
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"updated_at": time.time(), "attributes": self._attributes}
        tmp_path = path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
        tmp_path.replace(path)

    def destroy(self) -> None:
        self._attributes = {}
        try:
            self.path.unlink()
        except FileNotFoundError:
            return

    def _load(self, now: float) -> dict[str, Any]:
        path = self.path
        if not path.exists():
            return {}
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("session.load unreadable session_file=%s", path.name)
            return {}
        if not isinstance(payload, dict):
            return {}
        attributes = payload.get("attributes")
        updated_at = payload.get("updated_at")
        if not isinstance(attributes, dict) or not isinstance(updated_at, (int, float)):
            return {}
        if now - updated_at > self._ttl_seconds:
            LOGGER.info("session.expired session_file=%s", path.name)
            path.unlink(missing_ok=True)
            return {}
        return attributes
