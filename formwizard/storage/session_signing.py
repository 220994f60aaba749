from __future__ import annotations

import hmac
import re
import secrets
import time
from dataclasses import dataclass
from hashlib import sha256

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{8,128}$")


@dataclass
class SignedSession:
    session_id: str
    issued_at: int


def new_session_id() -> str:
    return secrets.token_urlsafe(24)


class SignedSessionManager:
    def __init__(self, *, secret: str, ttl_seconds: int = 7200) -> None:
        self._secret = secret.encode("utf-8")
        self._ttl_seconds = ttl_seconds

    def issue(self, session_id: str, *, now: int | None = None) -> str:
        issued_at = int(time.time()) if now is None else now
        body = f"{session_id}:{issued_at}"
        signature = self._sign(body)
        return f"{body}:{signature}"

    def consume(self, token: str, *, now: int | None = None) -> SignedSession | None:
        parts = token.split(":")
        if len(parts) != 3:
            return None
        session_id, issued_raw, signature = parts
        if not _SESSION_ID_RE.match(session_id) or not issued_raw.isdigit():
            return None
        body = f"{session_id}:{issued_raw}"
        if not hmac.compare_digest(self._sign(body), signature):
            return None
        issued_at = int(issued_raw)
        current = int(time.time()) if now is None else now
        if issued_at + self._ttl_seconds < current:
            return None
        return SignedSession(session_id=session_id, issued_at=issued_at)

    def _sign(self, value: str) -> str:
        return hmac.new(self._secret, value.encode("utf-8"), sha256).hexdigest()
