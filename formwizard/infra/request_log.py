from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from formwizard.infra.config import resolve_env_label


@dataclass
class RequestContext:
    correlation_id: str
    method: str
    path: str
    env: str
    namespace: str | None = None
    step: int | None = None
    status_code: int = 200
    outcome: str = "ok"
    start_time: float = field(default_factory=time.monotonic)
    meta: dict[str, Any] = field(default_factory=dict)


def start_request(method: str, path: str, *, env: str | None = None) -> RequestContext:
    return RequestContext(
        correlation_id=str(uuid.uuid4()),
        method=method.upper(),
        path=path,
        env=env or resolve_env_label(),
    )


def elapsed_ms(start_time: float) -> float:
    return max((time.monotonic() - start_time) * 1000, 0.01)


def log_request(logger: logging.Logger, request_context: RequestContext) -> None:
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "correlation_id": request_context.correlation_id,
        "event": "request.summary",
        "env": request_context.env,
        "method": request_context.method,
        "path": request_context.path,
        "namespace": request_context.namespace,
        "step": request_context.step,
        "status_code": request_context.status_code,
        "outcome": request_context.outcome,
        "duration_ms": round(elapsed_ms(request_context.start_time), 2),
    }
    if request_context.meta:
        payload.update(request_context.meta)
    message = json.dumps(payload, ensure_ascii=False)
    if request_context.status_code >= 500:
        logger.error(message)
    elif request_context.status_code >= 400:
        logger.warning(message)
    else:
        logger.info(message)
