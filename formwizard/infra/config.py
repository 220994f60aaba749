from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from formwizard.infra.logging_config import get_log_level

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION_STORE_PATH = Path("data/sessions")
DEFAULT_TEMPLATES_PATH = Path("templates")
DEFAULT_COOKIE_NAME = "formwizard_session"
DEFAULT_NAMESPACE = "multistep-form"
DEFAULT_FORM_PATH = "/register"
DEFAULT_SESSION_TTL_SECONDS = 7200
DEV_SESSION_SECRET = "dev-only-session-secret"


@dataclass(frozen=True)
class Settings:
    env_label: str
    session_secret: str
    session_store_path: Path
    session_cookie_name: str
    session_ttl_seconds: int
    templates_path: Path
    form_namespace: str
    form_path: str
    host: str
    port: int
    cookie_secure: bool
    log_level: int
    log_file: Path | None


_DEV_ENVS = {"dev", "development", "local"}


def resolve_env_label(raw_env: dict[str, str] | None = None) -> str:
    source = raw_env if raw_env is not None else os.environ
    env = source.get("APP_ENV", "prod").strip().lower()
    return "dev" if env in _DEV_ENVS else "prod"


def load_settings(raw_env: dict[str, str] | None = None) -> Settings:
    if raw_env is None:
        _load_dotenv()
    env = raw_env if raw_env is not None else os.environ
    label = resolve_env_label(env)

    secret = (env.get("SESSION_SECRET") or "").strip()
    if not secret:
        if label != "dev":
            raise RuntimeError("SESSION_SECRET is not set")
        # Sessions signed with the placeholder are only valid on this dev box.
        LOGGER.warning("startup.env SESSION_SECRET missing; using dev placeholder")
        secret = DEV_SESSION_SECRET

    form_path = (env.get("FORM_PATH") or DEFAULT_FORM_PATH).strip() or DEFAULT_FORM_PATH
    if not form_path.startswith("/"):
        form_path = f"/{form_path}"

    cookie_secure = _parse_optional_bool(env.get("SESSION_COOKIE_SECURE"))
    log_file = (env.get("LOG_FILE") or "").strip()
    return Settings(
        env_label=label,
        session_secret=secret,
        session_store_path=Path(env.get("SESSION_STORE_PATH", DEFAULT_SESSION_STORE_PATH)),
        session_cookie_name=(env.get("SESSION_COOKIE_NAME") or DEFAULT_COOKIE_NAME).strip(),
        session_ttl_seconds=max(60, _parse_int_with_default(env.get("SESSION_TTL_SECONDS"), DEFAULT_SESSION_TTL_SECONDS)),
        templates_path=Path(env.get("TEMPLATES_PATH", DEFAULT_TEMPLATES_PATH)),
        form_namespace=(env.get("FORM_NAMESPACE") or DEFAULT_NAMESPACE).strip(),
        form_path=form_path,
        host=(env.get("HOST") or "127.0.0.1").strip(),
        port=_parse_int_with_default(env.get("PORT"), 8000),
        cookie_secure=cookie_secure if cookie_secure is not None else label == "prod",
        log_level=get_log_level(env),
        log_file=Path(log_file) if log_file else None,
    )


def _load_dotenv() -> None:
    try:
        from dotenv import load_dotenv
    except ImportError:
        LOGGER.debug("python-dotenv is not installed; skipping .env loading")
        return
    load_dotenv()


def _parse_optional_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    trimmed = value.strip().lower()
    if not trimmed:
        return None
    return trimmed in {"1", "true", "yes", "on"}


def _parse_int_with_default(value: str | None, default: int) -> int:
    if value is None:
        return default
    trimmed = value.strip()
    if not trimmed:
        return default
    return int(trimmed)
