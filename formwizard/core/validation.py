"""Step validation: effective rules, validator contract and the pydantic backend."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Mapping, Protocol

from pydantic import BeforeValidator, Field, ValidationError, create_model

from formwizard.core.bucket import STEP_FIELD, coerce_step

LOGGER = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "The given data was invalid."


class FormValidationError(Exception):
    """Per-field validation failure; ``errors`` maps field -> messages."""

    def __init__(self, errors: Mapping[str, list[str]], message: str = DEFAULT_ERROR_MESSAGE) -> None:
        super().__init__(message)
        self.message = message
        self.errors: dict[str, list[str]] = {key: list(value) for key, value in errors.items()}

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class Validator(Protocol):
    def validate(
        self,
        payload: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Mapping[str, str],
    ) -> dict[str, Any]: ...


def step_indicator_rule(last_step: int) -> Any:
    return Annotated[int, BeforeValidator(coerce_step), Field(ge=1, le=max(1, last_step))]


def effective_rules(rules: Mapping[str, Any], last_step: int) -> dict[str, Any]:
    return {**rules, STEP_FIELD: step_indicator_rule(last_step)}


def _field_definition(rule: Any) -> Any:
    if isinstance(rule, tuple):
        return rule
    return (rule, ...)


def _resolve_message(field: str, error_type: str, default: str, messages: Mapping[str, str]) -> str:
    for key in (f"{field}.{error_type}", error_type, field):
        message = messages.get(key)
        if message:
            return message
    return default


def collect_errors(exc: ValidationError, messages: Mapping[str, str]) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for item in exc.errors():
        loc = item.get("loc") or ("__root__",)
        field = ".".join(str(part) for part in loc)
        error_type = str(item.get("type", "invalid"))
        text = _resolve_message(str(loc[0]), error_type, str(item.get("msg", "Invalid value")), messages)
        errors.setdefault(field, []).append(text)
    return errors


class PydanticValidator:
    def __init__(self, model_name: str = "StepInput") -> None:
        self._model_name = model_name

    def validate(
        self,
        payload: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Mapping[str, str],
    ) -> dict[str, Any]:
        fields = {name: _field_definition(rule) for name, rule in rules.items()}
        model = create_model(self._model_name, **fields)
        try:
            validated = model.model_validate(dict(payload))
        except ValidationError as exc:
            errors = collect_errors(exc, messages)
            LOGGER.info("form.validation.failed fields=%s", ",".join(sorted(errors)))
            raise FormValidationError(errors) from exc
        return validated.model_dump(mode="json")
