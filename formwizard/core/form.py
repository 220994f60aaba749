"""Multi-step form controller.

Resolves the active step for the request, runs the before/after hook
pipeline around validation, merges validated input into the session
bucket and advances the persisted step pointer. One controller instance
handles exactly one request.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from formwizard.core.bucket import RESET_STEP, STEP_FIELD, SessionBucket, coerce_step
from formwizard.core.hooks import HookCallback, HookRegistry, HookSelector
from formwizard.core.request import FormRequest
from formwizard.core.responses import PayloadResponse, RedirectBack, Renderer, ViewResponse
from formwizard.core.steps import StepDefinition, StepRegistry
from formwizard.core.validation import PydanticValidator, Validator, effective_rules
from formwizard.storage.session_store import SessionStore

LOGGER = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "multistep-form"


class WizardController:
    def __init__(
        self,
        request: FormRequest,
        session: SessionStore,
        data: Mapping[str, Any] | None = None,
        view: str | None = None,
        *,
        renderer: Renderer | None = None,
        validator: Validator | None = None,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.request = request
        self.session = session
        self.data: dict[str, Any] = dict(data or {})
        self.view = view
        self.renderer = renderer
        self.validator: Validator = validator or PydanticValidator()
        self.steps = StepRegistry()
        self.before = HookRegistry("before")
        self.after = HookRegistry("after")
        self._bucket = SessionBucket(session, namespace)
        self._step_override: int | None = None

    @classmethod
    def make(
        cls,
        request: FormRequest,
        session: SessionStore,
        view: str | None = None,
        data: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> WizardController:
        return cls(request, session, data=data, view=view, **kwargs)

    @property
    def namespace(self) -> str:
        return self._bucket.namespace

    def namespaced(self, namespace: str) -> WizardController:
        self._bucket = SessionBucket(self.session, namespace)
        return self

    def tap(self, configure: Callable[[WizardController], Any]) -> WizardController:
        configure(self)
        return self

    def before_step(self, step: HookSelector, callback: HookCallback) -> WizardController:
        self.before.register(step, callback)
        return self

    def on_step(self, step: HookSelector, callback: HookCallback) -> WizardController:
        self.after.register(step, callback)
        return self

    def add_step(
        self,
        step: int,
        config: StepDefinition | Mapping[str, Any] | None = None,
    ) -> WizardController:
        self.steps.add_step(step, config)
        return self

    # Step state

    def current_step(self) -> int:
        if self._step_override is not None:
            return self._step_override
        requested = self.request.get(STEP_FIELD)
        if requested is not None:
            return coerce_step(requested)
        persisted = self._bucket.persisted_step()
        if persisted is not None:
            return coerce_step(persisted)
        return 1

    def step_config(self, step: int | None = None) -> StepDefinition:
        return self.steps.step_config(self.current_step() if step is None else step)

    def is_step(self, step: int = 1) -> bool:
        return self.current_step() == step

    def last_step(self) -> int:
        return self.steps.last_step()

    def get_value(self, key: str, fallback: Any = None) -> Any:
        return self._bucket.get(key, fallback)

    def reset(self, data: Mapping[str, Any] | None = None) -> WizardController:
        # The sentinel stays on the controller and is not merged into the request
        # input, so a validate() after reset on the same controller checks the
        # submitted form_step against the empty step-0 rules instead of failing.
        self._step_override = RESET_STEP
        self._bucket.replace(data or {})
        LOGGER.info("form.reset namespace=%s", self.namespace)
        return self

    def to_dict(self) -> dict[str, Any]:
        return self._bucket.to_dict()

    def advance(self) -> None:
        step = self.current_step()
        if step == RESET_STEP:
            self._bucket.set_step(1)
            LOGGER.info("form.step.restarted namespace=%s", self.namespace)
        elif step != self.last_step():
            self._bucket.increment_step()
            LOGGER.info("form.step.advanced namespace=%s from=%s to=%s", self.namespace, step, step + 1)
        else:
            LOGGER.debug("form.step.terminal namespace=%s step=%s", self.namespace, step)

    # Pipeline

    def validate(self) -> dict[str, Any]:
        config = self.step_config(self.current_step())
        return self.validator.validate(
            self.request.all(),
            effective_rules(config.rules, self.last_step()),
            config.messages,
        )

    def save(self, fields: Mapping[str, Any]) -> None:
        self._bucket.merge(fields, self.current_step())

    def to_response(self, request: FormRequest | None = None) -> Any:
        if request is not None:
            self.request = request
        if self.request.is_method("GET"):
            return self.render_response()
        return self._handle_request()

    def _handle_request(self) -> Any:
        response = self.before.dispatch(self.current_step(), self)
        if response is not None:
            LOGGER.info("form.before_hook.halted namespace=%s step=%s", self.namespace, self.current_step())
            return response

        self.save(self.validate())

        response = self.after.dispatch(self.current_step(), self)
        if response is not None:
            LOGGER.info("form.after_hook.halted namespace=%s step=%s", self.namespace, self.current_step())
            return response

        self.advance()

        if not self.request.wants_json:
            return RedirectBack(fallback_url=self.request.referer or self.request.url)
        return self.render_response()

    def render_response(
        self,
        extra_context: Mapping[str, Any] | None = None,
        *,
        status_code: int = 200,
    ) -> ViewResponse | PayloadResponse:
        if isinstance(self.view, str) and not self.request.wants_json:
            if self.renderer is None:
                raise RuntimeError(f"No renderer configured for view {self.view}")
            context = {**self.data, **(extra_context or {}), "form": self}
            return ViewResponse(
                template=self.view,
                context=context,
                body=self.renderer.render(self.view, context),
                status_code=status_code,
            )
        return PayloadResponse(
            data={**self.data, **self.step_config().extra_data},
            form=self.to_dict(),
        )
