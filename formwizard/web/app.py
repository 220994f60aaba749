"""FastAPI transport for multi-step forms.

Each mounted form gets one GET+POST route. The route owns the HTTP side
(signed session cookie, request parsing, response conversion, request
logging); everything about steps and validation stays in the controller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse, Response

from formwizard.core.form import WizardController
from formwizard.core.request import FormRequest
from formwizard.core.responses import PayloadResponse, RedirectBack, Renderer, ViewResponse
from formwizard.core.validation import FormValidationError
from formwizard.forms.registration import REGISTRATION_VIEW, configure_registration
from formwizard.infra.config import Settings, load_settings
from formwizard.infra.request_log import log_request, start_request
from formwizard.storage.session_signing import SignedSessionManager, new_session_id
from formwizard.storage.session_store import JsonFileSessionStore, SessionStore
from formwizard.web.rendering import Jinja2Renderer

LOGGER = logging.getLogger(__name__)

FormConfigurator = Callable[[WizardController], Any]
StoreFactory = Callable[[str], SessionStore]


def create_app(
    settings: Settings | None = None,
    *,
    renderer: Renderer | None = None,
    store_factory: StoreFactory | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    renderer = renderer or Jinja2Renderer(settings.templates_path)
    store_factory = store_factory or file_store_factory(settings)

    app = FastAPI()

    @app.get("/health", response_class=PlainTextResponse)
    def health() -> str:
        return "ok"

    mount_form(
        app,
        settings.form_path,
        configure_registration,
        settings=settings,
        view=REGISTRATION_VIEW,
        data={"title": "Create your account"},
        renderer=renderer,
        store_factory=store_factory,
    )
    return app


def file_store_factory(settings: Settings) -> StoreFactory:
    def factory(session_id: str) -> SessionStore:
        return JsonFileSessionStore(
            settings.session_store_path,
            session_id,
            ttl_seconds=settings.session_ttl_seconds,
        )

    return factory


def mount_form(
    app: FastAPI,
    path: str,
    configure: FormConfigurator,
    *,
    settings: Settings,
    view: str | None = None,
    data: Mapping[str, Any] | None = None,
    renderer: Renderer | None = None,
    store_factory: StoreFactory,
) -> None:
    signer = SignedSessionManager(secret=settings.session_secret, ttl_seconds=settings.session_ttl_seconds)

    async def handle(request: Request) -> Response:
        request_context = start_request(request.method, request.url.path, env=settings.env_label)
        session_id = _resolve_session_id(request, signer, settings.session_cookie_name)
        store = store_factory(session_id)
        form_request = await FormRequest.from_starlette(request)
        form = (
            WizardController.make(form_request, store, view=view, data=data, renderer=renderer)
            .namespaced(settings.form_namespace)
            .tap(configure)
        )
        request_context.namespace = form.namespace
        request_context.step = form.current_step()
        try:
            response = to_starlette_response(form.to_response(), form_request)
        except FormValidationError as exc:
            request_context.outcome = "invalid"
            request_context.meta["invalid_fields"] = sorted(exc.errors)
            response = validation_error_response(form, form_request, exc)
        except Exception:
            request_context.status_code = 500
            request_context.outcome = "error"
            log_request(LOGGER, request_context)
            raise
        response.set_cookie(
            settings.session_cookie_name,
            signer.issue(session_id),
            max_age=settings.session_ttl_seconds,
            httponly=True,
            samesite="lax",
            secure=settings.cookie_secure,
        )
        request_context.status_code = response.status_code
        log_request(LOGGER, request_context)
        return response

    app.add_api_route(path, handle, methods=["GET", "POST"], include_in_schema=False)


def _resolve_session_id(request: Request, signer: SignedSessionManager, cookie_name: str) -> str:
    token = request.cookies.get(cookie_name)
    if token:
        signed = signer.consume(token)
        if signed is not None:
            return signed.session_id
        LOGGER.info("session.cookie rejected path=%s", request.url.path)
    return new_session_id()


def to_starlette_response(result: Any, form_request: FormRequest) -> Response:
    if isinstance(result, Response):
        return result
    if isinstance(result, ViewResponse):
        return HTMLResponse(content=result.body, status_code=result.status_code)
    if isinstance(result, PayloadResponse):
        return JSONResponse(content=result.to_dict())
    if isinstance(result, RedirectBack):
        return RedirectResponse(url=form_request.referer or result.fallback_url, status_code=303)
    if isinstance(result, (dict, list)):
        return JSONResponse(content=result)
    if isinstance(result, str):
        return HTMLResponse(content=result)
    raise TypeError(f"Unsupported form response type: {type(result).__name__}")


def validation_error_response(
    form: WizardController,
    form_request: FormRequest,
    exc: FormValidationError,
) -> Response:
    if form_request.wants_json or not isinstance(form.view, str):
        return JSONResponse(content=exc.to_dict(), status_code=422)
    rendered = form.render_response({"errors": exc.errors, "old": form_request.all()}, status_code=422)
    return to_starlette_response(rendered, form_request)
