"""Three-step account registration wizard.

Steps: 1 account, 2 profile, 3 confirm. Completing step 3 resets the
bucket to a ``completed`` marker; further submissions are refused by the
wildcard before-hook until the user asks to start over.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi.responses import JSONResponse
from pydantic import AfterValidator, Field

from formwizard.core.form import WizardController
from formwizard.core.hooks import WILDCARD
from formwizard.core.responses import RedirectBack
from formwizard.core.steps import StepDefinition

LOGGER = logging.getLogger(__name__)

REGISTRATION_VIEW = "registration/form"
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _must_accept(value: bool) -> bool:
    if not value:
        raise ValueError("terms not accepted")
    return value


ACCOUNT_STEP = StepDefinition(
    rules={
        "email": Annotated[str, Field(pattern=_EMAIL_PATTERN, max_length=254)],
        "username": Annotated[str, Field(min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.-]+$")],
    },
    messages={
        "email.string_pattern_mismatch": "Enter a valid email address.",
        "username.string_too_short": "Username must be at least 3 characters.",
        "missing": "This field is required.",
    },
    extra_data={"section": "account", "heading": "Account"},
)

PROFILE_STEP = StepDefinition(
    rules={
        "full_name": Annotated[str, Field(min_length=1, max_length=120)],
        "age": Annotated[int, Field(ge=13, le=120)],
        "newsletter": (bool, False),
    },
    messages={
        "age.greater_than_equal": "You must be at least 13 years old.",
        "missing": "This field is required.",
    },
    extra_data={"section": "profile", "heading": "Profile"},
)

CONFIRM_STEP = StepDefinition(
    rules={"accept_terms": Annotated[bool, AfterValidator(_must_accept)]},
    messages={
        "accept_terms.value_error": "You must accept the terms to continue.",
        "accept_terms.missing": "You must accept the terms to continue.",
    },
    extra_data={"section": "confirm", "heading": "Confirm"},
)


def _back(form: WizardController) -> Any:
    if form.request.wants_json:
        return form.render_response()
    return RedirectBack(fallback_url=form.request.referer or form.request.url)


def refuse_when_completed(form: WizardController) -> Any:
    if not form.get_value("completed"):
        return None
    if form.request.get("restart"):
        LOGGER.info("registration.restarted namespace=%s", form.namespace)
        form.reset()
        return _back(form)
    if form.request.wants_json:
        return JSONResponse(
            content={"message": "Registration already completed.", "form": form.to_dict()},
            status_code=409,
        )
    return _back(form)


def complete_registration(form: WizardController) -> None:
    account = form.to_dict()
    LOGGER.info(
        "registration.completed namespace=%s username=%s newsletter=%s",
        form.namespace,
        account.get("username"),
        bool(account.get("newsletter")),
    )
    form.reset({"completed": True, "username": account.get("username")})
    return None


def configure_registration(form: WizardController) -> None:
    form.add_step(1, ACCOUNT_STEP)
    form.add_step(2, PROFILE_STEP)
    form.add_step(3, CONFIRM_STEP)
    form.before_step(WILDCARD, refuse_when_completed)
    form.on_step(3, complete_registration)
