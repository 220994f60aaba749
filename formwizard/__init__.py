"""Session-backed multi-step form controller."""

from formwizard.core.form import WizardController
from formwizard.core.hooks import WILDCARD
from formwizard.core.request import FormRequest
from formwizard.core.steps import StepDefinition
from formwizard.core.validation import FormValidationError

__all__ = ["FormRequest", "FormValidationError", "StepDefinition", "WILDCARD", "WizardController"]
