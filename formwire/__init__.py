"""formwire - declarative form schemas, JSON descriptors and submission handling."""

from formwire.exceptions import ConfigurationError, HandlerFailure, InvalidReference, NotFound
from formwire.fields import (
    CheckboxField,
    DateField,
    FileUploadField,
    FormField,
    NumberField,
    SelectField,
    TextareaField,
    TextInputField,
)
from formwire.form import Form
from formwire.processor import SubmissionProcessor, SubmissionState
from formwire.registry import FormRegistrar, FormRegistry
from formwire.validation import RuleEngine, RuleValidator

__all__ = [
    "CheckboxField",
    "ConfigurationError",
    "DateField",
    "FileUploadField",
    "Form",
    "FormField",
    "FormRegistrar",
    "FormRegistry",
    "HandlerFailure",
    "InvalidReference",
    "NotFound",
    "NumberField",
    "RuleEngine",
    "RuleValidator",
    "SelectField",
    "SubmissionProcessor",
    "SubmissionState",
    "TextareaField",
    "TextInputField",
]
