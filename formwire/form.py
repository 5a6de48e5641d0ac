"""Form base class: metadata, field list, rule derivation and serialization."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from formwire.descriptors import FormDescriptor
from formwire.fields import FormField

ENDPOINT_PREFIX = "/forms"


def camel_to_kebab(name: str) -> str:
    """Convert CamelCase to kebab-case. ContactUs -> contact-us"""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "-", name).lower()


def derive_form_name(cls: type) -> str:
    """Derive a form name from a class name, stripping 'Form' suffix."""
    name = cls.__name__
    if name.endswith("Form"):
        name = name[:-4]
    return camel_to_kebab(name)


class Form(ABC):
    """Base class for declared forms.

    Usage:
        class ContactForm(Form):
            def configure(self):
                self.set_title("Contact Us").set_configuration({"layout": "vertical"})

            def fields(self):
                return [
                    TextInputField.make("name").set_required().max_length(100),
                    TextInputField.make("email").set_required().rules(["email"]),
                ]

            def handle(self, data):
                return {"reference": send_message(data)}

    The name defaults to the kebab-cased class name without its "Form"
    suffix (ContactForm -> "contact") and the endpoint to /forms/{name}.
    configure() runs once, at the end of __init__.
    """

    def __init__(self) -> None:
        self._name = derive_form_name(type(self))
        self._endpoint = self._default_endpoint()
        self._title = ""
        self._method = "POST"
        self._configuration: dict[str, Any] = {}
        self._messages: dict[str, str] = {}
        self._success_messages: list[str] = []
        self.configure()

    # -- Hooks --

    def configure(self) -> None:
        """Set title, endpoint, configuration, etc. Override in subclasses."""

    @abstractmethod
    def fields(self) -> list[FormField]:
        """Build the form's fields. Called fresh on every access."""

    @abstractmethod
    def handle(self, data: dict[str, Any]) -> Any:
        """Process validated submission data. The return value becomes the envelope result."""

    # -- Fluent setters --

    def set_name(self, name: str):
        """Rename the form. The endpoint is re-derived from the new name."""
        self._name = name
        self._endpoint = self._default_endpoint()
        return self

    def set_title(self, title: str):
        self._title = title
        return self

    def set_endpoint(self, endpoint: str):
        self._endpoint = endpoint
        return self

    def set_method(self, method: str):
        self._method = method
        return self

    def set_configuration(self, configuration: dict[str, Any]):
        self._configuration = dict(configuration)
        return self

    def set_messages(self, messages: dict[str, str]):
        """Validation message overrides, keyed "field.rule" or "rule"."""
        self._messages = dict(messages)
        return self

    def set_success_messages(self, messages: list[str]):
        self._success_messages = list(messages)
        return self

    # -- Read access --

    @property
    def name(self) -> str:
        return self._name

    @property
    def title(self) -> str:
        return self._title

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def method(self) -> str:
        return self._method

    @property
    def configuration(self) -> dict[str, Any]:
        return dict(self._configuration)

    @property
    def messages(self) -> dict[str, str]:
        return dict(self._messages)

    @property
    def success_messages(self) -> list[str]:
        return list(self._success_messages)

    # -- Derived data --

    def rules(self) -> dict[str, list[str]]:
        """Map each named field to its rule tokens."""
        return {
            field.name: field.field_rules
            for field in self.fields()
            if field.name
        }

    def transform(self, data: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``data`` with each field's transformers applied."""
        transformed = dict(data)
        for field in self.fields():
            if field.name in transformed:
                transformed[field.name] = field.apply_transformers(transformed[field.name])
        return transformed

    def describe(self) -> FormDescriptor:
        return FormDescriptor(
            name=self._name,
            title=self._title,
            endpoint=self._endpoint,
            method=self._method,
            configuration=dict(self._configuration),
            fields=[field.to_dict() for field in self.fields()],
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the frontend renderer."""
        return self.describe().model_dump()

    def _default_endpoint(self) -> str:
        return f"{ENDPOINT_PREFIX}/{self._name}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self._name!r}>"
