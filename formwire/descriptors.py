"""Serializable shapes of fields and forms, as sent to the frontend renderer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Option(BaseModel):
    """A single choice for select-like fields."""

    model_config = ConfigDict(extra="allow")

    label: Any
    value: Any


class FieldDescriptor(BaseModel):
    """Builder state of one field.

    Field order is the wire key order; aliases are the camelCase wire names
    (``default_value`` -> ``defaultValue``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    type: str = "text"
    label: str = ""
    required: bool = False
    rules: list[str] = Field(default_factory=list)
    options: list[Option] = Field(default_factory=list)
    default_value: Any = None
    component: str | None = None
    props: dict[str, Any] = Field(default_factory=dict)
    placeholder: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    help_text: str | None = None


class FormDescriptor(BaseModel):
    name: str
    title: str = ""
    endpoint: str = ""
    method: str = "POST"
    configuration: dict[str, Any] = Field(default_factory=dict)
    fields: list[dict[str, Any]] = Field(default_factory=list)
