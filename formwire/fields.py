"""Fluent field builders.

Every setter returns the field itself so configuration can be chained:

    TextInputField.make("email")
        .set_label("Email Address")
        .set_required()
        .rules(["email"])

Typed setters on the subclasses are sugar over ``props`` and the rule list.
The rule tokens they append are consumed by the rule engine and must keep
their exact spelling (``after_or_equal:2024-01-01``, ``decimal:0,2``).
"""

from __future__ import annotations

import enum
import importlib
from collections.abc import Mapping
from typing import Any, Callable, ClassVar

from pydantic import ValidationError

from formwire.descriptors import FieldDescriptor, Option
from formwire.exceptions import ConfigurationError


def ucfirst(value: str) -> str:
    """Uppercase the first character only. total_amount -> Total_amount"""
    return value[:1].upper() + value[1:]


def format_bound(value: Any) -> str:
    """Render a numeric bound for a rule token; integral floats drop the '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _load_enum(spec: str) -> type[enum.Enum]:
    """Import an enum class from a 'module:EnumName' string."""
    parts = spec.split(":")
    if len(parts) != 2 or not all(parts):
        raise ConfigurationError(
            f"Invalid options spec '{spec}': must be in format 'module:EnumName'"
        )
    module_path, enum_name = parts
    try:
        module = importlib.import_module(module_path)
        return getattr(module, enum_name)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"The enum {spec} does not exist.") from exc


def resolve_options(source: Any) -> list[Option]:
    """Normalize an options source to an ordered list of Option.

    Accepts a sequence of ``{label, value}`` items, a ``{value: label}``
    mapping, an Enum subclass, or a ``"module:EnumName"`` spec string.
    """
    if isinstance(source, str):
        source = _load_enum(source)

    if isinstance(source, type):
        if not issubclass(source, enum.Enum):
            raise ConfigurationError(f"The class {source.__qualname__} is not an enum.")
        return [Option(label=member.name, value=member.value) for member in source]

    if isinstance(source, Mapping):
        return [Option(label=label, value=value) for value, label in source.items()]

    if isinstance(source, (list, tuple)):
        try:
            return [
                item if isinstance(item, Option) else Option.model_validate(item)
                for item in source
            ]
        except ValidationError as exc:
            raise ConfigurationError(
                "Options must be {label, value} pairs"
            ) from exc

    raise ConfigurationError(f"Unsupported options source: {type(source).__name__}")


class FormField:
    """Base field builder. Holds a FieldDescriptor and mutates it fluently."""

    default_type: ClassVar[str] = "text"

    def __init__(self, name: str = ""):
        self.descriptor = FieldDescriptor(
            name=name, label=ucfirst(name), type=self.default_type
        )
        self._transformers: list[Callable[[Any], Any]] = []

    @classmethod
    def make(cls, name: str):
        return cls(name)

    # -- Fluent setters --

    def set_name(self, name: str):
        self.descriptor.name = name
        return self

    def set_label(self, label: str):
        self.descriptor.label = label
        return self

    def type(self, field_type: str):
        self.descriptor.type = field_type
        return self

    def set_required(self, required: bool = True):
        self.descriptor.required = required
        return self

    def rules(self, rules: list[str]):
        """Replace the rule list."""
        self.descriptor.rules = list(rules)
        return self

    def set_options(self, options: Any):
        self.descriptor.options = resolve_options(options)
        return self

    def set_default_value(self, value: Any):
        self.descriptor.default_value = value
        return self

    def set_placeholder(self, placeholder: str):
        self.descriptor.placeholder = placeholder
        return self

    def set_help_text(self, help_text: str):
        self.descriptor.help_text = help_text
        return self

    def set_help(self, help_text: str):
        """Alias for set_help_text()."""
        return self.set_help_text(help_text)

    def component(self, component: str):
        self.descriptor.component = component
        return self

    def props(self, props: dict[str, Any]):
        """Shallow-merge into the renderer props; later keys win."""
        self.descriptor.props.update(props)
        return self

    def attributes(self, attributes: dict[str, Any]):
        self.descriptor.attributes.update(attributes)
        return self

    def add_transformer(self, transformer: Callable[[Any], Any]):
        self._transformers.append(transformer)
        return self

    def apply_transformers(self, value: Any) -> Any:
        for transformer in self._transformers:
            value = transformer(value)
        return value

    # -- Read access --

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def label(self) -> str:
        return self.descriptor.label or ucfirst(self.descriptor.name)

    @property
    def field_type(self) -> str:
        return self.descriptor.type

    @property
    def required(self) -> bool:
        return self.descriptor.required

    @property
    def field_rules(self) -> list[str]:
        """Rule tokens as serialized. Required fields lead with 'required'."""
        rules = list(self.descriptor.rules)
        if self.descriptor.required and "required" not in rules:
            rules.insert(0, "required")
        return rules

    @property
    def field_props(self) -> dict[str, Any]:
        return dict(self.descriptor.props)

    @property
    def options(self) -> list[dict[str, Any]]:
        return [option.model_dump() for option in self.descriptor.options]

    @property
    def default_value(self) -> Any:
        return self.descriptor.default_value

    @property
    def placeholder(self) -> str | None:
        return self.descriptor.placeholder

    @property
    def help_text(self) -> str | None:
        return self.descriptor.help_text

    # -- Serialization --

    def to_dict(self) -> dict[str, Any]:
        data = self.descriptor.model_dump(by_alias=True)
        data["label"] = self.label
        data["rules"] = self.field_rules
        return data

    def _append_rule(self, token: str) -> None:
        self.descriptor.rules.append(token)

    def _ensure_rule(self, token: str) -> None:
        if token not in self.descriptor.rules:
            self.descriptor.rules.append(token)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class TextInputField(FormField):
    default_type = "text"

    def input_type(self, input_type: str):
        """Switch the HTML input type (email, password, tel, ...)."""
        return self.type(input_type)

    def max_length(self, max_length: int):
        self.descriptor.props["maxlength"] = max_length
        self._append_rule(f"max:{max_length}")
        return self

    def min_length(self, min_length: int):
        self.descriptor.props["minlength"] = min_length
        self._append_rule(f"min:{min_length}")
        return self

    def pattern(self, pattern: str):
        self.descriptor.props["pattern"] = pattern
        return self


class TextareaField(FormField):
    default_type = "textarea"

    def rows(self, rows: int):
        self.descriptor.props["rows"] = rows
        return self

    def set_rows(self, rows: int):
        return self.rows(rows)

    def cols(self, cols: int):
        self.descriptor.props["cols"] = cols
        return self

    def max_length(self, max_length: int):
        self.descriptor.props["maxlength"] = max_length
        self._append_rule(f"max:{max_length}")
        return self


class SelectField(FormField):
    default_type = "select"

    def multiple(self, multiple: bool = True):
        self.descriptor.props["multiple"] = multiple
        return self

    def placeholder_option(self, placeholder: str):
        """Text of the empty leading option, stored in props."""
        self.descriptor.props["placeholder"] = placeholder
        return self


class CheckboxField(FormField):
    default_type = "checkbox"

    def value(self, value: Any):
        """Value submitted when the box is checked."""
        self.descriptor.props["value"] = value
        return self


class DateField(FormField):
    """Date input. Bounds are ISO date strings and go into both props and rules."""

    default_type = "date"

    def min(self, min_date: str):
        self.descriptor.props["min"] = min_date
        self._append_rule(f"after_or_equal:{min_date}")
        return self

    def max(self, max_date: str):
        self.descriptor.props["max"] = max_date
        self._append_rule(f"before_or_equal:{max_date}")
        return self

    def format(self, date_format: str):
        self._append_rule(f"date_format:{date_format}")
        return self

    def after(self, date: str):
        self._append_rule(f"after:{date}")
        return self

    def before(self, date: str):
        self._append_rule(f"before:{date}")
        return self


class NumberField(FormField):
    """Number input. Bounds add a ``numeric`` rule so submitted strings compare by value."""

    default_type = "number"

    def set_min(self, minimum: int | float):
        self.descriptor.props["min"] = minimum
        self._ensure_rule("numeric")
        self._append_rule(f"min:{format_bound(minimum)}")
        return self

    def set_max(self, maximum: int | float):
        self.descriptor.props["max"] = maximum
        self._ensure_rule("numeric")
        self._append_rule(f"max:{format_bound(maximum)}")
        return self

    def set_step(self, step: str | int | float):
        self.descriptor.props["step"] = step
        return self

    def decimal(self, precision: int = 2):
        """Accept numbers with up to ``precision`` decimal places."""
        self._ensure_rule("numeric")
        self._append_rule(f"decimal:0,{precision}")
        return self.set_step(f"{10 ** -precision:.{precision}f}")

    def integer(self):
        self._append_rule("integer")
        return self.set_step("1")

    def positive(self):
        return self.set_min(0)

    def between(self, minimum: int | float, maximum: int | float):
        return self.set_min(minimum).set_max(maximum)


class FileUploadField(FormField):
    default_type = "file"

    def accept(self, accept: str):
        self.descriptor.props["accept"] = accept
        return self

    def multiple(self, multiple: bool = True):
        self.descriptor.props["multiple"] = multiple
        return self

    def max_size(self, max_size: int):
        """Maximum upload size in bytes."""
        self.descriptor.props["maxSize"] = max_size
        return self

    def set_configuration(self, configuration: dict[str, Any]):
        """Apply accept / maxFileSize (kilobytes) / multiple in one call."""
        if "accept" in configuration:
            self.accept(configuration["accept"])
        if "maxFileSize" in configuration:
            self.max_size(configuration["maxFileSize"] * 1024)
        if "multiple" in configuration:
            self.multiple(configuration["multiple"])
        return self
