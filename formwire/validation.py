"""Rule-token validation engine.

Rule tokens are strings of the form ``name`` or ``name:param1,param2``,
e.g. ``required``, ``max:255``, ``after_or_equal:2024-01-01``. The
SubmissionProcessor only depends on the RuleEngine protocol; RuleValidator
is the default implementation covering the tokens the field builders emit.

Usage:
    validator = RuleValidator()
    errors = validator.validate(
        {"age": ["required", "integer", "min:18"]},
        {"age": 12},
    )
    # {"age": ["The age field must be at least 18."]}
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Mapping, Protocol, Sequence, runtime_checkable

from pydantic import AnyUrl, ConfigDict, EmailStr, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

# Rules that still run when the value is missing or empty
IMPLICIT_RULES = frozenset({"required", "accepted"})

# Flags that change how other rules are applied but never fail themselves
MODIFIER_RULES = frozenset({"nullable", "sometimes", "bail"})

# Presence of any of these makes min/max/between/size compare numerically
NUMERIC_RULES = frozenset({"numeric", "integer", "decimal"})

SIZE_RULES = frozenset({"min", "max", "between", "size"})

# Rules whose single parameter may itself contain commas
UNSPLIT_RULES = frozenset({"regex", "not_regex", "date_format"})

DEFAULT_MESSAGES: dict[str, str] = {
    "required": "The :attribute field is required.",
    "accepted": "The :attribute field must be accepted.",
    "string": "The :attribute field must be a string.",
    "email": "The :attribute field must be a valid email address.",
    "url": "The :attribute field must be a valid URL.",
    "numeric": "The :attribute field must be a number.",
    "integer": "The :attribute field must be an integer.",
    "boolean": "The :attribute field must be true or false.",
    "array": "The :attribute field must be an array.",
    "decimal": "The :attribute field must have :decimal decimal places.",
    "min.numeric": "The :attribute field must be at least :min.",
    "min.string": "The :attribute field must be at least :min characters.",
    "min.array": "The :attribute field must have at least :min items.",
    "max.numeric": "The :attribute field must not be greater than :max.",
    "max.string": "The :attribute field must not be greater than :max characters.",
    "max.array": "The :attribute field must not have more than :max items.",
    "between.numeric": "The :attribute field must be between :min and :max.",
    "between.string": "The :attribute field must be between :min and :max characters.",
    "between.array": "The :attribute field must have between :min and :max items.",
    "size.numeric": "The :attribute field must be :size.",
    "size.string": "The :attribute field must be :size characters.",
    "size.array": "The :attribute field must contain :size items.",
    "in": "The selected :attribute is invalid.",
    "not_in": "The selected :attribute is invalid.",
    "regex": "The :attribute field format is invalid.",
    "not_regex": "The :attribute field format is invalid.",
    "date": "The :attribute field must be a valid date.",
    "date_format": "The :attribute field must match the format :format.",
    "after": "The :attribute field must be a date after :date.",
    "before": "The :attribute field must be a date before :date.",
    "after_or_equal": "The :attribute field must be a date after or equal to :date.",
    "before_or_equal": "The :attribute field must be a date before or equal to :date.",
    "confirmed": "The :attribute field confirmation does not match.",
    "same": "The :attribute field must match :other.",
}

# Submitted values are coerced through pydantic in lax mode
_FLOAT = TypeAdapter(float, config=ConfigDict(allow_inf_nan=False))
_INT = TypeAdapter(int)
_DATE = TypeAdapter(date)
_DATETIME = TypeAdapter(datetime)
_URL = TypeAdapter(AnyUrl)
_EMAIL = TypeAdapter(EmailStr)

_PLACEHOLDER_PATTERN = re.compile(r":([a-z_]+)")

# PHP-style date format characters and their strptime equivalents
_DATE_FORMAT_CHARS = {
    "Y": "%Y", "y": "%y", "m": "%m", "n": "%m", "d": "%d", "j": "%d",
    "H": "%H", "G": "%H", "h": "%I", "g": "%I", "i": "%M", "s": "%S",
    "A": "%p", "a": "%p", "D": "%a", "l": "%A", "M": "%b", "F": "%B",
}


@runtime_checkable
class RuleEngine(Protocol):
    """Evaluates rule tokens against submitted data."""

    def validate(
        self,
        rules: Mapping[str, Sequence[str]],
        data: Mapping[str, Any],
        messages: Mapping[str, str] | None = None,
    ) -> dict[str, list[str]]: ...


@dataclass
class RuleContext:
    """Everything a rule check can look at."""

    field: str
    value: Any
    params: list[str]
    data: Mapping[str, Any]
    numeric: bool

    @property
    def size_kind(self) -> str:
        if self.numeric or _is_number(self.value):
            return "numeric"
        if isinstance(self.value, (list, tuple, dict)):
            return "array"
        return "string"

    @property
    def size(self) -> float | None:
        kind = self.size_kind
        if kind == "numeric":
            return _to_number(self.value)
        if kind == "array" or isinstance(self.value, str):
            return len(self.value)
        return None


RuleCheck = Callable[[RuleContext], bool]


def parse_rule(token: str) -> tuple[str, list[str]]:
    """Split a rule token into its name and parameters. max:255 -> ("max", ["255"])"""
    name, _, params = token.partition(":")
    name = name.strip()
    if not params:
        return name, []
    if name in UNSPLIT_RULES:
        return name, [params]
    return name, [param.strip() for param in params.split(",")]


# -- Value helpers --


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(value: Any) -> float | None:
    if _is_number(value):
        return float(value)
    if not isinstance(value, str):
        return None
    try:
        return _FLOAT.validate_python(value.strip())
    except ValidationError:
        return None


def _to_datetime(value: Any) -> datetime | None:
    """Coerce a date, datetime or ISO string to a naive UTC datetime."""
    if isinstance(value, str):
        value = value.strip()
        # pydantic reads bare numbers as unix timestamps
        if _to_number(value) is not None:
            return None
    elif not isinstance(value, date):
        return None
    try:
        parsed = _DATETIME.validate_python(value)
    except ValidationError:
        try:
            parsed = datetime.combine(_DATE.validate_python(value), time())
        except ValidationError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _resolve_date_bound(param: str, data: Mapping[str, Any]) -> datetime | None:
    """A date bound is an ISO date, today/tomorrow/yesterday, or another field's name."""
    today = datetime.combine(date.today(), time())
    relative = {
        "today": today,
        "tomorrow": today + timedelta(days=1),
        "yesterday": today - timedelta(days=1),
    }
    if param in relative:
        return relative[param]
    if param in data:
        return _to_datetime(data[param])
    return _to_datetime(param)


def _strptime_format(date_format: str) -> str:
    if "%" in date_format:
        return date_format
    return "".join(_DATE_FORMAT_CHARS.get(char, char) for char in date_format)


def _compile_regex(param: str) -> re.Pattern:
    """Compile a /pattern/flags regex parameter; bare patterns are used as-is."""
    if param.startswith("/") and param.rfind("/") > 0:
        end = param.rfind("/")
        flags = 0
        for flag in param[end + 1:]:
            flags |= {"i": re.I, "m": re.M, "s": re.S, "x": re.X}.get(flag, 0)
        return re.compile(param[1:end], flags)
    return re.compile(param)


def _decimal_places(value: Any) -> int | None:
    if _to_number(value) is None:
        return None
    text = value.strip() if isinstance(value, str) else repr(value)
    mantissa = re.split(r"[eE]", text)[0]
    if "." not in mantissa:
        return 0
    return len(mantissa.split(".", 1)[1])


# -- Rule checks --


def _check_required(ctx: RuleContext) -> bool:
    return not _is_empty(ctx.value)


def _check_accepted(ctx: RuleContext) -> bool:
    value = ctx.value
    if isinstance(value, str):
        return value.lower() in ("yes", "on", "1", "true")
    return value is True or (_is_number(value) and value == 1)


def _check_integer(ctx: RuleContext) -> bool:
    value = ctx.value
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return False
    try:
        _INT.validate_python(value.strip() if isinstance(value, str) else value)
    except ValidationError:
        return False
    return True


def _check_boolean(ctx: RuleContext) -> bool:
    value = ctx.value
    if isinstance(value, bool):
        return True
    if _is_number(value):
        return value in (0, 1)
    return isinstance(value, str) and value in ("0", "1")


def _check_url(ctx: RuleContext) -> bool:
    if not isinstance(ctx.value, str):
        return False
    try:
        url = _URL.validate_python(ctx.value)
    except ValidationError:
        return False
    return url.host is not None


def _check_email(ctx: RuleContext) -> bool:
    if not isinstance(ctx.value, str):
        return False
    try:
        _EMAIL.validate_python(ctx.value)
    except ValidationError:
        return False
    return True


def _check_decimal(ctx: RuleContext) -> bool:
    places = _decimal_places(ctx.value)
    if places is None:
        return False
    low = int(ctx.params[0])
    high = int(ctx.params[1]) if len(ctx.params) > 1 else low
    return low <= places <= high


def _size_check(compare: Callable[[float, list[float]], bool]) -> RuleCheck:
    def check(ctx: RuleContext) -> bool:
        size = ctx.size
        if size is None:
            return False
        return compare(size, [float(param) for param in ctx.params])

    return check


def _check_in(ctx: RuleContext) -> bool:
    values = ctx.value if isinstance(ctx.value, (list, tuple)) else [ctx.value]
    return all(str(value) in ctx.params for value in values)


def _check_date_format(ctx: RuleContext) -> bool:
    if not isinstance(ctx.value, str):
        return False
    try:
        datetime.strptime(ctx.value, _strptime_format(ctx.params[0]))
    except ValueError:
        return False
    return True


def _date_check(compare: Callable[[datetime, datetime], bool]) -> RuleCheck:
    def check(ctx: RuleContext) -> bool:
        value = _to_datetime(ctx.value)
        bound = _resolve_date_bound(ctx.params[0], ctx.data) if ctx.params else None
        if value is None or bound is None:
            return False
        return compare(value, bound)

    return check


BUILTIN_RULES: dict[str, RuleCheck] = {
    "required": _check_required,
    "accepted": _check_accepted,
    "string": lambda ctx: isinstance(ctx.value, str),
    "email": _check_email,
    "url": _check_url,
    "numeric": lambda ctx: _to_number(ctx.value) is not None,
    "integer": _check_integer,
    "boolean": _check_boolean,
    "array": lambda ctx: isinstance(ctx.value, (list, tuple, dict)),
    "decimal": _check_decimal,
    "min": _size_check(lambda size, p: size >= p[0]),
    "max": _size_check(lambda size, p: size <= p[0]),
    "between": _size_check(lambda size, p: p[0] <= size <= p[1]),
    "size": _size_check(lambda size, p: size == p[0]),
    "in": _check_in,
    "not_in": lambda ctx: not _check_in(ctx),
    "regex": lambda ctx: bool(_compile_regex(ctx.params[0]).search(str(ctx.value))),
    "not_regex": lambda ctx: not _compile_regex(ctx.params[0]).search(str(ctx.value)),
    "date": lambda ctx: _to_datetime(ctx.value) is not None,
    "date_format": _check_date_format,
    "after": _date_check(lambda value, bound: value > bound),
    "before": _date_check(lambda value, bound: value < bound),
    "after_or_equal": _date_check(lambda value, bound: value >= bound),
    "before_or_equal": _date_check(lambda value, bound: value <= bound),
    "confirmed": lambda ctx: ctx.data.get(f"{ctx.field}_confirmation") == ctx.value,
    "same": lambda ctx: ctx.data.get(ctx.params[0]) == ctx.value,
}


def _placeholders(rule: str, params: list[str]) -> dict[str, str]:
    first = params[0] if params else ""
    if rule in ("min", "max"):
        return {rule: first}
    if rule == "between":
        return {"min": first, "max": params[1] if len(params) > 1 else ""}
    if rule == "size":
        return {"size": first}
    if rule in ("in", "not_in"):
        return {"values": ", ".join(params)}
    if rule in ("after", "before", "after_or_equal", "before_or_equal"):
        return {"date": first}
    if rule == "date_format":
        return {"format": first}
    if rule == "same":
        return {"other": first.replace("_", " ")}
    if rule == "decimal":
        return {"decimal": "-".join(params)}
    return {}


class RuleValidator:
    """Default RuleEngine. Extend with add_rule() for application-specific tokens."""

    def __init__(self) -> None:
        self._rules: dict[str, RuleCheck] = dict(BUILTIN_RULES)
        self._messages: dict[str, str] = dict(DEFAULT_MESSAGES)

    def add_rule(self, name: str, check: RuleCheck, message: str) -> None:
        """Register a custom rule token. ``check`` returns True when the value passes."""
        self._rules[name] = check
        self._messages[name] = message

    def validate(
        self,
        rules: Mapping[str, Sequence[str]],
        data: Mapping[str, Any],
        messages: Mapping[str, str] | None = None,
    ) -> dict[str, list[str]]:
        """Return field -> error messages. An empty dict means the data passed."""
        errors: dict[str, list[str]] = {}
        for field, tokens in rules.items():
            field_errors = self._validate_field(
                field, [parse_rule(token) for token in tokens], data, messages or {}
            )
            if field_errors:
                errors[field] = field_errors
        return errors

    def _validate_field(
        self,
        field: str,
        parsed: list[tuple[str, list[str]]],
        data: Mapping[str, Any],
        messages: Mapping[str, str],
    ) -> list[str]:
        names = {name for name, _ in parsed}
        if "sometimes" in names and field not in data:
            return []

        value = data.get(field)
        if value is None and "nullable" in names:
            return []

        empty = _is_empty(value)
        numeric = bool(names & NUMERIC_RULES)
        errors = []
        for name, params in parsed:
            if name in MODIFIER_RULES or (empty and name not in IMPLICIT_RULES):
                continue
            check = self._rules.get(name)
            if check is None:
                logger.warning("Unknown validation rule %r on field %s; skipping", name, field)
                continue
            ctx = RuleContext(field=field, value=value, params=params, data=data, numeric=numeric)
            if not check(ctx):
                errors.append(self._message(ctx, name, messages))
        return errors

    def _message(self, ctx: RuleContext, rule: str, overrides: Mapping[str, str]) -> str:
        template = overrides.get(f"{ctx.field}.{rule}") or overrides.get(rule)
        if template is None:
            key = f"{rule}.{ctx.size_kind}" if rule in SIZE_RULES else rule
            template = self._messages.get(key, "The :attribute field is invalid.")

        replacements = {"attribute": ctx.field.replace("_", " ")}
        replacements.update(_placeholders(rule, ctx.params))
        return _PLACEHOLDER_PATTERN.sub(
            lambda match: replacements.get(match.group(1), match.group(0)), template
        )
