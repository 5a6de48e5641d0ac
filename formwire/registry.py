"""Form registry and a fluent registrar for populating it at startup."""

from __future__ import annotations

import importlib
import inspect
import logging
import threading
from typing import Any, Iterable

from formwire.exceptions import InvalidReference, NotFound
from formwire.form import Form

logger = logging.getLogger(__name__)

FormReference = type | str


def load_form_class(spec: str) -> type:
    """Import a form class from a 'module:ClassName' string.

    Raises InvalidReference if the spec is malformed or does not resolve.
    """
    parts = spec.split(":")
    if len(parts) != 2 or not all(parts):
        raise InvalidReference(
            f"Invalid form spec '{spec}': must be in format 'module:ClassName'"
        )
    module_path, class_name = parts
    try:
        module = importlib.import_module(module_path)
        return getattr(module, class_name)
    except (ImportError, AttributeError) as exc:
        raise InvalidReference(f"Form class {spec} does not exist.") from exc


def _check_form_class(cls: Any) -> type[Form]:
    if not inspect.isclass(cls) or not issubclass(cls, Form):
        raise InvalidReference(f"Form class {cls!r} must subclass Form.")
    if inspect.isabstract(cls):
        raise InvalidReference(
            f"Form class {cls.__qualname__} is abstract and cannot be registered."
        )
    return cls


class FormRegistry:
    """Name -> Form mapping.

    Forms are keyed by ``form.name``; registering a second form under the
    same name replaces the first. Intended to be filled once at startup and
    read per request.
    """

    def __init__(self) -> None:
        self._forms: dict[str, Form] = {}
        self._lock = threading.Lock()

    def register(self, form: Form) -> Form:
        with self._lock:
            if form.name in self._forms:
                logger.debug("Replacing registered form %s", form.name)
            self._forms[form.name] = form
        return form

    def register_class(self, reference: FormReference) -> Form:
        """Instantiate and register a Form class or 'module:ClassName' spec."""
        cls = load_form_class(reference) if isinstance(reference, str) else reference
        form_class = _check_form_class(cls)
        return self.register(form_class())

    def get(self, name: str) -> Form:
        try:
            return self._forms[name]
        except KeyError:
            raise NotFound(name, list(self._forms)) from None

    def get_all(self) -> dict[str, dict[str, Any]]:
        """Serialized snapshot of every registered form."""
        with self._lock:
            forms = list(self._forms.items())
        return {name: form.to_dict() for name, form in forms}

    def has(self, name: str) -> bool:
        return name in self._forms

    def names(self) -> list[str]:
        return list(self._forms)

    def clear(self) -> None:
        with self._lock:
            self._forms.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._forms

    def __len__(self) -> int:
        return len(self._forms)


class FormRegistrar:
    """Queue forms for registration, then register them in one call.

    Usage:
        FormRegistrar(registry)
            .add(ContactForm())
            .add_class("myapp.forms:SignupForm")
            .from_module("myapp.more_forms")
            .register()
    """

    def __init__(self, registry: FormRegistry):
        self.registry = registry
        self._queue: list[Form | FormReference] = []

    def add(self, form: Form):
        self._queue.append(form)
        return self

    def add_class(self, reference: FormReference):
        self._queue.append(reference)
        return self

    def add_many(self, items: Iterable[Form | FormReference]):
        self._queue.extend(items)
        return self

    def from_module(self, module_path: str):
        """Register every concrete Form subclass defined in a module.

        Registration happens immediately. Classes that cannot be registered,
        including ones whose constructor needs arguments, are skipped.
        """
        module = importlib.import_module(module_path)
        for _, candidate in inspect.getmembers(module, inspect.isclass):
            if candidate.__module__ != module.__name__:
                continue
            try:
                self.registry.register_class(candidate)
            except (InvalidReference, TypeError) as exc:
                logger.debug("Skipping %s.%s: %s", module_path, candidate.__name__, exc)
        return self

    def register(self) -> None:
        """Register all queued forms and empty the queue."""
        queued, self._queue = self._queue, []
        for item in queued:
            if isinstance(item, Form):
                self.registry.register(item)
            else:
                self.registry.register_class(item)
