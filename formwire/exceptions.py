"""Error types raised by the form system, plus the HTTP handler for unknown forms."""

from __future__ import annotations

from litestar import Request, Response
from litestar.status_codes import HTTP_404_NOT_FOUND


class FormError(Exception):
    """Base class for form system errors."""


class ConfigurationError(FormError, ValueError):
    """A builder was given input it cannot use (e.g. a non-enum options source)."""


class InvalidReference(FormError, TypeError):
    """A class reference used for registration is missing or is not a concrete Form."""


class NotFound(FormError, LookupError):
    """No form is registered under the requested name."""

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        self.available = sorted(available or [])
        listing = ", ".join(self.available) or "(none)"
        super().__init__(f"Form '{name}' not found. Registered: {listing}")


class HandlerFailure(FormError):
    """Wraps an exception raised by a form's handle() method."""

    def __init__(self, form_name: str, original: Exception):
        self.form_name = form_name
        self.original = original
        super().__init__(str(original))


def form_not_found_handler(request: Request, exc: NotFound) -> Response:
    """Render NotFound as the JSON 404 body consumed by the frontend."""
    return Response(
        content={"error": "Form not found", "message": str(exc)},
        status_code=HTTP_404_NOT_FOUND,
        media_type="application/json",
    )
