"""Build the registry from settings and wire it into a Litestar app."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

from litestar import Litestar
from litestar.di import Provide

from formwire.config import Settings, get_settings
from formwire.controllers import FormController
from formwire.processor import SubmissionProcessor
from formwire.registry import FormRegistrar, FormRegistry
from formwire.validation import RuleEngine

logger = logging.getLogger(__name__)


def build_registry(settings: Settings) -> FormRegistry:
    """Create a registry holding the forms listed in settings.forms."""
    # Working directory on sys.path so local form modules import
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    registry = FormRegistry()
    registrar = FormRegistrar(registry).add_many(settings.forms.classes)
    for module_path in settings.forms.modules:
        registrar.from_module(module_path)
    registrar.register()

    logger.info("Registered %d form(s): %s", len(registry), ", ".join(registry.names()))
    return registry


def form_dependencies(
    registry: FormRegistry, engine: RuleEngine | None = None
) -> dict[str, Provide]:
    """Litestar dependencies consumed by FormController."""
    processor = SubmissionProcessor(registry, engine)
    return {
        "form_registry": Provide(lambda: registry, use_cache=True, sync_to_thread=False),
        "submission_processor": Provide(lambda: processor, use_cache=True, sync_to_thread=False),
    }


def create_app(
    registry: FormRegistry | None = None,
    *,
    settings: Settings | None = None,
    engine: RuleEngine | None = None,
    **litestar_kwargs: Any,
) -> Litestar:
    """Create the forms application.

    Without an explicit registry, one is built from settings (app.yaml).
    """
    settings = settings or get_settings()
    if registry is None:
        registry = build_registry(settings)

    app = Litestar(
        route_handlers=[FormController],
        dependencies=form_dependencies(registry, engine),
        debug=settings.debug,
        **litestar_kwargs,
    )
    app.state.form_registry = registry
    return app
