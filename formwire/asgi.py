"""ASGI entry point: ``hypercorn formwire.asgi:app``."""

from formwire.app_factory import create_app

app = create_app()
