"""CLI commands for formwire."""

import json

import click

from formwire.config import clear_settings_cache, get_settings, set_config_path
from formwire.exceptions import NotFound


@click.group()
@click.version_option(package_name="formwire")
@click.option(
    "-f",
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the app.yaml config file",
)
def cli(config_file):
    """formwire - declarative forms served as JSON."""
    if config_file:
        set_config_path(config_file)
        clear_settings_cache()


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def serve(host, port, reload, log_level):
    """Run the forms server."""
    import asyncio

    from hypercorn.asyncio import serve as hypercorn_serve
    from hypercorn.config import Config

    config = Config()
    config.application_path = "formwire.asgi:app"
    config.bind = [f"{host}:{port}"]
    config.loglevel = log_level.upper()

    if reload:
        config.use_reloader = True
        from hypercorn.run import run
        run(config)
        return

    from formwire.asgi import app

    asyncio.run(hypercorn_serve(app, config))


@cli.command("list")
def list_forms():
    """List registered forms."""
    from formwire.app_factory import build_registry

    registry = build_registry(get_settings())
    if not len(registry):
        click.echo("No forms registered.")
        return

    for name in sorted(registry.names()):
        form = registry.get(name)
        click.echo(f"{name}\t{form.method}\t{form.endpoint}")


@cli.command()
@click.argument("name")
def show(name):
    """Print a form's JSON descriptor."""
    from formwire.app_factory import build_registry

    registry = build_registry(get_settings())
    try:
        form = registry.get(name)
    except NotFound as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(json.dumps(form.to_dict(), indent=2, default=str))
