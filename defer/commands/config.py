"""
Config command group for Defer CLI.

Commands for viewing and editing settings stored in .defer/config.json.
"""
import click

from defer.commands.common import echo_json, get_core, handle_errors
from defer.models.files import ConfigFile


def _coerce(key: str, value: str):
    """Turn command-line text into the type the config field expects."""
    if key == "date_formats":
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


@click.group()
def config():
    """View and edit configuration.

    Configuration is stored in .defer/config.json.
    """
    pass


@config.command(name="show")
@click.pass_context
def show_config(ctx):
    """Show current configuration."""
    core = get_core(ctx)
    with handle_errors():
        echo_json(core.get_config().model_dump(mode="json"))


@config.command(name="get")
@click.argument("key")
@click.pass_context
def get_config(ctx, key):
    """Get a configuration value."""
    if key not in ConfigFile.model_fields:
        raise click.ClickException(f"Unknown config key '{key}'.")
    core = get_core(ctx)
    with handle_errors():
        value = getattr(core.get_config(), key)
    if isinstance(value, list):
        click.echo(", ".join(value))
    else:
        click.echo(value)


@config.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_config(ctx, key, value):
    """Set a configuration value."""
    core = get_core(ctx)
    with handle_errors():
        core.set_config(key, _coerce(key, value))
    click.echo(f"Set {key} = {value}")
