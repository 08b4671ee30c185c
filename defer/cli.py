"""
CLI for Defer using .defer/ folder-based storage.

Uses DeferCore and managers exclusively.
"""
import logging
from pathlib import Path

import click

from defer import __version__
from defer.commands.achievements import achievements
from defer.commands.config import config
from defer.commands.export import export
from defer.commands.history import history
from defer.commands.item import item
from defer.commands.templates import templates
from defer.commands.urge import urge


@click.group()
@click.option(
    "-d", "--defer-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="DEFER_DIR",
    help="Path to the .defer/ directory. Defaults to .defer/ in the current directory.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(__version__, prog_name="defer")
@click.pass_context
def cli(ctx, defer_dir, verbose):
    """Delay impulsive decisions and track how you make them."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["defer_dir"] = defer_dir


cli.add_command(item)
cli.add_command(urge)
cli.add_command(history)
cli.add_command(achievements)
cli.add_command(templates)
cli.add_command(config)
cli.add_command(export)


if __name__ == '__main__':
    cli()
