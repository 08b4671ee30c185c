"""
Export command for Defer CLI.

Writes every item, decision, urge and achievement as one JSON document,
or as a sectioned CSV file.
"""
import json
from pathlib import Path

import click

from defer.commands.common import get_core


@click.command(name="export")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to a file instead of stdout.",
)
@click.option(
    "-f", "--format", "export_format",
    type=click.Choice(["json", "csv"]),
    default="json",
    show_default=True,
    help="Export format.",
)
@click.pass_context
def export(ctx, output, export_format):
    """Export all Defer data as JSON or CSV."""
    core = get_core(ctx)
    if export_format == "csv":
        content = core.export_csv()
    else:
        content = json.dumps(core.export_data(), indent=2)

    if output is None:
        click.echo(content)
        return

    try:
        output.write_text(content)
    except OSError as e:
        raise click.ClickException(f"Failed to write {output}: {e}")
    click.echo(f"Exported {len(core.all_defers())} defers to {output}.")
