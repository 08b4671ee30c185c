"""
Urge commands for Defer CLI.

Log impulses as they happen, with or without a linked defer.
"""
import click

from defer.commands.common import announce_unlocks, echo_json, get_core, handle_errors
from defer.constants import DEFAULT_URGE_INTENSITY, URGE_INTENSITY_MAX, URGE_INTENSITY_MIN
from defer.utils import format_datetime


@click.group()
def urge():
    """Log and review urges."""
    pass


@urge.command(name="log")
@click.argument("identifier", required=False)
@click.option(
    "-i", "--intensity",
    type=int,
    default=DEFAULT_URGE_INTENSITY,
    show_default=True,
    help=f"Intensity from {URGE_INTENSITY_MIN} to {URGE_INTENSITY_MAX}; out-of-range values are clamped.",
)
@click.option("-n", "--note", help="What triggered the urge.")
@click.pass_context
def log_urge(ctx, identifier, intensity, note):
    """Record an urge, optionally against a defer."""
    core = get_core(ctx)
    with handle_errors():
        log = core.log_urge(identifier, intensity, note)
    click.echo(f"Logged urge at intensity {log.intensity}.")
    announce_unlocks(core)


@urge.command(name="fallback")
@click.argument("identifier")
@click.pass_context
def use_fallback(ctx, identifier):
    """Record that the defer's fallback action handled an urge."""
    core = get_core(ctx)
    with handle_errors():
        log = core.use_fallback(identifier)
    click.echo(log.note)
    announce_unlocks(core)


@urge.command(name="recent")
@click.option("-l", "--limit", type=int, help="How many urges to show.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def recent(ctx, limit, json_output):
    """Show the most recent urges, newest first."""
    core = get_core(ctx)
    logs = core.recent_urges(limit)

    if json_output:
        echo_json([log.model_dump(mode="json") for log in logs])
        return

    if not logs:
        click.echo("No urges logged.")
        return
    for log in logs:
        linked = f" [{log.defer_id[:8]}]" if log.defer_id else ""
        fallback = " (fallback)" if log.used_fallback_action else ""
        note = f" {log.note}" if log.note else ""
        click.echo(f"{format_datetime(log.logged_at)}  {log.intensity}/5{linked}{fallback}{note}")
