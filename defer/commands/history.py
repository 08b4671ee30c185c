"""
History commands for Defer CLI.

Summaries, category breakdowns, monthly rhythm and a day-grouped timeline
of resolved decisions.
"""
import click

from defer.commands.common import CATEGORY_CHOICE, echo_json, get_core, parse_category
from defer.constants import HISTORY_BAR_WIDTH
from defer.utils import format_date, format_percent


@click.group()
def history():
    """Review resolved decisions."""
    pass


@history.command(name="summary")
@click.option("-c", "--category", type=CATEGORY_CHOICE, help="Only count one category.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def summary(ctx, category, json_output):
    """Show decision totals and rates."""
    core = get_core(ctx)
    metrics = core.history_summary(parse_category(category))

    if json_output:
        echo_json(metrics.model_dump(mode="json"))
        return

    click.echo(f"Decisions: {metrics.decision_count}")
    click.echo(
        f"Intentional: {metrics.intentional_count} ({metrics.intentional_rate}%)  "
        f"Impulsive: {metrics.impulsive_count}"
    )
    click.echo(f"Waited until the checkpoint: {metrics.honored_count} ({metrics.honored_rate}%)")
    click.echo(f"With reflection: {metrics.reflection_count} ({metrics.reflection_rate}%)")
    click.echo(f"Average wait: {metrics.average_duration_days} day(s)")
    click.echo(f"Estimated cost deferred: {metrics.total_estimated_cost_deferred:.2f}")


@history.command(name="categories")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def categories(ctx, json_output):
    """Show decisions per category, most used first."""
    core = get_core(ctx)
    stats = core.category_breakdown()

    if json_output:
        echo_json([stat.model_dump(mode="json") for stat in stats])
        return

    if not stats:
        click.echo("No decisions yet.")
        return
    for stat in stats:
        click.echo(
            f"{stat.category.display_name:<14} {stat.count:>4}  "
            f"{format_percent(stat.intentional_ratio, core.percentage_precision)} intentional"
        )


@history.command(name="rhythm")
@click.option("-c", "--category", type=CATEGORY_CHOICE, help="Only count one category.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def rhythm(ctx, category, json_output):
    """Show decisions per month, including quiet months."""
    core = get_core(ctx)
    months = core.monthly_rhythm(parse_category(category))

    if json_output:
        echo_json([{**month.model_dump(mode="json"), "label": month.label} for month in months])
        return

    if not months:
        click.echo("No decisions yet.")
        return
    peak = max(month.count for month in months) or 1
    for month in months:
        bar = "#" * round(month.count / peak * HISTORY_BAR_WIDTH)
        click.echo(f"{month.label:<9} {month.count:>4} {bar}")


@history.command(name="timeline")
@click.option("-c", "--category", type=CATEGORY_CHOICE, help="Only show one category.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def timeline(ctx, category, json_output):
    """Show decisions grouped by day, newest first."""
    core = get_core(ctx)
    groups = core.timeline(parse_category(category))

    if json_output:
        echo_json([group.model_dump(mode="json") for group in groups])
        return

    if not groups:
        click.echo("No decisions yet.")
        return
    for group in groups:
        click.echo(format_date(group.day))
        for record in group.records:
            mark = "+" if record.is_intentional else "-"
            click.echo(f"  {mark} {record.defer_title} ({record.category.display_name})")
            if record.reflection:
                click.echo(f"      {record.reflection}")
