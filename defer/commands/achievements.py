"""
Achievement commands for Defer CLI.

Lists the badge catalog with progress and manages the showcased badge.
"""
import click

from defer.commands.common import echo_json, get_core, handle_errors
from defer.utils import format_date, format_percent


@click.group()
def achievements():
    """View achievements and pick one to showcase."""
    pass


@achievements.command(name="list")
@click.option("--locked/--no-locked", default=True, help="Include locked achievements.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def list_achievements(ctx, locked, json_output):
    """Show unlocked and locked achievements with progress."""
    core = get_core(ctx)
    snapshot = core.achievement_snapshot()
    unlocked_by_key = core.achievement_engine.unlocked_by_key(core.achievements)

    if json_output:
        echo_json({
            "summary_title": snapshot.summary_title,
            "summary_subtitle": snapshot.summary_subtitle,
            "completion_ratio": snapshot.completion_ratio,
            "showcased_key": snapshot.showcased_key,
            "progress": snapshot.progress.model_dump(mode="json"),
            "unlocked": [
                {
                    "key": d.key,
                    "title": d.title,
                    "tier": d.tier.value,
                    "unlocked_at": unlocked_by_key[d.key].unlocked_at.isoformat(),
                }
                for d in snapshot.unlocked
            ],
            "locked": [
                {
                    "key": d.key,
                    "title": d.title,
                    "tier": d.tier.value,
                    "progress": d.rule.progress_text(snapshot.progress),
                }
                for d in snapshot.locked
            ],
        })
        return

    click.echo(snapshot.summary_title)
    click.echo(snapshot.summary_subtitle)
    click.echo(
        f"{len(snapshot.unlocked)}/{len(core.achievement_engine.catalog)} unlocked "
        f"({format_percent(snapshot.completion_ratio, core.percentage_precision)})"
    )

    for definition in snapshot.unlocked:
        star = " *" if definition.key == snapshot.showcased_key else ""
        unlocked_at = format_date(unlocked_by_key[definition.key].unlocked_at)
        click.echo(
            f"  ✓ {definition.title} [{definition.tier.display_name}] {unlocked_at}{star}"
        )
    if locked:
        for definition in snapshot.locked:
            click.echo(
                f"    {definition.title} [{definition.tier.display_name}] "
                f"{definition.rule.progress_text(snapshot.progress)}"
            )


@achievements.command(name="showcase")
@click.argument("key", required=False)
@click.option("--clear", is_flag=True, help="Remove the showcased achievement.")
@click.pass_context
def showcase(ctx, key, clear):
    """Pin an unlocked achievement, or clear the pin."""
    core = get_core(ctx)
    if clear:
        core.clear_showcase()
        click.echo("Showcase cleared.")
        return
    if not key:
        raise click.UsageError("Give an achievement key or --clear.")
    with handle_errors():
        achievement = core.set_showcase(key)
    click.echo(f"Showcasing '{achievement.title}'.")


@achievements.command(name="evaluate")
@click.pass_context
def evaluate(ctx):
    """Re-check the catalog against current data."""
    core = get_core(ctx)
    unlocked = core.evaluate_achievements()
    if not unlocked:
        click.echo("No new achievements.")
        return
    for achievement in unlocked:
        click.echo(f"Achievement unlocked: {achievement.title} ({achievement.tier.display_name})")
