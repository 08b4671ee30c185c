"""
Item commands for Defer CLI using DeferCore.

Create, list and inspect defers and move them through their lifecycle.
Items are addressed by UUID or any unique UUID prefix.
"""
import click

from defer.commands.common import (
    announce_unlocks,
    CATEGORY_CHOICE,
    PROTOCOL_CHOICE,
    build_protocol,
    echo_json,
    get_core,
    handle_errors,
    item_line,
    parse_category,
    parse_when,
)
from defer.models.enums import DecisionOutcome, SortOption, StreakEntryStatus
from defer.utils import format_datetime, format_percent, parse_estimated_cost


@click.group()
def item():
    """Manage deferred decisions."""
    pass


@item.command(name="add")
@click.argument("title", required=False, default="")
@click.option("-w", "--why", "why_it_matters", default="", help="Why waiting matters.")
@click.option("-c", "--category", type=CATEGORY_CHOICE, help="Category of the defer.")
@click.option("-p", "--protocol", type=PROTOCOL_CHOICE, help="Delay protocol.")
@click.option("-u", "--until", help="Custom decision date (implies custom_date).")
@click.option("--start", help="Start date. Defaults to now.")
@click.option("--cost", help="Estimated cost, e.g. 49.99 or 49,99.")
@click.option("-f", "--fallback", "fallback_action", default="", help="What to do instead.")
@click.option("--strict", "strict_mode", is_flag=True, help="Require a check-in every day.")
@click.option("-t", "--template", "template_id", help="Pre-fill from a template id.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output the new item as JSON.")
@click.pass_context
def add_item(ctx, title, why_it_matters, category, protocol, until, start, cost,
             fallback_action, strict_mode, template_id, json_output):
    """Start waiting on a new decision."""
    core = get_core(ctx)
    start_date = parse_when(start, core.date_formats) if start else None
    with handle_errors():
        if template_id:
            draft = core.draft_from_template(template_id, start_date)
        else:
            draft = core.new_draft()

        # Explicit options override template values
        if title:
            draft.title = title
        if why_it_matters:
            draft.why_it_matters = why_it_matters
        if category:
            draft.category = parse_category(category)
        if start_date:
            draft.start_date = start_date
        if protocol or until:
            draft.delay_protocol = build_protocol(protocol, until, core.date_formats)
        if cost is not None:
            draft.estimated_cost = parse_estimated_cost(cost)
        if fallback_action:
            draft.fallback_action = fallback_action
        if strict_mode:
            draft.strict_mode = True

        new_item = core.create(draft)

    if json_output:
        echo_json(new_item.model_dump(mode="json"))
        return
    click.echo(f"Created defer '{new_item.title}' ({new_item.uuid[:8]}).")
    click.echo(f"Decide on {format_datetime(new_item.decision_date)}.")


@item.command(name="list")
@click.option("-c", "--category", type=CATEGORY_CHOICE, help="Only show one category.")
@click.option(
    "-s", "--sort",
    type=click.Choice([s.value for s in SortOption]),
    default=SortOption.SOONEST.value,
    show_default=True,
    help="Ordering of pending items.",
)
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def list_items(ctx, category, sort, json_output):
    """List active defers."""
    core = get_core(ctx)
    now = core.clock()
    items = core.pending_items(parse_category(category), SortOption(sort))

    if json_output:
        echo_json([
            {
                **i.model_dump(mode="json"),
                "decision_date": i.decision_date.isoformat(),
                "progress_percent": i.progress_percent(now),
                "days_remaining": i.days_remaining(now),
                "is_checkpoint_due": i.is_checkpoint_due(now),
            }
            for i in items
        ])
        return

    if not items:
        click.echo("No active defers.")
        return
    for i in items:
        click.echo(item_line(i, now, core.percentage_precision))


@item.command(name="home")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def home(ctx, json_output):
    """Show items that need a decision, items still waiting and overall stats."""
    core = get_core(ctx)
    now = core.clock()
    stats = core.home_stats()
    due = core.needs_decision_now()
    waiting = core.in_delay_window()

    if json_output:
        echo_json({
            "stats": stats.model_dump(mode="json"),
            "needs_decision_now": [i.uuid for i in due],
            "in_delay_window": [i.uuid for i in waiting],
        })
        return

    click.echo(
        f"Active: {stats.active}  Longest streak: {stats.longest_streak}  "
        f"Due soon: {stats.due_soon}"
    )
    if due:
        click.echo("\nNeeds a decision now:")
        for i in due:
            click.echo(item_line(i, now, core.percentage_precision))
    if waiting:
        click.echo("\nIn the delay window:")
        for i in waiting:
            click.echo(item_line(i, now, core.percentage_precision))


@item.command(name="show")
@click.argument("identifier")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def show_item(ctx, identifier, json_output):
    """Show a single defer."""
    core = get_core(ctx)
    now = core.clock()
    with handle_errors():
        found = core.get_item(identifier, include_archived=True)

    if json_output:
        echo_json({
            **found.model_dump(mode="json"),
            "decision_date": found.decision_date.isoformat(),
            "progress_percent": found.progress_percent(now),
            "days_remaining": found.days_remaining(now),
            "longest_streak": found.longest_streak(),
        })
        return

    click.echo(f"{found.title} ({found.uuid})")
    click.echo(f"Status: {found.status.display_name}")
    click.echo(f"Category: {found.category.display_name}")
    if found.why_it_matters:
        click.echo(f"Why it matters: {found.why_it_matters}")
    click.echo(f"Protocol: {found.delay_protocol.describe()}")
    click.echo(f"Strict mode: {'On' if found.strict_mode else 'Off'}")
    click.echo(f"Started: {format_datetime(found.start_date)}")
    click.echo(f"Decide on: {format_datetime(found.decision_date)}")
    click.echo(f"Progress: {format_percent(found.progress_percent(now), core.percentage_precision)}")
    click.echo(f"Days remaining: {found.days_remaining(now)}")
    if found.estimated_cost is not None:
        click.echo(f"Estimated cost: {found.estimated_cost:.2f}")
    if found.fallback_action:
        click.echo(f"Fallback: {found.fallback_action}")
    click.echo(
        f"Check-ins: {found.success_count} success, {found.skipped_count} skipped, "
        f"{found.failed_count} failed (longest streak {found.longest_streak()})"
    )


@item.command(name="checkin")
@click.argument("identifier")
@click.option(
    "-s", "--status",
    type=click.Choice([s.value for s in StreakEntryStatus]),
    default=StreakEntryStatus.SUCCESS.value,
    show_default=True,
)
@click.option("-n", "--note", help="Optional note for today.")
@click.pass_context
def checkin(ctx, identifier, status, note):
    """Record today's check-in."""
    core = get_core(ctx)
    with handle_errors():
        record = core.check_in(identifier, StreakEntryStatus(status), note)
        checked = core.get_item(identifier, include_archived=True)
    click.echo(f"Checked in ({record.status.value}) on {format_datetime(record.date)}.")
    if checked.is_terminal:
        click.echo(f"Strict mode: '{checked.title}' is now {checked.status.display_name.lower()}.")
    announce_unlocks(core)


@item.command(name="resolve")
@click.argument("identifier")
@click.option(
    "-o", "--outcome",
    type=click.Choice([o.value for o in DecisionOutcome]),
    required=True,
    help="Whether the decision was intentional or impulsive.",
)
@click.option("-r", "--reflection", help="What you learned.")
@click.pass_context
def resolve(ctx, identifier, outcome, reflection):
    """Record the final decision for a defer."""
    core = get_core(ctx)
    with handle_errors():
        record = core.resolve(identifier, DecisionOutcome(outcome), reflection)
    click.echo(
        f"Resolved '{record.defer_title}' as {record.outcome.value} after {record.duration_days} day(s)."
    )
    announce_unlocks(core)


@item.command(name="pause")
@click.argument("identifier")
@click.pass_context
def pause(ctx, identifier):
    """Stop waiting without making a decision."""
    core = get_core(ctx)
    with handle_errors():
        paused = core.pause(identifier)
    click.echo(f"Paused '{paused.title}'.")
    announce_unlocks(core)


@item.command(name="fail")
@click.argument("identifier")
@click.pass_context
def fail(ctx, identifier):
    """Mark a defer as broken."""
    core = get_core(ctx)
    with handle_errors():
        failed = core.fail(identifier)
    click.echo(f"Marked '{failed.title}' as failed.")
    announce_unlocks(core)


@item.command(name="postpone")
@click.argument("identifier")
@click.option("-p", "--protocol", type=PROTOCOL_CHOICE, help="New delay protocol.")
@click.option("-u", "--until", help="New custom decision date.")
@click.pass_context
def postpone(ctx, identifier, protocol, until):
    """Restart the waiting period under a new protocol."""
    if not protocol and not until:
        raise click.UsageError("Give --protocol or --until.")
    core = get_core(ctx)
    with handle_errors():
        postponed = core.postpone(identifier, build_protocol(protocol, until, core.date_formats))
    click.echo(f"Postponed '{postponed.title}' to {format_datetime(postponed.decision_date)}.")


@item.command(name="overdue")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def overdue(ctx, json_output):
    """List active items whose decision day has already passed."""
    core = get_core(ctx)
    now = core.clock()
    items = core.overdue_items()

    if json_output:
        echo_json([i.uuid for i in items])
        return

    if not items:
        click.echo("Nothing overdue.")
        return
    for i in items:
        click.echo(item_line(i, now, core.percentage_precision))


@item.command(name="sweep")
@click.pass_context
def sweep(ctx):
    """Fail strict items that missed a check-in and complete overdue items."""
    core = get_core(ctx)
    failed, completed = core.sweep()
    for i in failed:
        click.echo(f"Failed '{i.title}': missed a strict check-in.")
    for record in completed:
        click.echo(f"Completed '{record.defer_title}' after {record.duration_days} day(s).")
    if not failed and not completed:
        click.echo("Nothing to update.")
    announce_unlocks(core)
