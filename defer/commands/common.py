"""
Shared helpers for Defer CLI commands.
"""
import json
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, List, Optional

import click

from defer.core import DeferCore
from defer.exceptions import DeferError
from defer.models.enums import DeferCategory, DelayProtocolType
from defer.models.item import DeferItem
from defer.models.protocol import DelayProtocol
from defer.constants import DATE_FORMAT_ERROR, DEFAULT_PERCENTAGE_ROUND_PRECISION
from defer.utils import format_datetime, format_percent, parse_date

CATEGORY_CHOICE = click.Choice([c.value for c in DeferCategory.ordered()])
PROTOCOL_CHOICE = click.Choice([p.value for p in DelayProtocolType])


def get_core(ctx: click.Context) -> DeferCore:
    """Build a DeferCore for the directory given on the root command."""
    obj = ctx.find_root().obj or {}
    defer_dir: Optional[Path] = obj.get("defer_dir")
    try:
        return DeferCore(defer_dir)
    except DeferError as e:
        raise click.ClickException(str(e))


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn DeferError into a ClickException with the same message."""
    try:
        yield
    except DeferError as e:
        raise click.ClickException(str(e))


def parse_category(value: Optional[str]) -> Optional[DeferCategory]:
    return DeferCategory(value) if value else None


def parse_when(value: str, formats: Optional[List[str]] = None) -> datetime:
    """Parse a date option or fail with a usage error."""
    parsed = parse_date(value, formats)
    if parsed is None:
        raise click.BadParameter(f"'{value}'. {DATE_FORMAT_ERROR}")
    return parsed


def build_protocol(
    protocol: Optional[str], until: Optional[str], formats: Optional[List[str]] = None
) -> DelayProtocol:
    """DelayProtocol from --protocol/--until options; --until implies a custom date."""
    if until:
        return DelayProtocol.custom(parse_when(until, formats))
    if protocol == DelayProtocolType.CUSTOM_DATE.value:
        raise click.UsageError("A custom_date protocol needs --until.")
    if protocol:
        return DelayProtocol(type=DelayProtocolType(protocol))
    return DelayProtocol()


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def item_line(item: DeferItem, now: datetime, precision: int = DEFAULT_PERCENTAGE_ROUND_PRECISION) -> str:
    """One-line summary used by list-style output."""
    marker = "!" if item.is_checkpoint_due(now) else " "
    progress = format_percent(item.progress_percent(now), precision)
    return (
        f"{marker} {item.uuid[:8]}  {item.title}  [{item.category.display_name}]  "
        f"{progress}  due {format_datetime(item.decision_date)}"
    )


def announce_unlocks(core: DeferCore) -> None:
    """Print achievements unlocked by the command that just ran."""
    for achievement in core.drain_unlocked():
        click.echo(f"Achievement unlocked: {achievement.title} ({achievement.tier.display_name})")
