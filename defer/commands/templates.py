"""
Template commands for Defer CLI.
"""
import click

from defer.commands.common import CATEGORY_CHOICE, echo_json, parse_category
from defer.models.templates import all_templates, template_by_id, templates_for


@click.group()
def templates():
    """Browse predefined defers. Use one with `defer item add --template ID`."""
    pass


@templates.command(name="list")
@click.option("-c", "--category", type=CATEGORY_CHOICE, help="Only show one category.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output in JSON format.")
def list_templates(category, json_output):
    """List templates in catalog order."""
    chosen = parse_category(category)
    found = templates_for(chosen) if chosen else all_templates()

    if json_output:
        echo_json([template.model_dump(mode="json") for template in found])
        return

    for template in found:
        click.echo(f"{template.id:<28} {template.title} [{template.category.display_name}]")


@templates.command(name="show")
@click.argument("template_id")
def show_template(template_id):
    """Show one template."""
    template = template_by_id(template_id)
    if template is None:
        raise click.ClickException(f"Template '{template_id}' not found.")

    click.echo(f"{template.title} ({template.id})")
    click.echo(f"Category: {template.category.display_name}")
    click.echo(f"Why it matters: {template.why_it_matters}")
    click.echo(f"Protocol: {template.protocol_type.display_name} ({template.duration_hours}h)")
    click.echo(f"Fallback: {template.fallback_action}")
    if template.suggested_cost is not None:
        click.echo(f"Suggested cost: {template.suggested_cost:.2f}")
