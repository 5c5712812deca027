"""
Resource commands: install, remove, show and list.
"""

import json
import logging
import sys

import click

from positive_vibes.errors import PositiveVibesError
from positive_vibes.services import RESOURCE_TYPES, ResourceDetail, ResourceService

from .utils import echo, fail, get_global_path, get_project_dir, render_mutation_report

logger = logging.getLogger(__name__)

KIND = click.Choice(list(RESOURCE_TYPES), case_sensitive=False)


def get_service(ctx: click.Context, use_global: bool = False) -> ResourceService:
    return ResourceService(
        get_project_dir(ctx), global_path=get_global_path(ctx), use_global=use_global
    )


@click.command()
@click.argument("kind", type=KIND)
@click.argument("names", nargs=-1, required=True)
@click.option("--global", "use_global", is_flag=True, help="Edit the global manifest")
@click.pass_context
def install(ctx: click.Context, kind: str, names: tuple[str, ...], use_global: bool) -> None:
    """Add resources to the manifest."""
    service = get_service(ctx, use_global)
    try:
        report = service.install(kind, names)
    except PositiveVibesError as e:
        fail(str(e))

    render_mutation_report(ctx, "Installed", kind, report)
    if report.mutated_names:
        echo(ctx, f"Saved to {service.manifest_path}")
        echo(ctx, "Run 'positive-vibes apply' to install everywhere!")
    if report.has_errors:
        sys.exit(1)


@click.command()
@click.argument("kind", type=KIND)
@click.argument("names", nargs=-1, required=True)
@click.option("--global", "use_global", is_flag=True, help="Edit the global manifest")
@click.pass_context
def remove(ctx: click.Context, kind: str, names: tuple[str, ...], use_global: bool) -> None:
    """Remove resources from the manifest."""
    service = get_service(ctx, use_global)
    try:
        report = service.remove(kind, names)
    except PositiveVibesError as e:
        fail(str(e))

    render_mutation_report(ctx, "Removed", kind, report)
    if report.has_errors:
        sys.exit(1)


def format_detail(detail: ResourceDetail) -> str:
    lines = [
        f"Name:        {detail.name}",
        f"Kind:        {detail.kind}",
        f"Installed:   {'yes' if detail.installed else 'no'}",
    ]
    if detail.registry:
        lines.append(f"Registry:    {detail.registry}")
    if detail.registry_url:
        lines.append(f"URL:         {detail.registry_url}")
    if detail.path:
        lines.append(f"Path:        {detail.path}")

    payload = detail.payload
    for key in ("description", "version", "author", "apply_to"):
        if payload.get(key):
            lines.append(f"{key.replace('_', ' ').capitalize() + ':':<13}{payload[key]}")
    if payload.get("tags"):
        lines.append(f"Tags:        {', '.join(payload['tags'])}")

    body = payload.get("instructions") or payload.get("content")
    if body:
        lines.append("")
        lines.append(body.rstrip("\n"))
    return "\n".join(lines)


@click.command()
@click.argument("kind", type=KIND)
@click.argument("name")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
@click.pass_context
def show(ctx: click.Context, kind: str, name: str, json_format: bool) -> None:
    """Show details for one resource."""
    try:
        detail = get_service(ctx).show(kind, name)
    except PositiveVibesError as e:
        fail(str(e))

    if json_format:
        click.echo(json.dumps(detail.to_dict(), indent=2))
        return
    echo(ctx, format_detail(detail))


@click.command("list")
@click.argument("kind", type=KIND)
@click.option("--registry", "registry_name", help="Only list resources from this registry")
@click.option("--installed-only", is_flag=True, help="Only list resources in the manifest")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
@click.pass_context
def list_resources(
    ctx: click.Context,
    kind: str,
    registry_name: str | None,
    installed_only: bool,
    json_format: bool,
) -> None:
    """List available resources of a kind."""
    service = get_service(ctx)
    try:
        if installed_only:
            rows = service.list_installed(kind)
            if registry_name:
                rows = [row for row in rows if row.registry == registry_name]
        else:
            rows = service.list_available(kind, registry_name=registry_name)
    except PositiveVibesError as e:
        fail(str(e))

    if json_format:
        click.echo(json.dumps([row.to_dict() for row in rows], indent=2))
        return

    if not rows:
        echo(ctx, f"No {kind} found.")
        return

    echo(ctx, f"{kind.capitalize()} ({len(rows)}):")
    width = max(len(row.name) for row in rows)
    for row in rows:
        marker = "installed" if row.installed else ""
        source = f"[{row.registry}]" if row.registry else ""
        echo(ctx, f"  {row.name:<{width}}  {marker:<9}  {source}".rstrip())
