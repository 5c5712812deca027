"""
Apply command: sync the manifest into every target.
"""

import logging
import sys

import click

from positive_vibes.engine import ApplyResult, apply_manifest
from positive_vibes.errors import ManifestNotFoundError, PositiveVibesError
from positive_vibes.manifest import (
    compute_override_diagnostics,
    format_risky_override_warning,
    load_layers,
    merge_manifests,
)
from positive_vibes.targets import InstallOptions

from .utils import echo, fail, get_global_path, get_project_dir

logger = logging.getLogger(__name__)


def format_op_lines(result: ApplyResult) -> list[str]:
    lines = []
    for op in result.ops:
        if op.status == "installed":
            lines.append(f"  installed {op.kind}: {op.name} -> {op.target_name}")
        elif op.status == "skipped":
            lines.append(f"  skipped {op.kind}:   {op.name} -> {op.target_name} (already exists)")
        elif op.status == "not_found":
            lines.append(f"  not found {op.kind}: {op.name}")
        else:
            target = f" -> {op.target_name}" if op.target_name else ""
            lines.append(f"  error {op.kind}:     {op.name}{target}: {op.error}")
    return lines


def format_summary(result: ApplyResult) -> str:
    if result.installed > 0:
        return (
            f"Done. Installed {result.installed}, skipped {result.skipped}, "
            f"errors {len(result.errors) + result.not_found}."
        )
    if result.skipped > 0:
        return f"Already in sync. {result.skipped} items up to date. Use --force to reinstall."
    if result.has_failures:
        return f"Nothing installed. errors {len(result.errors) + result.not_found}."
    return "Nothing to install. Check your manifest."


@click.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite resources that already exist")
@click.option("--link", "-l", is_flag=True, help="Symlink skills instead of copying")
@click.option("--refresh", is_flag=True, help="Pull latest from git registries before applying")
@click.option(
    "--global",
    "use_global",
    is_flag=True,
    help="Apply only the global config to this project's targets",
)
@click.pass_context
def apply(ctx: click.Context, force: bool, link: bool, refresh: bool, use_global: bool) -> None:
    """Apply the manifest to all targets."""
    project_dir = get_project_dir(ctx)
    global_path = get_global_path(ctx)

    try:
        layers = load_layers(project_dir, global_path)
        if use_global:
            if not layers.has_global:
                raise ManifestNotFoundError(global_path.parent, [global_path.name])
            manifest = layers.global_manifest
        else:
            if not layers.has_global and not layers.has_local:
                raise ManifestNotFoundError(project_dir, ["vibes.yaml", "vibes.yml", str(global_path)])
            manifest = merge_manifests(layers.global_manifest, layers.local_manifest)
            warning = format_risky_override_warning(
                compute_override_diagnostics(layers.global_manifest, layers.local_manifest)
            )
            if warning:
                echo(ctx, warning)

        echo(ctx, "Aligning your AI tools...")
        echo(ctx)
        result = apply_manifest(
            project_dir,
            manifest=manifest,
            opts=InstallOptions(force=force, link=link),
            refresh=refresh,
        )
    except PositiveVibesError as e:
        fail(str(e))

    for line in format_op_lines(result):
        echo(ctx, line)
    echo(ctx)
    echo(ctx, format_summary(result))

    if result.has_failures:
        sys.exit(1)
