"""
Config commands: show, paths, diff and validate.
"""

import logging
import sys

import click

from positive_vibes.config.paths import cache_dir
from positive_vibes.errors import PositiveVibesError
from positive_vibes.inspection import (
    annotate_manifest,
    collect_available_skills,
    format_config_diff,
    format_config_diff_json,
    format_paths,
    has_path_entries,
    validate_config,
)
from positive_vibes.manifest import (
    ManifestLayers,
    Manifest,
    dump_manifest,
    load_layers,
    merge_manifests,
)
from positive_vibes.registry import build_registries

from .utils import colorize_tags, echo, fail, get_global_path, get_project_dir, status_label

logger = logging.getLogger(__name__)


def load_config_layers(ctx: click.Context) -> tuple[ManifestLayers, Manifest]:
    """Load both layers and their merge, exiting when neither exists."""
    project_dir = get_project_dir(ctx)
    global_path = get_global_path(ctx)
    try:
        layers = load_layers(project_dir, global_path)
    except PositiveVibesError as e:
        fail(str(e))
    if not layers.has_global and not layers.has_local:
        fail(f"no config found (checked {global_path} and {project_dir})")
    return layers, merge_manifests(layers.global_manifest, layers.local_manifest)


@click.group()
def config() -> None:
    """Inspect and validate your vibes configuration."""
    pass


@config.command("show")
@click.option("--sources", is_flag=True, help="Annotate entries with [global] / [local]")
@click.option(
    "--relative-paths",
    is_flag=True,
    help="With --sources, show paths relative to the file that declared them",
)
@click.pass_context
def config_show(ctx: click.Context, sources: bool, relative_paths: bool) -> None:
    """Print the effective merged configuration."""
    layers, merged = load_config_layers(ctx)

    if not sources:
        click.echo(dump_manifest(merged), nl=False)
        return

    if relative_paths and not has_path_entries(merged):
        echo(ctx, "# note: no path entries are present, so --relative-paths has no visible effect")
    text = annotate_manifest(
        layers.global_manifest,
        layers.local_manifest,
        merged,
        relative_paths=relative_paths,
        project_dir=get_project_dir(ctx),
        global_path=get_global_path(ctx),
    )
    click.echo(colorize_tags(ctx, text), nl=False, color=ctx.obj.get("color"))


@config.command("paths")
@click.pass_context
def config_paths(ctx: click.Context) -> None:
    """Show resolved config file locations."""
    click.echo(
        format_paths(get_global_path(ctx), get_project_dir(ctx), cache_dir()), nl=False
    )


@config.command("diff")
@click.option("--json", "json_format", is_flag=True, help="Emit the diff as JSON")
@click.pass_context
def config_diff(ctx: click.Context, json_format: bool) -> None:
    """Show global, local and effective config differences."""
    layers, merged = load_config_layers(ctx)
    formatter = format_config_diff_json if json_format else format_config_diff
    click.echo(formatter(layers.global_manifest, layers.local_manifest, merged), nl=False)


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Check configuration for problems.

    Exits with code 1 if any problems are found.
    """
    project_dir = get_project_dir(ctx)
    global_path = get_global_path(ctx)

    try:
        layers = load_layers(project_dir, global_path)
    except PositiveVibesError as e:
        fail(str(e))

    global_label = (
        status_label(ctx, "ok", "ok") if layers.has_global else status_label(ctx, "not found", "warn")
    )
    echo(ctx, f"Loading global config:  {global_path}  {global_label}")
    local_path = layers.local_path or project_dir / "vibes.yaml"
    local_label = (
        status_label(ctx, "ok", "ok") if layers.has_local else status_label(ctx, "not found", "warn")
    )
    echo(ctx, f"Loading local config:   {local_path}  {local_label}")
    echo(ctx)

    if not layers.has_global and not layers.has_local:
        fail(f"no config found (checked {global_path} and {project_dir})")
    merged = merge_manifests(layers.global_manifest, layers.local_manifest)

    available, source_warnings = collect_available_skills(build_registries(merged))
    unresolved = [w.field.removeprefix("registry/") for w in source_warnings]
    result = validate_config(
        merged,
        available,
        has_local=layers.has_local,
        global_manifest=layers.global_manifest,
        local_manifest=layers.local_manifest,
        unresolved_registries=unresolved,
    )
    result.warnings = source_warnings + result.warnings

    ok = status_label(ctx, "ok", "ok")
    failed = status_label(ctx, "FAIL", "fail")

    echo(ctx, f"Registries ({len(merged.registries)}):")
    for registry in merged.registries:
        problem = result.problem_for(registry.name)
        if problem:
            echo(ctx, f"  {failed}  {registry.name}  {problem}")
        else:
            echo(ctx, f"  {ok}  {registry.name}  {registry.url}")
    echo(ctx)

    echo(ctx, f"Skills ({len(merged.skills)}):")
    for skill in merged.skills:
        problem = result.problem_for(skill.name)
        if problem:
            echo(ctx, f"  {failed}  {skill.name}  {problem}")
        elif skill.path and not skill.registry:
            echo(ctx, f"  {ok}  {skill.name}  (local: {skill.path})")
        else:
            echo(ctx, f"  {ok}  {skill.name}  ({skill.registry or 'registry'})")
    echo(ctx)

    for title, entries in (("Instructions", merged.instructions), ("Agents", merged.agents)):
        if not entries:
            continue
        echo(ctx, f"{title} ({len(entries)}):")
        for entry in entries:
            problem = result.problem_for(entry.name)
            if problem:
                echo(ctx, f"  {failed}  {entry.name}  {problem}")
            else:
                echo(ctx, f"  {ok}  {entry.name}")
        echo(ctx)

    echo(ctx, f"Targets ({len(merged.targets)}):")
    for target in merged.targets:
        problem = result.problem_for(target)
        if problem:
            echo(ctx, f"  {failed}  {target}  {problem}")
        else:
            echo(ctx, f"  {ok}  {target}")
    echo(ctx)

    general = [p for p in result.problems if p.field in ("resources", "targets")]
    for problem in general:
        echo(ctx, f"  {failed}  {problem.field}  {problem.message}")
    if general:
        echo(ctx)

    if result.warnings:
        echo(ctx, "Warnings:")
        warn = status_label(ctx, "WARN", "warn")
        for warning in result.warnings:
            echo(ctx, f"  {warn}  {warning.field}  {warning.message}")
        echo(ctx)

    if not result.ok:
        echo(ctx, f"{len(result.problems)} problem(s) found.")
        sys.exit(1)
    if not layers.has_local:
        echo(ctx, "No local vibes detected. Run 'positive-vibes init' to spread some good vibes here.")
    else:
        echo(ctx, "All checks passed.")
