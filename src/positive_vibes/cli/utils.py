"""
Shared utilities for CLI commands.
"""

import logging
import os
import sys
from pathlib import Path
from typing import NoReturn

import click

from positive_vibes.config.paths import global_manifest_path
from positive_vibes.services import MutationReport

logger = logging.getLogger(__name__)

STATUS_COLORS = {"ok": "green", "warn": "yellow", "fail": "red"}
TAG_COLORS = {
    "# [global]": "blue",
    "# [local]": "green",
    "# [local, overrides global]": "yellow",
}


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for CLI.

    Args:
        verbose: If True, enable DEBUG level logging
    """
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def should_use_color(mode: str) -> bool:
    """Decide whether to emit ANSI colors.

    NO_COLOR always wins. ``auto`` also turns color off for TERM=dumb and when
    stdout is not a terminal.
    """
    if os.environ.get("NO_COLOR"):
        return False
    mode = mode.lower()
    if mode == "always":
        return True
    if mode == "never":
        return False
    if os.environ.get("TERM", "").lower() == "dumb":
        return False
    return sys.stdout.isatty()


def get_project_dir(ctx: click.Context) -> Path:
    return Path(ctx.obj["project_dir"])


def get_global_path(ctx: click.Context) -> Path:
    path = ctx.obj.get("global_path")
    return Path(path) if path else global_manifest_path()


def echo(ctx: click.Context, message: str = "", err: bool = False) -> None:
    """Echo honouring the --color decision."""
    click.echo(message, err=err, color=ctx.obj.get("color", False))


def status_label(ctx: click.Context, label: str, status: str) -> str:
    if not ctx.obj.get("color"):
        return label
    return click.style(label, fg=STATUS_COLORS[status])


def colorize_tags(ctx: click.Context, text: str) -> str:
    if not ctx.obj.get("color"):
        return text
    for tag, color in TAG_COLORS.items():
        text = text.replace(f"  {tag}\n", f"  {click.style(tag, fg=color)}\n")
    return text


def fail(message: str) -> NoReturn:
    """Print an error to stderr and exit with status 1."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def render_mutation_report(
    ctx: click.Context, action: str, kind: str, report: MutationReport
) -> None:
    """Print which names changed and which were skipped.

    Args:
        ctx: Click context
        action: Past-tense verb, e.g. "Installed"
        kind: Resource kind
        report: Report to render
    """
    if report.mutated_names:
        echo(ctx, f"{action} {kind}: {', '.join(report.mutated_names)}")
    if report.skipped_duplicate_names:
        echo(ctx, f"Skipped duplicates: {', '.join(report.skipped_duplicate_names)}")
    if report.skipped_missing_names:
        echo(ctx, f"Skipped missing: {', '.join(report.skipped_missing_names)}")
    for error in report.errors:
        click.echo(f"Error: {error}", err=True)
    if not (report.mutated_names or report.skipped_duplicate_names or report.skipped_missing_names):
        echo(ctx, f"No {kind} changed.")
