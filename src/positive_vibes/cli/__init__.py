"""
positive-vibes CLI entry point.
"""

from pathlib import Path

import click

from positive_vibes import __version__

from .apply import apply
from .completion import completion
from .config import config
from .init import init
from .resources import install, list_resources, remove, show
from .utils import setup_logging, should_use_color


@click.group()
@click.version_option(__version__, prog_name="positive-vibes")
@click.option(
    "--project-dir",
    "-p",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project directory holding vibes.yaml",
)
@click.option(
    "--global-config",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="POSITIVE_VIBES_GLOBAL_CONFIG",
    help="Global manifest location (default: $XDG_CONFIG_HOME/positive-vibes/vibes.yaml)",
)
@click.option(
    "--color",
    type=click.Choice(["auto", "always", "never"], case_sensitive=False),
    default="auto",
    show_default=True,
    help="Color output",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    project_dir: Path,
    global_config: Path | None,
    color: str,
    verbose: bool,
) -> None:
    """positive-vibes - sync skills, instructions and agents into your AI tools."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["project_dir"] = project_dir.resolve()
    ctx.obj["global_path"] = global_config
    ctx.obj["color"] = should_use_color(color)


# Register commands
cli.add_command(init)
cli.add_command(apply)
cli.add_command(install)
cli.add_command(remove)
cli.add_command(show)
cli.add_command(list_resources)
cli.add_command(config)
cli.add_command(completion)


def main() -> None:
    cli(obj={})
