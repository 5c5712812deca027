"""
Shell completion: print or install click's completion script.
"""

import logging
import os
from pathlib import Path

import click
from click.shell_completion import get_completion_class

from .utils import echo, fail

logger = logging.getLogger(__name__)

PROG_NAME = "positive-vibes"
COMPLETE_VAR = "_POSITIVE_VIBES_COMPLETE"

RC_FILES = {
    "bash": "~/.bashrc",
    "zsh": "~/.zshrc",
    "fish": "~/.config/fish/completions/positive-vibes.fish",
}


def detect_shell() -> str | None:
    shell = Path(os.environ.get("SHELL", "")).name
    return shell if shell in RC_FILES else None


def completion_source(shell: str) -> str:
    """Return the completion script click generates for a shell."""
    from . import cli

    comp_cls = get_completion_class(shell)
    if comp_cls is None:
        raise click.BadParameter(f"unsupported shell {shell!r}")
    return comp_cls(cli, {}, PROG_NAME, COMPLETE_VAR).source()


def install_line(shell: str) -> str:
    if shell == "fish":
        return f"{COMPLETE_VAR}=fish_source {PROG_NAME} | source"
    return f'eval "$({COMPLETE_VAR}={shell}_source {PROG_NAME})"'


@click.command()
@click.argument("shell", required=False, type=click.Choice(sorted(RC_FILES)))
@click.option("--install", "do_install", is_flag=True, help="Add completion to your shell startup file")
@click.pass_context
def completion(ctx: click.Context, shell: str | None, do_install: bool) -> None:
    """Print the shell completion script (bash, zsh or fish)."""
    shell = shell or detect_shell()
    if shell is None:
        fail("could not detect your shell from $SHELL; pass one of: bash, zsh, fish")

    if not do_install:
        click.echo(completion_source(shell))
        return

    rc_path = Path(RC_FILES[shell]).expanduser()
    line = install_line(shell)
    if rc_path.exists() and line in rc_path.read_text(encoding="utf-8"):
        echo(ctx, f"Completion already installed in {rc_path}")
        return
    rc_path.parent.mkdir(parents=True, exist_ok=True)
    with open(rc_path, "a", encoding="utf-8") as f:
        f.write(f"\n# positive-vibes completion\n{line}\n")
    echo(ctx, f"Installed completion in {rc_path}. Restart your shell to enable it.")
