"""Fixtures for CLI tests."""

from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner, Result


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def invoke(runner: CliRunner, project_dir: Path) -> Callable[..., Result]:
    """Run the CLI against the test project directory."""
    from positive_vibes.cli import cli

    def _invoke(*args: str, input: str | None = None) -> Result:
        return runner.invoke(cli, ["--project-dir", str(project_dir), *args], input=input)

    return _invoke


@pytest.fixture
def local_manifest(project_dir: Path) -> Callable[[str], Path]:
    """Write the project vibes.yaml."""

    def _write(text: str) -> Path:
        path = project_dir / "vibes.yaml"
        path.write_text(text)
        return path

    return _write


@pytest.fixture
def global_manifest(global_manifest_file: Path) -> Callable[[str], Path]:
    """Write the global vibes.yaml."""

    def _write(text: str) -> Path:
        global_manifest_file.parent.mkdir(parents=True, exist_ok=True)
        global_manifest_file.write_text(text)
        return global_manifest_file

    return _write
