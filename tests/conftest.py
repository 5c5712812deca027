"""Pytest configuration and shared fixtures for positive-vibes tests."""

import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, Path]:
    """Point HOME and the XDG directories into tmp_path so no test sees real config."""
    home = tmp_path / "home"
    home.mkdir()
    config_home = tmp_path / "xdg-config"
    cache_home = tmp_path / "xdg-cache"

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_home))
    monkeypatch.delenv("POSITIVE_VIBES_GLOBAL_CONFIG", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)

    return {"home": home, "config_home": config_home, "cache_home": cache_home}


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create an empty project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def global_manifest_file(isolated_env: dict[str, Path]) -> Path:
    """Location of the global manifest under the isolated config home."""
    return isolated_env["config_home"] / "positive-vibes" / "vibes.yaml"


def skill_markdown(name: str, description: str = "", body: str = "") -> str:
    """Build SKILL.md text with a name/description front-matter."""
    if not body:
        body = f"# {name}\n"
    return f"---\nname: {name}\ndescription: {description or name}\n---\n{body}"


@pytest.fixture
def write_skill() -> Callable[..., Path]:
    """Factory writing <directory>/<name>/SKILL.md and returning the skill directory."""

    def _write(directory: Path, name: str, description: str = "", body: str = "") -> Path:
        skill_dir = directory / name
        skill_dir.mkdir(parents=True, exist_ok=True)
        (skill_dir / "SKILL.md").write_text(skill_markdown(name, description, body))
        return skill_dir

    return _write


@pytest.fixture
def skill_text() -> Callable[..., str]:
    return skill_markdown


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test User",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            "-c",
            "tag.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def run_git() -> Callable[..., str]:
    """Run a git command in a directory and return its stdout."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    return _git


@pytest.fixture
def git_repo(tmp_path: Path, run_git: Callable[..., str]) -> Callable[..., Path]:
    """Factory building a local git repository from a {relative path: content} mapping."""

    def _make(files: dict[str, str], name: str = "remote") -> Path:
        repo = tmp_path / name
        repo.mkdir()
        run_git(repo, "init", "--quiet")
        run_git(repo, "checkout", "--quiet", "-b", "main")
        for rel_path, content in files.items():
            path = repo / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        run_git(repo, "add", "-A")
        run_git(repo, "commit", "--quiet", "-m", "initial")
        return repo

    return _make
