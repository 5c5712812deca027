"""Tests for positive_vibes.engine.installer and engine.scanner."""

from pathlib import Path

import pytest
import yaml

from positive_vibes.errors import DuplicateResourceError, ResourceNotFoundError


@pytest.fixture
def installer(project_dir: Path):
    from positive_vibes.engine import Installer
    from positive_vibes.registry import EmbeddedRegistry

    return Installer([EmbeddedRegistry()], project_dir)


class TestInstallerInstall:
    """Tests for Installer.install."""

    def test_creates_manifest_with_default_header(self, installer, project_dir: Path):
        """Installing into a project without a manifest creates one."""
        from positive_vibes.manifest import DEFAULT_HEADER

        path = project_dir / "vibes.yaml"
        ref = installer.install("code-review", path)

        assert ref.name == "code-review"
        assert ref.path is None
        text = path.read_text()
        assert text.startswith(DEFAULT_HEADER)
        assert yaml.safe_load(text) == {"skills": [{"name": "code-review"}]}

    def test_preserves_existing_header_and_entries(self, installer, project_dir: Path):
        """The comment header and other entries survive an install."""
        path = project_dir / "vibes.yaml"
        path.write_text("# team config\n\nskills:\n  - name: conventional-commits\ntargets: [cursor]\n")

        installer.install("code-review", path)

        text = path.read_text()
        assert text.startswith("# team config\n")
        data = yaml.safe_load(text)
        assert [s["name"] for s in data["skills"]] == ["conventional-commits", "code-review"]
        assert data["targets"] == ["cursor"]

    def test_local_skill_saved_as_relative_path(self, installer, project_dir: Path, write_skill):
        """A project skills/<name>/SKILL.md is preferred and saved in path form."""
        write_skill(project_dir / "skills", "code-review", "Local override")
        path = project_dir / "vibes.yaml"

        ref = installer.install("code-review", path)

        assert ref.path == "./skills/code-review"
        data = yaml.safe_load(path.read_text())
        assert data["skills"] == [{"name": "code-review", "path": "./skills/code-review"}]

    def test_local_skill_in_global_manifest_is_absolute(
        self, installer, project_dir: Path, write_skill, global_manifest_file: Path
    ):
        """Outside the project directory the local path is stored absolute."""
        write_skill(project_dir / "skills", "mine")

        ref = installer.install("mine", global_manifest_file)

        assert ref.path == str((project_dir / "skills" / "mine").resolve())

    def test_duplicate_is_rejected(self, installer, project_dir: Path):
        """A skill already listed raises DuplicateResourceError and leaves the file alone."""
        path = project_dir / "vibes.yaml"
        installer.install("code-review", path)
        before = path.read_text()

        with pytest.raises(DuplicateResourceError):
            installer.install("code-review", path)

        assert path.read_text() == before

    def test_unknown_skill_is_rejected(self, installer, project_dir: Path):
        """Names no registry knows are not added."""
        path = project_dir / "vibes.yaml"

        with pytest.raises(ResourceNotFoundError):
            installer.install("ghost", path)

        assert not path.exists()


class TestInstallerRemove:
    """Tests for Installer.remove."""

    def test_remove_entry(self, installer, project_dir: Path):
        """Removing drops only the named skill and keeps the header."""
        path = project_dir / "vibes.yaml"
        path.write_text(
            "# header\nskills:\n  - name: a\n  - name: b\ntargets: [opencode]\n"
        )

        installer.remove("a", path)

        assert path.read_text().startswith("# header\n")
        assert yaml.safe_load(path.read_text())["skills"] == [{"name": "b"}]

    def test_remove_missing_entry(self, installer, project_dir: Path):
        """Removing a name that is not listed raises ResourceNotFoundError."""
        path = project_dir / "vibes.yaml"
        path.write_text("skills:\n  - name: a\n")

        with pytest.raises(ResourceNotFoundError, match="ghost"):
            installer.remove("ghost", path)

    def test_remove_without_manifest(self, installer, project_dir: Path):
        """There is nothing to remove from a missing manifest."""
        with pytest.raises(ResourceNotFoundError, match="no manifest"):
            installer.remove("a", project_dir / "vibes.yaml")


class TestScanProject:
    """Tests for scan_project."""

    @pytest.mark.parametrize(
        ("marker", "language"),
        [
            ("go.mod", "go"),
            ("package.json", "node"),
            ("pyproject.toml", "python"),
            ("requirements.txt", "python"),
        ],
    )
    def test_language_markers(self, project_dir: Path, marker: str, language: str):
        """Each marker file identifies its language."""
        from positive_vibes.engine import scan_project

        (project_dir / marker).write_text("")

        assert scan_project(project_dir).language == language

    def test_first_marker_wins(self, project_dir: Path):
        """go.mod is checked before package.json."""
        from positive_vibes.engine import scan_project

        (project_dir / "package.json").write_text("{}")
        (project_dir / "go.mod").write_text("module x\n")

        assert scan_project(project_dir).language == "go"

    def test_defaults(self, project_dir: Path):
        """Unknown projects still get the default recommendations."""
        from positive_vibes.engine import scan_project

        scan = scan_project(project_dir)

        assert scan.language == "unknown"
        assert scan.recommended_skills == ["conventional-commits", "code-review"]
        assert scan.suggested_targets == ["vscode-copilot", "opencode", "cursor"]
