"""Tests for positive_vibes.engine.applier."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from positive_vibes.errors import ManifestValidationError, ResourceNotFoundError


def _manifest(data: dict):
    from positive_vibes.manifest import Manifest

    return Manifest.model_validate(data)


def _apply(project_dir: Path, data: dict, registries=None, **opts):
    from positive_vibes.engine import Applier
    from positive_vibes.registry import EmbeddedRegistry
    from positive_vibes.targets import InstallOptions, resolve_targets

    manifest = _manifest(data)
    applier = Applier(registries if registries is not None else [EmbeddedRegistry()], project_dir)
    return applier.apply(manifest, resolve_targets(manifest.targets), InstallOptions(**opts))


class FakeFileRegistry:
    """A registry serving resource files from a dict, without touching git."""

    def __init__(self, name: str, files: dict[str, bytes], skills_files: dict[str, bytes] | None = None):
        self.name = name
        self.files = files
        self.skills_files = skills_files or {}

    def list_skills(self) -> list[str]:
        return []

    def fetch(self, name: str):
        raise ResourceNotFoundError(f"skill {name!r} not found", name=name)

    def list_resource_files(self, kind: str) -> list[str]:
        return sorted(self.files)

    def fetch_resource_file(self, kind: str, rel_path: str) -> bytes:
        try:
            return self.files[rel_path]
        except KeyError:
            raise ResourceNotFoundError(f"{rel_path} not found", name=rel_path) from None

    def fetch_file(self, skill_name: str, rel_path: str) -> bytes:
        try:
            return self.skills_files[f"{skill_name}/{rel_path}"]
        except KeyError:
            raise ResourceNotFoundError(f"{skill_name}/{rel_path} not found") from None


class TestApplySkills:
    """Skill resolution and fan-out."""

    def test_embedded_skill_to_one_target(self, project_dir: Path):
        """A bundled skill lands in the single configured target."""
        result = _apply(project_dir, {"skills": [{"name": "code-review"}], "targets": ["opencode"]})

        assert [op.to_dict() for op in result.ops] == [
            {
                "name": "code-review",
                "target": "opencode",
                "kind": "skill",
                "status": "installed",
                "error": None,
            }
        ]
        assert result.installed == 1
        assert (project_dir / ".opencode" / "skills" / "code-review" / "SKILL.md").is_file()

    def test_reapply_is_idempotent(self, project_dir: Path):
        """A second apply without force skips what is already there."""
        data = {"skills": [{"name": "code-review"}], "targets": ["opencode"]}
        _apply(project_dir, data)

        result = _apply(project_dir, data)

        assert len(result.ops) == 1
        assert result.ops[0].status == "skipped"
        assert result.installed == 0
        assert result.skipped == 1

    def test_force_reinstalls(self, project_dir: Path):
        """With force every target is rewritten."""
        data = {"skills": [{"name": "code-review"}], "targets": ["opencode", "cursor"]}
        _apply(project_dir, data)

        result = _apply(project_dir, data, force=True)

        assert result.installed == 2
        assert result.skipped == 0

    def test_local_path_overrides_embedded(self, project_dir: Path, write_skill):
        """A path entry installs the project's own copy of a bundled name."""
        write_skill(project_dir / "skills", "code-review", "Local review", "LOCAL BODY\n")

        result = _apply(
            project_dir,
            {
                "skills": [{"name": "code-review", "path": "./skills/code-review"}],
                "targets": ["cursor"],
            },
        )

        installed = project_dir / ".cursor" / "skills" / "code-review" / "SKILL.md"
        assert result.installed == 1
        assert "LOCAL BODY" in installed.read_text()
        assert "When reviewing code" not in installed.read_text()

    def test_ops_follow_target_order(self, project_dir: Path):
        """Ops are recorded skill by skill, target by target."""
        result = _apply(
            project_dir,
            {
                "skills": [{"name": "code-review"}, {"name": "conventional-commits"}],
                "targets": ["cursor", "vscode-copilot"],
            },
        )

        assert [(op.name, op.target_name) for op in result.ops] == [
            ("code-review", "cursor"),
            ("code-review", "vscode-copilot"),
            ("conventional-commits", "cursor"),
            ("conventional-commits", "vscode-copilot"),
        ]
        assert (project_dir / ".github" / "skills" / "code-review" / "SKILL.md").is_file()

    def test_missing_skill_is_not_found_and_run_continues(self, project_dir: Path):
        """An unknown skill is recorded once and does not stop the rest."""
        result = _apply(
            project_dir,
            {"skills": [{"name": "ghost"}, {"name": "code-review"}], "targets": ["opencode", "cursor"]},
        )

        assert result.ops[0].status == "not_found"
        assert result.ops[0].target_name == ""
        assert result.not_found == 1
        assert result.installed == 2
        assert result.errors == []
        assert result.has_failures

    def test_embedded_skill_is_copied_even_in_link_mode(self, project_dir: Path):
        """Bundled skills are copied and their temporary copy is released."""
        from positive_vibes.registry import EmbeddedRegistry

        registry = EmbeddedRegistry()
        released: list[Path] = []
        release = registry.release

        def record_release(skill_dir):
            released.append(Path(skill_dir))
            release(skill_dir)

        registry.release = record_release

        result = _apply(
            project_dir,
            {"skills": [{"name": "code-review"}], "targets": ["cursor"]},
            registries=[registry],
            link=True,
        )

        installed = project_dir / ".cursor" / "skills" / "code-review"
        assert [op.status for op in result.ops] == ["installed"]
        assert not installed.is_symlink()
        assert (installed / "SKILL.md").is_file()
        assert len(released) == 1
        assert not released[0].exists()

    def test_git_timeout_is_an_error_op(self, project_dir: Path, tmp_path: Path):
        """A registry whose clone hangs fails its skill without stopping the run."""
        from positive_vibes.registry import EmbeddedRegistry, GitRegistry

        git = GitRegistry("r", "https://example.com/r.git", tmp_path / "cache" / "r", ref="latest")

        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["git"], 300)):
            result = _apply(
                project_dir,
                {
                    "skills": [{"name": "s", "registry": "r"}, {"name": "code-review"}],
                    "targets": ["opencode"],
                },
                registries=[EmbeddedRegistry(), git],
            )

        assert [op.status for op in result.ops] == ["error", "installed"]
        assert "timed out" in result.errors[0]

    def test_missing_local_path_is_not_found(self, project_dir: Path):
        """A path without SKILL.md is reported as not found."""
        result = _apply(
            project_dir,
            {"skills": [{"name": "x", "path": "./nowhere"}], "targets": ["opencode"]},
        )

        assert [op.status for op in result.ops] == ["not_found"]

    def test_install_failure_is_an_error_op(self, project_dir: Path):
        """A target that cannot be written gets an error op with a descriptive message."""
        (project_dir / ".opencode").write_text("not a directory")

        result = _apply(
            project_dir, {"skills": [{"name": "code-review"}], "targets": ["opencode", "cursor"]}
        )

        statuses = {op.target_name: op.status for op in result.ops}
        assert statuses == {"opencode": "error", "cursor": "installed"}
        assert result.errors[0].startswith("install skill code-review -> opencode:")

    def test_counters_match_ops(self, project_dir: Path):
        """installed + skipped + errors + not_found never exceeds the op count."""
        result = _apply(
            project_dir,
            {"skills": [{"name": "code-review"}, {"name": "ghost"}], "targets": ["opencode"]},
        )

        assert result.installed + result.skipped + len(result.errors) + result.not_found <= len(
            result.ops
        )

    def test_registry_skill_uses_named_registry(self, project_dir: Path, tmp_path: Path, write_skill):
        """A registry entry fetches its path from that registry only."""
        from positive_vibes.schema import parse_skill_file

        source = write_skill(tmp_path / "reg", "remote-skill", "Remote")
        registry = MagicMock()
        registry.name = "awesome"
        registry.fetch.return_value = (parse_skill_file(source / "SKILL.md"), source)

        result = _apply(
            project_dir,
            {
                "registries": [{"name": "awesome", "url": "https://x", "ref": "latest"}],
                "skills": [{"name": "renamed", "registry": "awesome", "path": "remote-skill"}],
                "targets": ["opencode"],
            },
            registries=[registry],
        )

        registry.fetch.assert_called_once_with("remote-skill")
        assert result.ops[0].name == "remote-skill"
        assert (project_dir / ".opencode" / "skills" / "remote-skill").is_dir()


class TestApplyInstructions:
    """Instruction sources and apply_to."""

    def test_apply_to_restricts_targets(self, project_dir: Path):
        """An instruction with apply_to only reaches that target."""
        result = _apply(
            project_dir,
            {
                "targets": ["opencode", "cursor"],
                "instructions": [{"name": "oc-only", "content": "X", "apply_to": "opencode"}],
            },
        )

        assert (project_dir / ".opencode" / "instructions" / "oc-only.md").read_text() == "X"
        assert not (project_dir / ".cursor" / "instructions" / "oc-only.md").exists()
        assert [op.target_name for op in result.ops] == ["opencode"]

    def test_instruction_from_local_file(self, project_dir: Path):
        """A path instruction is copied from the project."""
        (project_dir / "docs").mkdir()
        (project_dir / "docs" / "guide.md").write_text("# Guide\n")

        result = _apply(
            project_dir,
            {"targets": ["cursor"], "instructions": [{"name": "guide", "path": "docs/guide.md"}]},
        )

        assert result.installed == 1
        assert (project_dir / ".cursor" / "instructions" / "guide.md").read_text() == "# Guide\n"

    def test_missing_instruction_file(self, project_dir: Path):
        """A missing file is a not_found op."""
        result = _apply(
            project_dir,
            {"targets": ["cursor"], "instructions": [{"name": "gone", "path": "docs/gone.md"}]},
        )

        assert [op.status for op in result.ops] == ["not_found"]

    def test_instruction_from_registry_cleans_up(self, project_dir: Path):
        """Registry instructions are installed and leave no temp files behind."""
        registry = FakeFileRegistry("awesome", {"style.instructions.md": b"# Style\n"})

        result = _apply(
            project_dir,
            {
                "targets": ["opencode", "cursor"],
                "instructions": [
                    {"name": "style", "registry": "awesome", "path": "style.instructions.md"}
                ],
            },
            registries=[registry],
            link=True,
        )

        assert result.installed == 2
        installed = project_dir / ".cursor" / "instructions" / "style.md"
        assert installed.read_text() == "# Style\n"
        assert not installed.is_symlink()
        assert not list(project_dir.glob("pv-instruction-*"))


class TestApplyAgents:
    """Agent sources."""

    def test_agent_from_local_file(self, project_dir: Path):
        """A local agent is copied into each target."""
        (project_dir / "agents").mkdir()
        (project_dir / "agents" / "reviewer.md").write_text("# Reviewer\n")

        result = _apply(
            project_dir,
            {
                "targets": ["opencode", "vscode-copilot"],
                "agents": [{"name": "reviewer", "path": "./agents/reviewer.md"}],
            },
        )

        assert result.installed == 2
        assert (project_dir / ".github" / "agents" / "reviewer.md").read_text() == "# Reviewer\n"

    def test_agent_from_registry_skill_path(self, project_dir: Path):
        """An agent path of the form <skill>/<file> falls back to the skill tree."""
        registry = FakeFileRegistry(
            "awesome", {}, skills_files={"helper/agents/debug.md": b"# Debug\n"}
        )

        result = _apply(
            project_dir,
            {
                "targets": ["opencode"],
                "agents": [{"name": "debug", "registry": "awesome", "path": "helper/agents/debug.md"}],
            },
            registries=[registry],
        )

        assert result.installed == 1
        assert (project_dir / ".opencode" / "agents" / "debug.md").read_text() == "# Debug\n"
        assert not list(project_dir.glob("pv-agent-*"))

    def test_agent_from_unknown_registry(self, project_dir: Path):
        """A registry that is not configured is a not_found op."""
        result = _apply(
            project_dir,
            {
                "targets": ["opencode"],
                "agents": [{"name": "debug", "registry": "missing", "path": "debug.agent.md"}],
            },
        )

        assert [op.status for op in result.ops] == ["not_found"]
        assert "registry 'missing' not found" in result.ops[0].error

    def test_kind_order(self, project_dir: Path):
        """Skills come first, then instructions, then agents."""
        (project_dir / "a.md").write_text("agent\n")

        result = _apply(
            project_dir,
            {
                "targets": ["opencode"],
                "agents": [{"name": "a", "path": "a.md"}],
                "instructions": [{"name": "i", "content": "inline"}],
                "skills": [{"name": "code-review"}],
            },
        )

        assert [op.kind for op in result.ops] == ["skill", "instruction", "agent"]


class TestApplyManifest:
    """Tests for apply_manifest."""

    def test_loads_project_manifest(self, project_dir: Path):
        """Without an explicit manifest the project file is used."""
        from positive_vibes.engine import apply_manifest

        (project_dir / "vibes.yaml").write_text(
            "skills:\n  - name: conventional-commits\ntargets:\n  - cursor\n"
        )

        result = apply_manifest(project_dir)

        assert result.installed == 1
        assert (project_dir / ".cursor" / "skills" / "conventional-commits").is_dir()

    def test_invalid_manifest_is_rejected(self, project_dir: Path):
        """Validation runs before anything is installed."""
        from positive_vibes.engine import apply_manifest

        with pytest.raises(ManifestValidationError):
            apply_manifest(project_dir, manifest=_manifest({"targets": ["emacs"], "skills": [{"name": "x"}]}))

        assert not any(project_dir.iterdir())

    def test_global_manifest_paths_resolve_from_global_dir(
        self, project_dir: Path, global_manifest_file: Path, write_skill
    ):
        """Relative paths in the global manifest are anchored at its directory."""
        from positive_vibes.engine import apply_manifest

        global_manifest_file.parent.mkdir(parents=True)
        write_skill(global_manifest_file.parent / "skills", "mine", "Mine")
        global_manifest_file.write_text(
            "skills:\n  - name: mine\n    path: ./skills/mine\ntargets:\n  - opencode\n"
        )

        result = apply_manifest(project_dir)

        assert result.installed == 1
        assert (project_dir / ".opencode" / "skills" / "mine" / "SKILL.md").is_file()
