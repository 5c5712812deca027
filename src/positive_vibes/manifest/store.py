"""Manifest loading, saving and validation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from positive_vibes.errors import ManifestError, ManifestNotFoundError, ManifestValidationError
from positive_vibes.manifest.models import VALID_TARGETS, Manifest

logger = logging.getLogger(__name__)

MANIFEST_FILENAMES: tuple[str, ...] = ("vibes.yaml", "vibes.yml")

DEFAULT_HEADER = """\
# positive-vibes manifest
#
# registries:   git repositories to pull skills, instructions and agents from
#               (the built-in "embedded" registry is always available)
# skills:       skills to install, by name, registry or local path
# instructions: inline or file-based guidance, optionally limited with apply_to
# agents:       agent definitions from a local path or a registry
# targets:      tools to install into (vscode-copilot, opencode, cursor)
"""


def find_manifest(directory: str | Path) -> Path | None:
    """Return the first manifest file present in a directory, or None."""
    directory = Path(directory)
    for filename in MANIFEST_FILENAMES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def load_manifest(path: str | Path) -> Manifest:
    """Load a manifest from a YAML file.

    Args:
        path: Path to the manifest file

    Returns:
        Parsed Manifest

    Raises:
        ManifestError: If the file cannot be read or is not a valid manifest
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"failed to read manifest ({e.strerror or e})", path) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ManifestError(f"invalid YAML in manifest: {e}", path) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError("manifest must be a YAML mapping", path)

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(f"malformed manifest: {e}", path) from e

    logger.debug(f"Loaded manifest {path}")
    return manifest


def load_manifest_from_project(directory: str | Path) -> tuple[Manifest, Path]:
    """Load the project manifest, preferring vibes.yaml over the legacy vibes.yml.

    Returns:
        Tuple of (manifest, path it was loaded from)

    Raises:
        ManifestNotFoundError: If no manifest file exists in the directory
        ManifestError: If the manifest cannot be parsed
    """
    path = find_manifest(directory)
    if path is None:
        raise ManifestNotFoundError(directory, MANIFEST_FILENAMES)
    return load_manifest(path), path


def manifest_to_dict(manifest: Manifest) -> dict[str, Any]:
    """Dump a manifest to plain data, dropping empty fields."""
    data = manifest.model_dump(mode="python", exclude_none=True)
    for registry in data.get("registries", []):
        if not registry.get("paths"):
            registry.pop("paths", None)
    return {key: value for key, value in data.items() if value}


def dump_manifest(manifest: Manifest) -> str:
    """Render a manifest as YAML text."""
    data = manifest_to_dict(manifest)
    if not data:
        return "{}\n"
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def save_manifest(manifest: Manifest, path: str | Path, header: str | None = None) -> None:
    """Write a manifest to disk.

    Args:
        manifest: Manifest to save
        path: Destination file
        header: Optional text written verbatim before the YAML body

    Raises:
        OSError: If file operations fail
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o755)

    text = dump_manifest(manifest)
    if header:
        separator = "" if header.endswith("\n") else "\n"
        text = f"{header}{separator}{text}"

    path.write_text(text, encoding="utf-8")
    path.chmod(0o644)
    logger.debug(f"Saved manifest {path}")


def read_header(path: str | Path) -> str | None:
    """Return the leading comment block of a manifest file, if any."""
    path = Path(path)
    if not path.is_file():
        return None
    lines = []
    for line in path.read_text(encoding="utf-8").splitlines(keepends=True):
        if line.startswith("#") or (lines and not line.strip()):
            lines.append(line)
            continue
        break
    header = "".join(lines).rstrip("\n")
    return header + "\n" if header else None


def _duplicate_names(kind: str, names: list[str]) -> list[str]:
    seen: set[str] = set()
    problems = []
    for name in names:
        if name in seen:
            problems.append(f"duplicate {kind} {name!r}")
        seen.add(name)
    return problems


def validation_problems(manifest: Manifest, require_content: bool = True) -> list[str]:
    """Collect every structural problem in a manifest.

    Args:
        manifest: Manifest to check
        require_content: Require at least one resource or target (project manifests)

    Returns:
        Human-readable problems, empty when the manifest is valid
    """
    problems: list[str] = []

    if require_content and not manifest.has_resources() and not manifest.targets:
        problems.append("manifest must declare at least one skill, instruction, agent or target")

    valid = ", ".join(VALID_TARGETS)
    for target in manifest.targets:
        if target not in VALID_TARGETS:
            problems.append(f"unknown target {target!r} (valid: {valid})")

    for registry in manifest.registries:
        if not registry.name:
            problems.append("registry name is required")
            continue
        if not registry.url:
            problems.append(f"registry {registry.name!r} must specify a url")
        if not registry.ref:
            problems.append(
                f"registry {registry.name!r} must specify a ref "
                '(use "latest" to track the default branch)'
            )
    problems.extend(_duplicate_names("registry", [r.name for r in manifest.registries]))

    for skill in manifest.skills:
        if not skill.name:
            problems.append("skill name is required")
    problems.extend(_duplicate_names("skill", [s.name for s in manifest.skills]))

    for instruction in manifest.instructions:
        label = f"instruction {instruction.name!r}"
        if not instruction.name:
            problems.append("instruction name is required")
        if instruction.registry:
            if not instruction.path:
                problems.append(f"{label}: path is required when registry is set")
            if instruction.content:
                problems.append(f"{label}: content cannot be combined with registry")
        elif bool(instruction.content) == bool(instruction.path):
            problems.append(f"{label}: must set exactly one of content, path or registry+path")
        if instruction.apply_to and instruction.apply_to not in VALID_TARGETS:
            problems.append(f"{label}: unknown apply_to target {instruction.apply_to!r}")
    problems.extend(_duplicate_names("instruction", [i.name for i in manifest.instructions]))

    for agent in manifest.agents:
        if not agent.name:
            problems.append("agent name is required")
        if not agent.path:
            if agent.registry:
                problems.append(f"agent {agent.name!r}: path is required")
            else:
                problems.append(f"agent {agent.name!r}: must set path or registry+path")
    problems.extend(_duplicate_names("agent", [a.name for a in manifest.agents]))

    return problems


def validate_manifest(manifest: Manifest, require_content: bool = True) -> None:
    """Validate a manifest.

    Raises:
        ManifestValidationError: If any rule is violated
    """
    problems = validation_problems(manifest, require_content=require_content)
    if problems:
        raise ManifestValidationError(problems)
