"""Global/project manifest layering.

Both layers have their relative ``path`` fields made absolute against the
directory of the file that declared them before merging, so an entry keeps
pointing at the right place after it moves into the merged document.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from positive_vibes.config.paths import global_manifest_path
from positive_vibes.errors import ManifestNotFoundError
from positive_vibes.manifest.models import AgentRef, InstructionRef, Manifest, SkillRef
from positive_vibes.manifest.store import MANIFEST_FILENAMES, find_manifest, load_manifest

logger = logging.getLogger(__name__)

RESOURCE_KINDS: tuple[str, ...] = ("registries", "skills", "instructions", "agents")

_Named = TypeVar("_Named")


@dataclass
class ManifestLayers:
    """The raw global and project manifests with their source files."""

    global_manifest: Manifest | None = None
    global_path: Path | None = None
    local_manifest: Manifest | None = None
    local_path: Path | None = None

    @property
    def has_local(self) -> bool:
        return self.local_manifest is not None

    @property
    def has_global(self) -> bool:
        return self.global_manifest is not None


@dataclass
class OverrideDiagnostics:
    """Names defined in both layers, per kind, and the subset whose source type changed."""

    overrides: dict[str, list[str]] = field(default_factory=dict)
    risky: dict[str, list[str]] = field(default_factory=dict)

    def has_risky(self) -> bool:
        return any(self.risky.values())


def _resolve_path(path: str, base_dir: Path) -> str:
    expanded = Path(path).expanduser()
    if expanded.is_absolute():
        return str(expanded)
    return os.path.normpath(base_dir / expanded)


def resolve_relative_paths(manifest: Manifest, base_dir: str | Path) -> Manifest:
    """Return a copy of a manifest with local paths made absolute.

    Paths on registry-backed entries point inside the registry and are left
    untouched.
    """
    base_dir = Path(base_dir)
    resolved = manifest.model_copy(deep=True)
    for entry in [*resolved.skills, *resolved.instructions, *resolved.agents]:
        if entry.path and not entry.registry:
            entry.path = _resolve_path(entry.path, base_dir)
    return resolved


def _merge_by_name(global_items: Sequence[_Named], local_items: Sequence[_Named]) -> list[_Named]:
    merged: dict[str, _Named] = {}
    for item in global_items:
        merged.setdefault(item.name, item)  # type: ignore[attr-defined]
    for item in local_items:
        # dict assignment keeps the ordinal of an existing key
        merged[item.name] = item  # type: ignore[attr-defined]
    return list(merged.values())


def merge_manifests(global_manifest: Manifest | None, local_manifest: Manifest | None) -> Manifest:
    """Merge two manifests by name with project entries winning.

    Entries keep the position of their first appearance. Targets come from the
    project when it lists any, otherwise from the global layer.

    Raises:
        ValueError: If both manifests are None
    """
    if global_manifest is None and local_manifest is None:
        raise ValueError("at least one manifest is required to merge")
    if global_manifest is None:
        return local_manifest.model_copy(deep=True)  # type: ignore[union-attr]
    if local_manifest is None:
        return global_manifest.model_copy(deep=True)

    return Manifest(
        registries=_merge_by_name(global_manifest.registries, local_manifest.registries),
        skills=_merge_by_name(global_manifest.skills, local_manifest.skills),
        instructions=_merge_by_name(global_manifest.instructions, local_manifest.instructions),
        agents=_merge_by_name(global_manifest.agents, local_manifest.agents),
        targets=list(local_manifest.targets or global_manifest.targets),
    ).model_copy(deep=True)


def load_layers(project_dir: str | Path, global_path: str | Path | None = None) -> ManifestLayers:
    """Load the global and project manifests, either of which may be absent.

    Args:
        project_dir: Directory searched for vibes.yaml / vibes.yml
        global_path: Global manifest file (defaults to the XDG location)

    Raises:
        ManifestError: If a present manifest cannot be parsed
    """
    project_dir = Path(project_dir)
    layers = ManifestLayers()

    gpath = Path(global_path) if global_path else global_manifest_path()
    if gpath.is_file():
        layers.global_path = gpath
        layers.global_manifest = resolve_relative_paths(load_manifest(gpath), gpath.parent)
        logger.debug(f"Using global manifest {gpath}")

    lpath = find_manifest(project_dir)
    if lpath is not None:
        layers.local_path = lpath
        layers.local_manifest = resolve_relative_paths(load_manifest(lpath), lpath.parent)
        logger.debug(f"Using project manifest {lpath}")

    return layers


def load_merged_manifest(project_dir: str | Path, global_path: str | Path | None = None) -> Manifest:
    """Load and merge the global and project manifests.

    Raises:
        ManifestNotFoundError: If neither manifest exists
        ManifestError: If a present manifest cannot be parsed
    """
    layers = load_layers(project_dir, global_path)
    if not layers.has_global and not layers.has_local:
        gpath = Path(global_path) if global_path else global_manifest_path()
        raise ManifestNotFoundError(project_dir, [*MANIFEST_FILENAMES, str(gpath)])
    return merge_manifests(layers.global_manifest, layers.local_manifest)


def _skill_source(skill: SkillRef) -> str:
    # embedded lookups and registry fetches are the same source type
    return "path" if skill.source_kind == "path" else "registry"


def _instruction_source(instruction: InstructionRef) -> str:
    return instruction.source_kind


def _agent_source(agent: AgentRef) -> str:
    return agent.source_kind


_SOURCE_TYPE = {
    "skills": _skill_source,
    "instructions": _instruction_source,
    "agents": _agent_source,
}


def compute_override_diagnostics(
    global_manifest: Manifest | None, local_manifest: Manifest | None
) -> OverrideDiagnostics:
    """Find names defined in both layers and flag source-type changes."""
    diagnostics = OverrideDiagnostics()
    if global_manifest is None or local_manifest is None:
        return diagnostics

    for kind in RESOURCE_KINDS:
        global_items = {item.name: item for item in getattr(global_manifest, kind)}
        local_items = {item.name: item for item in getattr(local_manifest, kind)}
        shared = sorted(set(global_items) & set(local_items))
        if shared:
            diagnostics.overrides[kind] = shared

        source_type = _SOURCE_TYPE.get(kind)
        if source_type is None:
            continue
        risky = [
            name for name in shared if source_type(global_items[name]) != source_type(local_items[name])
        ]
        if risky:
            diagnostics.risky[kind] = risky

    return diagnostics


def format_risky_override_warning(diagnostics: OverrideDiagnostics) -> str:
    """Render the risky-override warning, or an empty string when there is none."""
    if not diagnostics.has_risky():
        return ""
    lines = ["Warning: local config overrides change resource source type:"]
    for kind in RESOURCE_KINDS:
        names = diagnostics.risky.get(kind)
        if names:
            lines.append(f"- {kind}: {', '.join(names)}")
    return "\n".join(lines)
