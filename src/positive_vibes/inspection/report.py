"""Text reports for ``config paths`` and ``config show --sources``."""

from __future__ import annotations

import json
import os
from pathlib import Path

from positive_vibes.manifest import MANIFEST_FILENAMES, Manifest

GLOBAL_TAG = "# [global]"
LOCAL_TAG = "# [local]"
OVERRIDE_TAG = "# [local, overrides global]"


def format_paths(global_path: str | Path, project_dir: str | Path, cache_dir: str | Path) -> str:
    """Summarize config file locations and whether they exist."""
    global_path = Path(global_path)
    project_dir = Path(project_dir)

    global_status = "[found]" if global_path.exists() else "[not found]"

    local_path = project_dir / MANIFEST_FILENAMES[0]
    local_status = "[not found]"
    for filename in MANIFEST_FILENAMES:
        candidate = project_dir / filename
        if candidate.exists():
            local_path = candidate
            local_status = "[found]" if filename == MANIFEST_FILENAMES[0] else "[found, legacy name]"
            break

    return (
        f"Global config:  {global_path}  {global_status}\n"
        f"Local config:   {local_path}  {local_status}\n"
        f"Project dir:    {project_dir.resolve()}\n"
        f"Cache dir:      {cache_dir}\n"
    )


def source_tag(in_global: bool, in_local: bool) -> str:
    if in_global and in_local:
        return OVERRIDE_TAG
    if in_global:
        return GLOBAL_TAG
    if in_local:
        return LOCAL_TAG
    return ""


def path_for_display(path: str, root: str | Path | None, relative: bool) -> str:
    """Show an absolute path relative to its config root when asked and possible."""
    if not path or not relative or not root or not os.path.isabs(path):
        return path
    rel = os.path.relpath(path, root)
    if rel == ".":
        return "./"
    if rel.startswith(".."):
        return path
    return "./" + Path(rel).as_posix()


def has_path_entries(manifest: Manifest) -> bool:
    return any(entry.path for entry in [*manifest.skills, *manifest.instructions, *manifest.agents])


def annotate_manifest(
    global_manifest: Manifest | None,
    local_manifest: Manifest | None,
    merged: Manifest,
    relative_paths: bool = False,
    project_dir: str | Path | None = None,
    global_path: str | Path | None = None,
) -> str:
    """Render the merged manifest as YAML-like text with per-entry source tags.

    Args:
        global_manifest: Global layer, or None
        local_manifest: Project layer, or None
        merged: The merged manifest
        relative_paths: Show local paths relative to the file that declared them
        project_dir: Root for project-declared paths
        global_path: Global manifest file, whose directory roots global paths

    Returns:
        Annotated text
    """
    global_root = Path(global_path).parent if global_path else None

    def names(manifest: Manifest | None, kind: str) -> set[str]:
        return {item.name for item in getattr(manifest, kind)} if manifest else set()

    def tag(kind: str, name: str) -> str:
        return source_tag(name in names(global_manifest, kind), name in names(local_manifest, kind))

    def display(kind: str, entry: object) -> str:
        name = entry.name  # type: ignore[attr-defined]
        if entry.registry:  # type: ignore[attr-defined]
            root = None
        elif name in names(local_manifest, kind):
            root = project_dir
        else:
            root = global_root
        return path_for_display(entry.path, root, relative_paths)  # type: ignore[attr-defined]

    lines: list[str] = []

    if merged.registries:
        lines.append("registries:")
        for registry in merged.registries:
            lines.append(f"  - name: {registry.name}  {tag('registries', registry.name)}")
            lines.append(f"    url: {registry.url}")
            lines.append(f"    ref: {registry.ref}")

    if merged.skills:
        lines.append("skills:")
        for skill in merged.skills:
            lines.append(f"  - name: {skill.name}  {tag('skills', skill.name)}")
            if skill.registry:
                lines.append(f"    registry: {skill.registry}")
            if skill.path:
                lines.append(f"    path: {display('skills', skill)}")

    if merged.targets:
        from_local = local_manifest is not None and bool(local_manifest.targets)
        lines.append(f"targets: {LOCAL_TAG if from_local else GLOBAL_TAG}")
        for target in merged.targets:
            lines.append(f"  - {target}")

    if merged.instructions:
        lines.append("instructions:")
        for instruction in merged.instructions:
            lines.append(f"  - name: {instruction.name}  {tag('instructions', instruction.name)}")
            if instruction.registry:
                lines.append(f"    registry: {instruction.registry}")
            if instruction.content:
                lines.append(f"    content: {json.dumps(instruction.content)}")
            elif instruction.path:
                lines.append(f"    path: {display('instructions', instruction)}")
            if instruction.apply_to:
                lines.append(f"    apply_to: {json.dumps(instruction.apply_to)}")

    if merged.agents:
        lines.append("agents:")
        for agent in merged.agents:
            lines.append(f"  - name: {agent.name}  {tag('agents', agent.name)}")
            if agent.registry:
                lines.append(f"    registry: {agent.registry}")
            if agent.path:
                lines.append(f"    path: {display('agents', agent)}")

    return "\n".join(lines) + ("\n" if lines else "")
