"""Add and remove skills in a manifest file."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from positive_vibes.errors import DuplicateResourceError, ResourceNotFoundError
from positive_vibes.manifest import (
    DEFAULT_HEADER,
    Manifest,
    SkillRef,
    load_manifest,
    read_header,
    save_manifest,
)
from positive_vibes.registry import EmbeddedRegistry, Registry, find_skill

logger = logging.getLogger(__name__)


def load_or_new(manifest_path: Path) -> tuple[Manifest, str | None]:
    """Load a manifest and its comment header, or start an empty one with the default header."""
    if manifest_path.is_file():
        return load_manifest(manifest_path), read_header(manifest_path)
    return Manifest(), DEFAULT_HEADER


class Installer:
    """Edits the skills list of a manifest.

    Example usage:
        ```python
        installer = Installer(build_registries(manifest), project_dir)
        installer.install("code-review", project_dir / "vibes.yaml")
        ```
    """

    def __init__(self, registries: Sequence[Registry], project_dir: str | Path):
        self.registries = list(registries)
        self.project_dir = Path(project_dir)

    def _local_skill_path(self, name: str, manifest_path: Path) -> str | None:
        skill_dir = self.project_dir / "skills" / name
        if not (skill_dir / "SKILL.md").is_file():
            return None
        if manifest_path.parent.resolve() == self.project_dir.resolve():
            return f"./skills/{name}"
        return str(skill_dir.resolve())

    def install(self, skill_name: str, manifest_path: str | Path) -> SkillRef:
        """Add a skill to a manifest, creating the manifest if needed.

        A project-local ``skills/<name>/SKILL.md`` wins over registries.

        Args:
            skill_name: Skill to add
            manifest_path: Manifest file to update

        Returns:
            The SkillRef that was saved

        Raises:
            DuplicateResourceError: If the manifest already lists the skill
            ResourceNotFoundError: If no local copy or registry has the skill
        """
        manifest_path = Path(manifest_path)
        manifest, header = load_or_new(manifest_path)

        if any(s.name == skill_name for s in manifest.skills):
            raise DuplicateResourceError("skill", skill_name)

        local_path = self._local_skill_path(skill_name, manifest_path)
        if local_path:
            ref = SkillRef(name=skill_name, path=local_path)
        else:
            registry, _, source_dir = find_skill(self.registries, skill_name)
            if isinstance(registry, EmbeddedRegistry):
                registry.release(source_dir)
            logger.debug(f"Skill {skill_name} available from {registry.name}")
            ref = SkillRef(name=skill_name)

        manifest.skills.append(ref)
        save_manifest(manifest, manifest_path, header=header)
        logger.info(f"Added skill {skill_name} to {manifest_path}")
        return ref

    def remove(self, name: str, manifest_path: str | Path) -> None:
        """Remove a skill from a manifest.

        Raises:
            ResourceNotFoundError: If the manifest does not exist or lacks the skill
        """
        manifest_path = Path(manifest_path)
        if not manifest_path.is_file():
            raise ResourceNotFoundError(f"no manifest at {manifest_path}", name=name)

        manifest = load_manifest(manifest_path)
        remaining = [s for s in manifest.skills if s.name != name]
        if len(remaining) == len(manifest.skills):
            raise ResourceNotFoundError(f"skill {name!r} is not in {manifest_path}", name=name)

        manifest.skills = remaining
        save_manifest(manifest, manifest_path, header=read_header(manifest_path))
        logger.info(f"Removed skill {name} from {manifest_path}")
