"""Read-only registry of skills bundled with the package."""

from __future__ import annotations

import logging
import shutil
import tempfile
from importlib.resources import files
from importlib.resources.abc import Traversable
from pathlib import Path

from positive_vibes.errors import ResourceNotFoundError
from positive_vibes.registry.base import EMBEDDED_REGISTRY_NAME, Registry
from positive_vibes.schema import Skill, parse_skill

logger = logging.getLogger(__name__)


def bundled_skills_root() -> Traversable:
    return files("positive_vibes.registry") / "bundled"


def _copy_tree(source: Traversable, dest: Path) -> None:
    dest.mkdir(parents=True, exist_ok=True)
    for entry in source.iterdir():
        if entry.is_dir():
            _copy_tree(entry, dest / entry.name)
        else:
            (dest / entry.name).write_bytes(entry.read_bytes())


class EmbeddedRegistry(Registry):
    """Skills shipped inside the package.

    Fetching copies the skill into a fresh temporary directory so targets can
    install it the same way they handle git-backed skills. Callers hand the
    copy back with :meth:`release` once they are done with it.
    """

    def __init__(self, root: str | Path | Traversable | None = None):
        if root is None:
            self._root: Traversable = bundled_skills_root()
        elif isinstance(root, str):
            self._root = Path(root)
        else:
            self._root = root

    @property
    def name(self) -> str:
        return EMBEDDED_REGISTRY_NAME

    def list_skills(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(
            child.name
            for child in self._root.iterdir()
            if child.is_dir() and (child / "SKILL.md").is_file()
        )

    def fetch(self, name: str) -> tuple[Skill, Path]:
        source = self._root / name
        if "/" in name or name.startswith(".") or not (source / "SKILL.md").is_file():
            raise ResourceNotFoundError(
                f"skill {name!r} not found in {EMBEDDED_REGISTRY_NAME} registry", name=name
            )

        skill = parse_skill((source / "SKILL.md").read_bytes())
        skill_dir = Path(tempfile.mkdtemp(prefix="pv-skill-")) / name
        _copy_tree(source, skill_dir)
        logger.debug(f"Materialized embedded skill {name} at {skill_dir}")
        return skill, skill_dir

    def release(self, skill_dir: str | Path) -> None:
        """Delete a copy returned by :meth:`fetch`."""
        shutil.rmtree(Path(skill_dir).parent, ignore_errors=True)
        logger.debug(f"Released embedded skill copy {skill_dir}")

    def refresh(self) -> None:
        """Bundled skills never change."""
