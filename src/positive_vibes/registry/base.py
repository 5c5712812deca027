"""Registry interfaces.

Every registry implements :class:`Registry`. Extra capabilities are opt-in
protocols that callers feature-test with ``isinstance``:

- :class:`FileSource` - read an arbitrary file next to a skill
- :class:`ResourceSource` - enumerate and read instruction/agent files
- :class:`Refreshable` - update a cached copy from its remote
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath
from typing import Literal, Protocol, runtime_checkable

from positive_vibes.errors import ResourceNotFoundError
from positive_vibes.schema import Skill

logger = logging.getLogger(__name__)

EMBEDDED_REGISTRY_NAME = "embedded"

ResourceKind = Literal["skills", "instructions", "agents"]

RESOURCE_SUFFIXES: dict[str, str] = {
    "instructions": ".instructions.md",
    "agents": ".agent.md",
    "skills": ".md",
}


class Registry(ABC):
    """A named source of skills."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry identifier."""

    @abstractmethod
    def list_skills(self) -> list[str]:
        """Return the sorted names of every skill this registry serves."""

    @abstractmethod
    def fetch(self, name: str) -> tuple[Skill, Path]:
        """Fetch a skill.

        Args:
            name: Skill name, or an in-registry skill directory

        Returns:
            Tuple of (parsed skill, directory holding SKILL.md and its siblings)

        Raises:
            ResourceNotFoundError: If the registry has no such skill
        """


@runtime_checkable
class FileSource(Protocol):
    def fetch_file(self, skill_name: str, rel_path: str) -> bytes: ...


@runtime_checkable
class ResourceSource(Protocol):
    def list_resource_files(self, kind: str) -> list[str]: ...

    def fetch_resource_file(self, kind: str, rel_path: str) -> bytes: ...


@runtime_checkable
class Refreshable(Protocol):
    def refresh(self) -> None: ...


def resource_name_from_path(kind: str, rel_path: str) -> str | None:
    """Derive a resource name from a registry file path.

    ``agents/debug.agent.md`` is agent ``debug``; a plain ``readme.md`` under
    the agents tree is not an agent and yields None.
    """
    suffix = RESOURCE_SUFFIXES.get(kind, ".md")
    base = PurePosixPath(rel_path).name
    if not base.endswith(suffix):
        return None
    return base[: -len(suffix)] or None


def search_order(registries: Iterable[Registry]) -> list[Registry]:
    """Order registries for name lookup: embedded first, then configured order."""
    registries = list(registries)
    return sorted(registries, key=lambda r: r.name != EMBEDDED_REGISTRY_NAME)


def find_registry(registries: Sequence[Registry], name: str) -> Registry | None:
    for registry in registries:
        if registry.name == name:
            return registry
    return None


def find_skill(registries: Iterable[Registry], name: str) -> tuple[Registry, Skill, Path]:
    """Search registries for a skill, first hit wins.

    Raises:
        ResourceNotFoundError: If no registry has the skill
    """
    for registry in search_order(registries):
        try:
            skill, source_dir = registry.fetch(name)
        except ResourceNotFoundError:
            continue
        except Exception as e:
            logger.warning(f"Registry {registry.name} failed to fetch {name}: {e}")
            continue
        logger.debug(f"Found skill {name} in registry {registry.name}")
        return registry, skill, source_dir
    raise ResourceNotFoundError(f"skill {name!r} not found in any registry", name=name)
