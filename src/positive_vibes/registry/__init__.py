"""Resource registries: the bundled skill set and cached git repositories."""

from positive_vibes.registry.base import (
    EMBEDDED_REGISTRY_NAME,
    FileSource,
    Refreshable,
    Registry,
    ResourceSource,
    find_registry,
    find_skill,
    resource_name_from_path,
    search_order,
)
from positive_vibes.registry.embedded import EmbeddedRegistry
from positive_vibes.registry.factory import build_registries, git_registries
from positive_vibes.registry.git import GitRegistry, is_commit_sha

__all__ = [
    "EMBEDDED_REGISTRY_NAME",
    "EmbeddedRegistry",
    "FileSource",
    "GitRegistry",
    "Refreshable",
    "Registry",
    "ResourceSource",
    "build_registries",
    "find_registry",
    "find_skill",
    "git_registries",
    "is_commit_sha",
    "resource_name_from_path",
    "search_order",
]
