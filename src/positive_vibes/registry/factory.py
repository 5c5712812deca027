"""Build the registry list for a manifest."""

from __future__ import annotations

import logging

from positive_vibes.config.paths import registry_cache_path
from positive_vibes.errors import PositiveVibesError
from positive_vibes.manifest.models import Manifest
from positive_vibes.registry.base import Refreshable, Registry
from positive_vibes.registry.embedded import EmbeddedRegistry
from positive_vibes.registry.git import GitRegistry

logger = logging.getLogger(__name__)


def git_registries(manifest: Manifest | None) -> list[GitRegistry]:
    """Create one GitRegistry per registry declared in the manifest."""
    if manifest is None:
        return []
    return [
        GitRegistry.from_ref(registry, registry_cache_path(registry.name))
        for registry in manifest.registries
    ]


def build_registries(manifest: Manifest | None, refresh: bool = False) -> list[Registry]:
    """Return the embedded registry followed by the manifest's git registries.

    Args:
        manifest: Manifest whose registries should be served
        refresh: Update cached clones tracking ``latest`` before returning
    """
    registries: list[Registry] = [EmbeddedRegistry(), *git_registries(manifest)]
    if refresh:
        for registry in registries:
            if not isinstance(registry, Refreshable):
                continue
            try:
                registry.refresh()
            except (PositiveVibesError, OSError) as e:
                logger.warning(f"Could not refresh registry {registry.name}: {e}")
    return registries
