"""Filesystem locations for the global manifest and the registry cache."""

from positive_vibes.config.paths import (
    cache_dir,
    config_dir,
    global_manifest_path,
    registry_cache_path,
)

__all__ = ["cache_dir", "config_dir", "global_manifest_path", "registry_cache_path"]
