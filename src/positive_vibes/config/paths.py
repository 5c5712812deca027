"""XDG-style locations for user-scoped configuration and cache."""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "positive-vibes"


def config_dir() -> Path:
    """Get the user config directory, respecting XDG_CONFIG_HOME.

    Returns:
        Path to ``$XDG_CONFIG_HOME/positive-vibes`` (``~/.config/positive-vibes`` by default)
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def global_manifest_path() -> Path:
    return config_dir() / "vibes.yaml"


def cache_dir() -> Path:
    """Get the registry cache root, respecting XDG_CACHE_HOME.

    Returns:
        Path to ``$XDG_CACHE_HOME/positive-vibes/cache`` (``~/.cache/...`` by default)
    """
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return root / APP_NAME / "cache"


def registry_cache_path(name: str) -> Path:
    return cache_dir() / name
