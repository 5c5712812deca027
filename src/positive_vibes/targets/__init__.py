"""Target adapters, one per supported AI tool."""

from __future__ import annotations

from collections.abc import Iterable

from positive_vibes.errors import TargetError
from positive_vibes.manifest.models import VALID_TARGETS
from positive_vibes.targets.base import InstallOptions, Target
from positive_vibes.targets.copilot import CopilotTarget
from positive_vibes.targets.cursor import CursorTarget
from positive_vibes.targets.opencode import OpenCodeTarget

_TARGETS: dict[str, type[Target]] = {
    CopilotTarget.name: CopilotTarget,
    OpenCodeTarget.name: OpenCodeTarget,
    CursorTarget.name: CursorTarget,
}


def get_target(name: str) -> Target:
    """Return the adapter for a target name.

    Raises:
        TargetError: If the name is not a supported target
    """
    try:
        return _TARGETS[name]()
    except KeyError:
        raise TargetError(
            f"unknown target {name!r} (valid: {', '.join(VALID_TARGETS)})"
        ) from None


def resolve_targets(names: Iterable[str]) -> list[Target]:
    """Map target names to adapters, preserving order."""
    return [get_target(name) for name in names]


__all__ = [
    "CopilotTarget",
    "CursorTarget",
    "InstallOptions",
    "OpenCodeTarget",
    "Target",
    "get_target",
    "resolve_targets",
]
