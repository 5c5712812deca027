"""OpenCode."""

from positive_vibes.targets.base import Target


class OpenCodeTarget(Target):
    name = "opencode"
    root = ".opencode"
