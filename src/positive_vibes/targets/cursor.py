"""Cursor."""

from positive_vibes.targets.base import Target


class CursorTarget(Target):
    name = "cursor"
    root = ".cursor"
