"""Detect a project's language to seed a new manifest."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from positive_vibes.manifest.models import VALID_TARGETS

# checked in order, first hit wins
LANGUAGE_MARKERS: tuple[tuple[str, str], ...] = (
    ("go.mod", "go"),
    ("package.json", "node"),
    ("pyproject.toml", "python"),
    ("requirements.txt", "python"),
)


@dataclass
class ProjectScan:
    language: str = "unknown"
    recommended_skills: list[str] = field(
        default_factory=lambda: ["conventional-commits", "code-review"]
    )
    suggested_targets: list[str] = field(default_factory=lambda: list(VALID_TARGETS))


def scan_project(directory: str | Path) -> ProjectScan:
    directory = Path(directory)
    scan = ProjectScan()
    for marker, language in LANGUAGE_MARKERS:
        if (directory / marker).exists():
            scan.language = language
            break
    return scan
