"""Apply engine, manifest installer and project scanner."""

from positive_vibes.engine.applier import (
    ApplyOp,
    ApplyResult,
    Applier,
    apply_manifest,
)
from positive_vibes.engine.installer import Installer, load_or_new
from positive_vibes.engine.scanner import ProjectScan, scan_project

__all__ = [
    "ApplyOp",
    "ApplyResult",
    "Applier",
    "Installer",
    "ProjectScan",
    "apply_manifest",
    "load_or_new",
    "scan_project",
]
