"""Global/project/effective configuration differences."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from positive_vibes.manifest import Manifest, compute_override_diagnostics

DIFF_KINDS: tuple[str, ...] = ("skills", "instructions", "agents")
SUMMARY_KINDS: tuple[str, ...] = ("registries", "skills", "instructions", "agents", "targets")


@dataclass
class ConfigDiff:
    """Names per kind found only globally, only locally, or in both."""

    global_only: dict[str, list[str]] = field(default_factory=dict)
    local_only: dict[str, list[str]] = field(default_factory=dict)
    overrides: dict[str, list[str]] = field(default_factory=dict)
    risky: dict[str, list[str]] = field(default_factory=dict)
    effective_summary: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "global_only": self.global_only,
            "local_only": self.local_only,
            "overrides": {"all": self.overrides, "risky": self.risky},
            "effective_summary": self.effective_summary,
        }


def _names(manifest: Manifest, kind: str) -> set[str]:
    return {item.name for item in getattr(manifest, kind)}


def compute_config_diff(
    global_manifest: Manifest | None,
    local_manifest: Manifest | None,
    merged: Manifest | None,
) -> ConfigDiff:
    global_manifest = global_manifest or Manifest()
    local_manifest = local_manifest or Manifest()
    merged = merged or Manifest()

    diagnostics = compute_override_diagnostics(global_manifest, local_manifest)
    diff = ConfigDiff(overrides=diagnostics.overrides, risky=diagnostics.risky)
    for kind in DIFF_KINDS:
        global_names = _names(global_manifest, kind)
        local_names = _names(local_manifest, kind)
        diff.global_only[kind] = sorted(global_names - local_names)
        diff.local_only[kind] = sorted(local_names - global_names)
    diff.effective_summary = {kind: len(getattr(merged, kind)) for kind in SUMMARY_KINDS}
    return diff


def format_config_diff(
    global_manifest: Manifest | None,
    local_manifest: Manifest | None,
    merged: Manifest | None,
) -> str:
    """Render the diff as human-readable text."""
    diff = compute_config_diff(global_manifest, local_manifest, merged)
    lines: list[str] = []

    for title, buckets in (("Global-only:", diff.global_only), ("Local-only:", diff.local_only)):
        if lines:
            lines.append("")
        lines.append(title)
        for kind in DIFF_KINDS:
            if buckets.get(kind):
                lines.append(f"  {kind}: {', '.join(buckets[kind])}")

    lines.append("")
    lines.append("Overrides:")
    for kind in (*DIFF_KINDS, "registries"):
        if diff.overrides.get(kind):
            lines.append(f"  {kind}: {', '.join(diff.overrides[kind])}")

    lines.append("")
    lines.append("Effective config summary:")
    for kind, count in diff.effective_summary.items():
        lines.append(f"  {kind}: {count}")

    return "\n".join(lines) + "\n"


def format_config_diff_json(
    global_manifest: Manifest | None,
    local_manifest: Manifest | None,
    merged: Manifest | None,
) -> str:
    diff = compute_config_diff(global_manifest, local_manifest, merged)
    return json.dumps(diff.to_dict(), indent=2) + "\n"
