"""Offline checks over a merged manifest."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from positive_vibes.errors import PositiveVibesError
from positive_vibes.manifest import (
    VALID_TARGETS,
    Manifest,
    compute_override_diagnostics,
)
from positive_vibes.registry import EMBEDDED_REGISTRY_NAME, Registry

logger = logging.getLogger(__name__)

_RISKY_MESSAGES = {
    "skills": "local skill switches source type (path vs registry/embedded)",
    "instructions": "local instruction switches source type (content vs path vs registry)",
    "agents": "local agent switches source type (path vs registry)",
}


@dataclass
class ConfigProblem:
    """A single finding, keyed by the entry (or target) it concerns."""

    field: str
    message: str


@dataclass
class ConfigValidationResult:
    problems: list[ConfigProblem] = field(default_factory=list)
    warnings: list[ConfigProblem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def add(self, field_name: str, message: str) -> None:
        self.problems.append(ConfigProblem(field_name, message))

    def warn(self, field_name: str, message: str) -> None:
        self.warnings.append(ConfigProblem(field_name, message))

    def problem_for(self, field_name: str) -> str | None:
        for problem in self.problems:
            if problem.field == field_name:
                return problem.message
        return None


def collect_available_skills(
    registries: Iterable[Registry],
) -> tuple[set[str], list[ConfigProblem]]:
    """List skills from every registry, turning listing failures into warnings."""
    available: set[str] = set()
    warnings: list[ConfigProblem] = []
    for registry in registries:
        try:
            available.update(registry.list_skills())
        except (PositiveVibesError, OSError) as e:
            logger.debug(f"Listing registry {registry.name} failed: {e}")
            warnings.append(ConfigProblem(f"registry/{registry.name}", f"could not list skills: {e}"))
    return available, warnings


def global_only_registry_warnings(
    global_manifest: Manifest | None, local_manifest: Manifest | None
) -> list[ConfigProblem]:
    """Flag project entries that depend on a registry only the global layer defines."""
    if local_manifest is None:
        return []
    local_registries = {r.name for r in local_manifest.registries}
    global_registries = {r.name for r in global_manifest.registries} if global_manifest else set()

    warnings = []
    entries = [
        *(("skill", s.name, s.registry) for s in local_manifest.skills),
        *(("instruction", i.name, i.registry) for i in local_manifest.instructions),
        *(("agent", a.name, a.registry) for a in local_manifest.agents),
    ]
    for kind, name, registry in entries:
        if not registry or registry == EMBEDDED_REGISTRY_NAME:
            continue
        if registry in global_registries and registry not in local_registries:
            warnings.append(
                ConfigProblem(
                    name,
                    f"{kind} references registry {registry!r} defined only in global config; "
                    "add it to project registries for portability",
                )
            )
    return warnings


def validate_config(
    merged: Manifest,
    available_skills: Iterable[str],
    has_local: bool = True,
    global_manifest: Manifest | None = None,
    local_manifest: Manifest | None = None,
    unresolved_registries: Sequence[str] = (),
) -> ConfigValidationResult:
    """Check that every target is valid and every entry can be resolved.

    Args:
        merged: Merged manifest with absolute local paths
        available_skills: Skill names served by the registries
        has_local: Whether a project manifest exists. A global-only setup is a
            base layer, so missing resources or targets are not problems.
        global_manifest: Global layer, for portability and override warnings
        local_manifest: Project layer, for portability and override warnings
        unresolved_registries: Registries that could not be listed; skills that
            might live there are warnings rather than problems

    Returns:
        ConfigValidationResult with problems and warnings
    """
    result = ConfigValidationResult()
    available = set(available_skills)
    registry_names = {r.name for r in merged.registries}

    if has_local:
        resource_count = len(merged.skills) + len(merged.instructions) + len(merged.agents)
        if resource_count == 0:
            result.add("resources", "no resources defined (skills, instructions, or agents)")
        elif not merged.targets:
            result.add("targets", "no targets defined")

    for target in merged.targets:
        if target not in VALID_TARGETS:
            result.add(target, f"invalid target (valid: {', '.join(VALID_TARGETS)})")

    for registry in merged.registries:
        if not registry.ref:
            result.add(registry.name, "registry has no ref (use \"latest\" to track the default branch)")

    for skill in merged.skills:
        if skill.registry:
            if skill.registry not in registry_names and skill.registry != EMBEDDED_REGISTRY_NAME:
                result.add(skill.name, f"registry not found: {skill.registry}")
        elif skill.path:
            if not os.path.exists(skill.path):
                result.add(skill.name, f"path not found: {skill.path}")
        elif skill.name not in available:
            if unresolved_registries:
                result.warn(
                    skill.name,
                    "could not verify skill due to registry lookup failures: "
                    + ", ".join(unresolved_registries),
                )
            else:
                result.add(skill.name, "not found in any registry")

    for entry in [*merged.instructions, *merged.agents]:
        if entry.registry:
            if entry.registry not in registry_names:
                result.add(entry.name, f"registry not found: {entry.registry}")
        elif entry.path and not os.path.exists(entry.path):
            result.add(entry.name, f"path not found: {entry.path}")

    result.warnings.extend(global_only_registry_warnings(global_manifest, local_manifest))

    diagnostics = compute_override_diagnostics(global_manifest, local_manifest)
    for kind, message in _RISKY_MESSAGES.items():
        for name in diagnostics.risky.get(kind, []):
            result.warn(name, message)

    return result
