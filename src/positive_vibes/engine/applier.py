"""Apply a manifest: resolve every entry and install it into every target.

The run never aborts on a per-resource failure. Each attempt is recorded as
an :class:`ApplyOp` in execution order: skills, then instructions, then
agents, each crossed with the targets in manifest order.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

from positive_vibes.errors import PositiveVibesError, ResourceNotFoundError
from positive_vibes.manifest import (
    AgentRef,
    InstructionRef,
    Manifest,
    SkillRef,
    load_merged_manifest,
    validate_manifest,
)
from positive_vibes.registry import (
    EmbeddedRegistry,
    FileSource,
    Registry,
    ResourceSource,
    build_registries,
    find_registry,
    find_skill,
)
from positive_vibes.schema import Skill, parse_skill_file
from positive_vibes.targets import InstallOptions, Target, resolve_targets

logger = logging.getLogger(__name__)

OpKind = Literal["skill", "instruction", "agent"]
OpStatus = Literal["installed", "skipped", "error", "not_found"]


@dataclass
class ApplyOp:
    """Outcome of one resource/target attempt."""

    name: str
    target_name: str
    kind: OpKind
    status: OpStatus
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "target": self.target_name,
            "kind": self.kind,
            "status": self.status,
            "error": self.error,
        }


@dataclass
class ApplyResult:
    """Counters plus the ordered op trace of an apply run.

    ``errors`` holds the messages of ``error`` ops; unresolved resources are
    counted by ``not_found``.
    """

    installed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    ops: list[ApplyOp] = field(default_factory=list)

    @property
    def not_found(self) -> int:
        return sum(1 for op in self.ops if op.status == "not_found")

    @property
    def has_failures(self) -> bool:
        return bool(self.errors) or self.not_found > 0

    def record(self, op: ApplyOp) -> None:
        self.ops.append(op)
        if op.status == "installed":
            self.installed += 1
        elif op.status == "skipped":
            self.skipped += 1
        elif op.status == "error" and op.error:
            self.errors.append(op.error)


class Applier:
    """Resolves manifest entries against registries and fans them out to targets."""

    def __init__(self, registries: Sequence[Registry], project_dir: str | Path):
        self.registries = list(registries)
        self.project_dir = Path(project_dir)

    def _local_path(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.project_dir / candidate
        return candidate

    def _registry(self, name: str) -> Registry:
        registry = find_registry(self.registries, name)
        if registry is None:
            raise ResourceNotFoundError(f"registry {name!r} not found", name=name)
        return registry

    def resolve_skill(self, ref: SkillRef) -> tuple[Skill, Path]:
        """Resolve a skill entry to its parsed skill and source directory.

        Raises:
            ResourceNotFoundError: If the skill cannot be found
            SkillParseError: If the SKILL.md is malformed
        """
        skill, source_dir, _ = self.resolve_skill_source(ref)
        return skill, source_dir

    def resolve_skill_source(self, ref: SkillRef) -> tuple[Skill, Path, Registry | None]:
        """Like :meth:`resolve_skill`, also returning the registry that served it.

        The registry is None for local paths.
        """
        if ref.registry:
            registry = self._registry(ref.registry)
            skill, source_dir = registry.fetch(ref.path or ref.name)
            return skill, source_dir, registry

        if ref.path:
            skill_dir = self._local_path(ref.path)
            if skill_dir.is_file():
                skill_dir = skill_dir.parent
            skill_file = skill_dir / "SKILL.md"
            if not skill_file.is_file():
                raise ResourceNotFoundError(f"no SKILL.md at {skill_dir}", name=ref.name)
            return parse_skill_file(skill_file), skill_dir, None

        registry, skill, source_dir = find_skill(self.registries, ref.name)
        return skill, source_dir, registry

    def fetch_registry_file(self, registry_name: str, kind: str, path: str) -> bytes:
        """Read an instruction or agent file from a registry.

        The path is tried against the kind's base directory first, then as
        ``<skill>/<relative path>`` inside the skills tree.

        Raises:
            ResourceNotFoundError: If the registry or the file does not exist
        """
        registry = self._registry(registry_name)
        skill_name, _, rel_path = path.partition("/")

        if isinstance(registry, ResourceSource):
            try:
                return registry.fetch_resource_file(kind, path)
            except ResourceNotFoundError:
                if not (isinstance(registry, FileSource) and rel_path):
                    raise
        if isinstance(registry, FileSource) and rel_path:
            return registry.fetch_file(skill_name, rel_path)
        raise ResourceNotFoundError(
            f"{path} not found in registry {registry_name!r}", name=path
        )

    def _spill(self, data: bytes, prefix: str) -> Path:
        fd, name = tempfile.mkstemp(prefix=prefix, dir=self.project_dir)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        return Path(name)

    def _fan_out(
        self,
        result: ApplyResult,
        name: str,
        kind: OpKind,
        targets: Sequence[Target],
        exists: Callable[[Target], bool],
        install: Callable[[Target], object],
        force: bool,
    ) -> None:
        for target in targets:
            if not force and exists(target):
                result.record(ApplyOp(name, target.name, kind, "skipped"))
                continue
            try:
                install(target)
            except (PositiveVibesError, OSError) as e:
                message = f"install {kind} {name} -> {target.name}: {e}"
                logger.debug(message)
                result.record(ApplyOp(name, target.name, kind, "error", message))
            else:
                result.record(ApplyOp(name, target.name, kind, "installed"))

    def _unresolved(self, result: ApplyResult, name: str, kind: OpKind, error: Exception) -> None:
        status: OpStatus = "not_found" if isinstance(error, ResourceNotFoundError) else "error"
        message = f"{kind} {name}: {error}"
        logger.debug(message)
        result.record(ApplyOp(name, "", kind, status, message))

    def _apply_skill(
        self, result: ApplyResult, ref: SkillRef, targets: Sequence[Target], opts: InstallOptions
    ) -> None:
        try:
            skill, source_dir, registry = self.resolve_skill_source(ref)
        except (PositiveVibesError, OSError) as e:
            self._unresolved(result, ref.name, "skill", e)
            return

        temporary = isinstance(registry, EmbeddedRegistry)
        if temporary:
            # the copy is released below, so never link to it
            opts = replace(opts, link=False)
        try:
            self._fan_out(
                result,
                skill.name,
                "skill",
                targets,
                lambda t: t.skill_exists(skill.name, self.project_dir),
                lambda t: t.install(skill, source_dir, self.project_dir, opts),
                opts.force,
            )
        finally:
            if temporary:
                registry.release(source_dir)

    def _apply_instruction(
        self,
        result: ApplyResult,
        ref: InstructionRef,
        targets: Sequence[Target],
        opts: InstallOptions,
    ) -> None:
        selected = [t for t in targets if not ref.apply_to or t.name == ref.apply_to]
        content = ref.content
        source_path: Path | None = None
        spilled: Path | None = None

        try:
            if ref.registry:
                data = self.fetch_registry_file(ref.registry, "instructions", ref.path or "")
                spilled = source_path = self._spill(data, "pv-instruction-")
                # the spill file is deleted below, so never link to it
                opts = replace(opts, link=False)
                content = None
            elif ref.path:
                source_path = self._local_path(ref.path)
                if not source_path.is_file():
                    raise ResourceNotFoundError(f"no such file {source_path}", name=ref.name)
        except (PositiveVibesError, OSError) as e:
            self._unresolved(result, ref.name, "instruction", e)
            return

        try:
            self._fan_out(
                result,
                ref.name,
                "instruction",
                selected,
                lambda t: t.instruction_exists(ref.name, self.project_dir),
                lambda t: t.install_instruction(
                    ref.name, content, source_path, self.project_dir, opts
                ),
                opts.force,
            )
        finally:
            if spilled is not None:
                spilled.unlink(missing_ok=True)

    def _apply_agent(
        self, result: ApplyResult, ref: AgentRef, targets: Sequence[Target], opts: InstallOptions
    ) -> None:
        spilled: Path | None = None
        try:
            if ref.registry:
                data = self.fetch_registry_file(ref.registry, "agents", ref.path or "")
                spilled = source_path = self._spill(data, "pv-agent-")
                opts = replace(opts, link=False)
            else:
                source_path = self._local_path(ref.path or "")
                if not source_path.is_file():
                    raise ResourceNotFoundError(f"no such file {source_path}", name=ref.name)
        except (PositiveVibesError, OSError) as e:
            self._unresolved(result, ref.name, "agent", e)
            return

        try:
            self._fan_out(
                result,
                ref.name,
                "agent",
                targets,
                lambda t: t.agent_exists(ref.name, self.project_dir),
                lambda t: t.install_agent(ref.name, source_path, self.project_dir, opts),
                opts.force,
            )
        finally:
            if spilled is not None:
                spilled.unlink(missing_ok=True)

    def apply(
        self,
        manifest: Manifest,
        targets: Sequence[Target],
        opts: InstallOptions | None = None,
    ) -> ApplyResult:
        """Install every manifest entry into every target.

        Args:
            manifest: Validated manifest
            targets: Target adapters in manifest order
            opts: Install options

        Returns:
            ApplyResult with counters and the ordered op trace
        """
        opts = opts or InstallOptions()
        result = ApplyResult()

        for skill in manifest.skills:
            self._apply_skill(result, skill, targets, opts)
        for instruction in manifest.instructions:
            self._apply_instruction(result, instruction, targets, opts)
        for agent in manifest.agents:
            self._apply_agent(result, agent, targets, opts)

        logger.info(
            f"Apply finished: {result.installed} installed, {result.skipped} skipped, "
            f"{len(result.errors)} errors, {result.not_found} not found"
        )
        return result


def apply_manifest(
    project_dir: str | Path,
    manifest: Manifest | None = None,
    global_path: str | Path | None = None,
    opts: InstallOptions | None = None,
    refresh: bool = False,
    registries: Sequence[Registry] | None = None,
) -> ApplyResult:
    """Load (if needed), validate and apply a manifest to a project.

    Args:
        project_dir: Project root receiving the target directories
        manifest: Manifest to apply; the merged global/project manifest when None
        global_path: Global manifest location override
        opts: Install options
        refresh: Refresh git registries tracking ``latest`` first
        registries: Registries to use instead of building them from the manifest

    Returns:
        ApplyResult for the run

    Raises:
        ManifestNotFoundError: If no manifest exists
        ManifestError: If a manifest cannot be parsed
        ManifestValidationError: If the manifest is invalid
    """
    if manifest is None:
        manifest = load_merged_manifest(project_dir, global_path)
    validate_manifest(manifest)

    targets = resolve_targets(manifest.targets)
    if registries is None:
        registries = build_registries(manifest, refresh=refresh)
    return Applier(registries, project_dir).apply(manifest, targets, opts)
