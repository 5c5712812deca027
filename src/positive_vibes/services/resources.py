"""One surface over skills, agents and instructions for the command layer.

Listing reads the merged global/project manifest; install and remove edit a
single manifest file (the project one, or the global one when asked) and
always return a :class:`MutationReport`, even when some names failed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from positive_vibes.config.paths import global_manifest_path
from positive_vibes.engine import Applier, Installer, load_or_new
from positive_vibes.errors import (
    DuplicateResourceError,
    ManifestNotFoundError,
    PositiveVibesError,
    ResourceNotFoundError,
)
from positive_vibes.manifest import (
    AgentRef,
    InstructionRef,
    Manifest,
    find_manifest,
    load_manifest,
    load_merged_manifest,
    merge_manifests,
    read_header,
    save_manifest,
)
from positive_vibes.registry import (
    EMBEDDED_REGISTRY_NAME,
    EmbeddedRegistry,
    Registry,
    ResourceSource,
    build_registries,
    find_skill,
    resource_name_from_path,
    search_order,
)

logger = logging.getLogger(__name__)

RESOURCE_TYPES: tuple[str, ...] = ("skills", "agents", "instructions")


def parse_resource_kind(kind: str) -> str:
    """Validate a resource kind name.

    Raises:
        ValueError: If the kind is not skills, agents or instructions
    """
    normalized = kind.strip().lower()
    if normalized not in RESOURCE_TYPES:
        raise ValueError(
            f"unknown resource type {kind!r} (valid: {', '.join(RESOURCE_TYPES)})"
        )
    return normalized


def dedupe(names: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split names into unique names (first occurrence order) and repeated names."""
    unique: list[str] = []
    repeated: list[str] = []
    for name in names:
        if name not in unique:
            unique.append(name)
        elif name not in repeated:
            repeated.append(name)
    return unique, repeated


@dataclass
class ResourceRow:
    """A name in a list view."""

    name: str
    installed: bool
    registry: str | None = None
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "installed": self.installed,
            "registry": self.registry,
            "path": self.path,
        }


@dataclass
class ResourceDetail:
    """Everything known about one resource."""

    kind: str
    name: str
    installed: bool
    registry: str | None = None
    registry_url: str | None = None
    path: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind,
            "name": self.name,
            "installed": self.installed,
            "registry": self.registry,
            "registry_url": self.registry_url,
            "path": self.path,
            "payload": self.payload,
        }


@dataclass
class MutationReport:
    """Which names an install or remove changed, and which it skipped."""

    mutated_names: list[str] = field(default_factory=list)
    skipped_duplicate_names: list[str] = field(default_factory=list)
    skipped_missing_names: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def skip_duplicate(self, name: str) -> None:
        if name not in self.skipped_duplicate_names:
            self.skipped_duplicate_names.append(name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "mutated": self.mutated_names,
            "skipped_duplicates": self.skipped_duplicate_names,
            "skipped_missing": self.skipped_missing_names,
            "errors": self.errors,
        }


class ResourceService:
    """List, show, install and remove resources for one project.

    Example usage:
        ```python
        service = ResourceService(Path.cwd())
        for row in service.list_available("skills"):
            print(row.name, row.installed)
        report = service.install("agents", ["reviewer"])
        ```
    """

    def __init__(
        self,
        project_dir: str | Path,
        global_path: str | Path | None = None,
        use_global: bool = False,
        registries: Sequence[Registry] | None = None,
    ):
        """Initialize the service.

        Args:
            project_dir: Project root
            global_path: Global manifest file (defaults to the XDG location)
            use_global: Edit the global manifest instead of the project one
            registries: Registries to use instead of building them from the manifest
        """
        self.project_dir = Path(project_dir)
        self.global_path = Path(global_path) if global_path else global_manifest_path()
        self.use_global = use_global
        self._registries = list(registries) if registries is not None else None

    @property
    def manifest_path(self) -> Path:
        """The manifest file install and remove edit."""
        if self.use_global:
            return self.global_path
        return find_manifest(self.project_dir) or self.project_dir / "vibes.yaml"

    def merged_manifest(self) -> Manifest | None:
        try:
            return load_merged_manifest(self.project_dir, self.global_path)
        except ManifestNotFoundError:
            return None

    def declared_manifest(self) -> Manifest | None:
        """The merged manifest with paths as written in the manifest files."""
        global_manifest = load_manifest(self.global_path) if self.global_path.is_file() else None
        local_path = find_manifest(self.project_dir)
        local_manifest = load_manifest(local_path) if local_path is not None else None
        if global_manifest is None and local_manifest is None:
            return None
        return merge_manifests(global_manifest, local_manifest)

    def registries(self, merged: Manifest | None = None) -> list[Registry]:
        if self._registries is not None:
            return self._registries
        return build_registries(merged if merged is not None else self.merged_manifest())

    def _installed_entries(self, kind: str, merged: Manifest | None) -> dict[str, Any]:
        if merged is None:
            return {}
        return {entry.name: entry for entry in getattr(merged, kind)}

    def _available_skill_names(self, registries: Sequence[Registry]) -> list[str]:
        names: list[str] = []
        for registry in search_order(registries):
            try:
                listed = registry.list_skills()
            except (PositiveVibesError, OSError) as e:
                logger.warning(f"Could not list skills from {registry.name}: {e}")
                continue
            names.extend(name for name in listed if name not in names)
        return names

    def _available_resources(self, kind: str, registries: Sequence[Registry]) -> list[ResourceRow]:
        rows: dict[str, ResourceRow] = {}
        for registry in registries:
            if not isinstance(registry, ResourceSource):
                continue
            try:
                files = registry.list_resource_files(kind)
            except (PositiveVibesError, OSError) as e:
                logger.warning(f"Could not list {kind} from {registry.name}: {e}")
                continue
            for rel_path in files:
                name = resource_name_from_path(kind, rel_path)
                if name and name not in rows:
                    rows[name] = ResourceRow(name, False, registry.name, rel_path)
        return list(rows.values())

    def list_available(self, kind: str, registry_name: str | None = None) -> list[ResourceRow]:
        """Rows for everything the registries offer, flagged when in the manifest."""
        kind = parse_resource_kind(kind)
        merged = self.merged_manifest()
        registries = self.registries(merged)
        if registry_name:
            registries = [r for r in registries if r.name == registry_name]
        installed = self._installed_entries(kind, merged)

        if kind == "skills":
            rows = []
            for name in self._available_skill_names(registries):
                rows.append(ResourceRow(name, name in installed))
            return rows

        rows = self._available_resources(kind, registries)
        for row in rows:
            row.installed = row.name in installed
        return rows

    def list_installed(self, kind: str) -> list[ResourceRow]:
        """Rows for every manifest entry of a kind, paths as declared."""
        kind = parse_resource_kind(kind)
        return [
            ResourceRow(name, True, getattr(entry, "registry", None), getattr(entry, "path", None))
            for name, entry in self._installed_entries(kind, self.declared_manifest()).items()
        ]

    def _registry_url(self, merged: Manifest | None, registry: str | None) -> str | None:
        if not registry or registry == EMBEDDED_REGISTRY_NAME or merged is None:
            return None
        ref = merged.find_registry(registry)
        return ref.url if ref else None

    def _show_skill(self, name: str, merged: Manifest | None, registries: list[Registry]) -> ResourceDetail:
        entry = self._installed_entries("skills", merged).get(name)
        detail = ResourceDetail("skills", name, installed=entry is not None)
        applier = Applier(registries, self.project_dir)

        try:
            if entry is not None and (entry.registry or entry.path):
                skill, source_dir, registry = applier.resolve_skill_source(entry)
                detail.registry = entry.registry
                detail.path = entry.path
            else:
                registry, skill, source_dir = find_skill(registries, name)
                detail.registry = registry.name
        except ResourceNotFoundError:
            if entry is None:
                raise
            logger.debug(f"Skill {name} is in the manifest but could not be resolved")
            return detail

        detail.registry_url = self._registry_url(merged, detail.registry)
        detail.payload = skill.to_dict()
        if isinstance(registry, EmbeddedRegistry):
            registry.release(source_dir)
        elif detail.path is None:
            detail.path = str(source_dir)
        return detail

    def _read_payload(self, kind: str, entry: Any, registries: list[Registry]) -> dict[str, Any]:
        if getattr(entry, "content", None):
            return {"content": entry.content}
        if not entry.path and not entry.registry:
            return {}
        applier = Applier(registries, self.project_dir)
        try:
            if entry.registry:
                data = applier.fetch_registry_file(entry.registry, kind, entry.path or "")
            else:
                data = (self.project_dir / Path(entry.path).expanduser()).read_bytes()
        except (PositiveVibesError, OSError) as e:
            logger.debug(f"Could not read {kind} {entry.name}: {e}")
            return {}
        return {"content": data.decode("utf-8", errors="replace")}

    def show(self, kind: str, name: str) -> ResourceDetail:
        """Describe one resource.

        Raises:
            ValueError: If the kind is invalid
            ResourceNotFoundError: If the resource is neither installed nor available
        """
        kind = parse_resource_kind(kind)
        merged = self.merged_manifest()
        registries = self.registries(merged)

        if kind == "skills":
            return self._show_skill(name, merged, registries)

        entry = self._installed_entries(kind, merged).get(name)
        if entry is None:
            available = {row.name: row for row in self._available_resources(kind, registries)}
            if name not in available:
                raise ResourceNotFoundError(f"{kind[:-1]} {name!r} not found", name=name)
            row = available[name]
            entry = (AgentRef if kind == "agents" else InstructionRef)(
                name=name, registry=row.registry, path=row.path
            )
            installed = False
        else:
            installed = True

        detail = ResourceDetail(
            kind,
            name,
            installed=installed,
            registry=entry.registry,
            registry_url=self._registry_url(merged, entry.registry),
            path=entry.path,
            payload=self._read_payload(kind, entry, registries),
        )
        if kind == "instructions" and entry.apply_to:
            detail.payload["apply_to"] = entry.apply_to
        return detail

    def _install_skills(self, names: list[str], report: MutationReport) -> None:
        installer = Installer(self.registries(), self.project_dir)
        for name in names:
            try:
                installer.install(name, self.manifest_path)
            except DuplicateResourceError:
                report.skip_duplicate(name)
            except ResourceNotFoundError as e:
                report.skipped_missing_names.append(name)
                report.errors.append(str(e))
            else:
                report.mutated_names.append(name)

    def _install_files(self, kind: str, names: list[str], report: MutationReport) -> None:
        path = self.manifest_path
        manifest, header = load_or_new(path)
        entries = getattr(manifest, kind)
        existing = {entry.name for entry in entries}
        available = {row.name: row for row in self._available_resources(kind, self.registries())}
        ref_type = AgentRef if kind == "agents" else InstructionRef

        for name in names:
            if name in existing:
                report.skip_duplicate(name)
                continue
            row = available.get(name)
            if row is not None:
                entry = ref_type(name=name, registry=row.registry, path=row.path)
            else:
                entry = ref_type(name=name, path=f"./{kind}/{name}.md")
            entries.append(entry)
            existing.add(name)
            report.mutated_names.append(name)

        if report.mutated_names:
            save_manifest(manifest, path, header=header)

    def install(self, kind: str, names: Iterable[str]) -> MutationReport:
        """Add resources to the manifest.

        Raises:
            ValueError: If the kind is invalid
        """
        kind = parse_resource_kind(kind)
        unique, repeated = dedupe(names)
        report = MutationReport()
        for name in repeated:
            report.skip_duplicate(name)

        if kind == "skills":
            self._install_skills(unique, report)
        else:
            self._install_files(kind, unique, report)
        logger.debug(f"install {kind}: {report.to_dict()}")
        return report

    def remove(self, kind: str, names: Iterable[str]) -> MutationReport:
        """Drop resources from the manifest; missing names are reported, others still removed.

        Raises:
            ValueError: If the kind is invalid
            ResourceNotFoundError: If there is no manifest to edit
        """
        kind = parse_resource_kind(kind)
        unique, repeated = dedupe(names)
        report = MutationReport()
        for name in repeated:
            report.skip_duplicate(name)

        path = self.manifest_path
        if not path.is_file():
            raise ResourceNotFoundError(f"no manifest found at {path}")

        if kind == "skills":
            installer = Installer([], self.project_dir)
            for name in unique:
                try:
                    installer.remove(name, path)
                except ResourceNotFoundError as e:
                    report.skipped_missing_names.append(name)
                    report.errors.append(str(e))
                else:
                    report.mutated_names.append(name)
            return report

        manifest = load_manifest(path)
        entries = getattr(manifest, kind)
        present = {entry.name for entry in entries}
        for name in unique:
            if name in present:
                report.mutated_names.append(name)
            else:
                report.skipped_missing_names.append(name)
                report.errors.append(f"{kind[:-1]} {name!r} is not in {path}")

        if report.mutated_names:
            setattr(manifest, kind, [e for e in entries if e.name not in report.mutated_names])
            save_manifest(manifest, path, header=read_header(path))
        return report
