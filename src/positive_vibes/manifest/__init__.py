"""Manifest models, persistence and global/project layering."""

from positive_vibes.manifest.merge import (
    RESOURCE_KINDS,
    ManifestLayers,
    OverrideDiagnostics,
    compute_override_diagnostics,
    format_risky_override_warning,
    load_layers,
    load_merged_manifest,
    merge_manifests,
    resolve_relative_paths,
)
from positive_vibes.manifest.models import (
    LATEST_REF,
    VALID_TARGETS,
    AgentRef,
    InstructionRef,
    Manifest,
    RegistryPaths,
    RegistryRef,
    SkillRef,
)
from positive_vibes.manifest.store import (
    DEFAULT_HEADER,
    MANIFEST_FILENAMES,
    dump_manifest,
    find_manifest,
    load_manifest,
    load_manifest_from_project,
    read_header,
    save_manifest,
    validate_manifest,
    validation_problems,
)

__all__ = [
    "DEFAULT_HEADER",
    "LATEST_REF",
    "MANIFEST_FILENAMES",
    "RESOURCE_KINDS",
    "VALID_TARGETS",
    "AgentRef",
    "InstructionRef",
    "Manifest",
    "ManifestLayers",
    "OverrideDiagnostics",
    "RegistryPaths",
    "RegistryRef",
    "SkillRef",
    "compute_override_diagnostics",
    "dump_manifest",
    "find_manifest",
    "format_risky_override_warning",
    "load_layers",
    "load_manifest",
    "load_manifest_from_project",
    "load_merged_manifest",
    "merge_manifests",
    "read_header",
    "resolve_relative_paths",
    "save_manifest",
    "validate_manifest",
    "validation_problems",
]
