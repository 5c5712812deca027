"""Config inspection: validation, layer diffs and annotated reports."""

from positive_vibes.inspection.diff import (
    ConfigDiff,
    compute_config_diff,
    format_config_diff,
    format_config_diff_json,
)
from positive_vibes.inspection.report import (
    annotate_manifest,
    format_paths,
    has_path_entries,
    path_for_display,
    source_tag,
)
from positive_vibes.inspection.validate import (
    ConfigProblem,
    ConfigValidationResult,
    collect_available_skills,
    global_only_registry_warnings,
    validate_config,
)

__all__ = [
    "ConfigDiff",
    "ConfigProblem",
    "ConfigValidationResult",
    "annotate_manifest",
    "collect_available_skills",
    "compute_config_diff",
    "format_config_diff",
    "format_config_diff_json",
    "format_paths",
    "global_only_registry_warnings",
    "has_path_entries",
    "path_for_display",
    "source_tag",
    "validate_config",
]
