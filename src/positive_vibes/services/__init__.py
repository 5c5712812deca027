"""Resource service shared by the command layer."""

from positive_vibes.services.resources import (
    RESOURCE_TYPES,
    MutationReport,
    ResourceDetail,
    ResourceRow,
    ResourceService,
    dedupe,
    parse_resource_kind,
)

__all__ = [
    "RESOURCE_TYPES",
    "MutationReport",
    "ResourceDetail",
    "ResourceRow",
    "ResourceService",
    "dedupe",
    "parse_resource_kind",
]
