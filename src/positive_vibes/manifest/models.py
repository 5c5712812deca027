"""Pydantic models for the vibes.yaml manifest.

The three resource reference kinds all carry a ``name`` plus source fields
whose combination decides where the resource comes from. ``source_kind``
collapses that combination into one of ``registry``, ``path``, ``content``
or ``search`` so callers can branch on a single value.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

VALID_TARGETS: tuple[str, ...] = ("vscode-copilot", "opencode", "cursor")

LATEST_REF = "latest"

SourceKind = Literal["registry", "path", "content", "search"]


class _ManifestModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RegistryPaths(_ManifestModel):
    """Per-kind subtrees inside a registry repository."""

    skills: str | None = Field(default=None, description="Directory holding skill folders")
    instructions: str | None = Field(default=None, description="Directory holding instructions")
    agents: str | None = Field(default=None, description="Directory holding agent files")


class RegistryRef(_ManifestModel):
    """A git-backed registry declared in a manifest."""

    name: str = Field(description="Registry identifier used by resource entries")
    url: str = Field(default="", description="Clone URL (https, ssh or file)")
    ref: str = Field(
        default="",
        description="'latest', a branch, a tag or a 7-40 character commit SHA",
    )
    paths: RegistryPaths = Field(default_factory=RegistryPaths)

    @field_validator("paths", mode="before")
    @classmethod
    def _none_paths(cls, v: object) -> object:
        return {} if v is None else v

    @property
    def skills_path(self) -> str:
        return self.paths.skills or "."

    @property
    def instructions_path(self) -> str:
        return self.paths.instructions or "."

    @property
    def agents_path(self) -> str:
        return self.paths.agents or "."


class SkillRef(_ManifestModel):
    """A skill entry.

    ``registry`` fetches from that registry (``path`` optionally names the
    in-registry directory), ``path`` alone points at a local directory with a
    SKILL.md, and neither searches every registry for ``name``.
    """

    name: str
    registry: str | None = None
    path: str | None = None
    version: str | None = None

    @property
    def source_kind(self) -> SourceKind:
        if self.registry:
            return "registry"
        if self.path:
            return "path"
        return "search"


class InstructionRef(_ManifestModel):
    """An instruction entry: inline content, a local file or a registry file."""

    name: str
    content: str | None = None
    path: str | None = None
    registry: str | None = None
    apply_to: str | None = Field(
        default=None, description="Restrict the instruction to this single target"
    )

    @property
    def source_kind(self) -> SourceKind:
        if self.registry:
            return "registry"
        if self.content:
            return "content"
        return "path"


class AgentRef(_ManifestModel):
    """An agent entry: a local file or a file inside a registry."""

    name: str
    path: str | None = None
    registry: str | None = None

    @property
    def source_kind(self) -> SourceKind:
        if self.registry:
            return "registry"
        return "path"


class Manifest(_ManifestModel):
    """Root manifest document."""

    registries: list[RegistryRef] = Field(default_factory=list)
    skills: list[SkillRef] = Field(default_factory=list)
    instructions: list[InstructionRef] = Field(default_factory=list)
    agents: list[AgentRef] = Field(default_factory=list)
    targets: list[str] = Field(default_factory=list)

    @field_validator("registries", "skills", "instructions", "agents", "targets", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return [] if v is None else v

    def find_registry(self, name: str) -> RegistryRef | None:
        for registry in self.registries:
            if registry.name == name:
                return registry
        return None

    def has_resources(self) -> bool:
        return bool(self.skills or self.instructions or self.agents)
