"""SKILL.md parsing and rendering.

A resource file is an optional YAML front-matter block delimited by ``---``
lines followed by a markdown body. The body is kept byte-for-byte so that a
parsed skill renders back to the same instructions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from positive_vibes.errors import SkillParseError, SkillValidationError

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"


@dataclass
class Skill:
    """A resolved skill.

    Attributes:
        name: Skill identifier, never empty
        description: One-line summary
        version: Optional version string
        author: Optional author
        tags: Free-form tags
        globs: File globs the skill applies to
        instructions: Markdown body, verbatim
    """

    name: str
    description: str = ""
    version: str | None = None
    author: str | None = None
    tags: list[str] = field(default_factory=list)
    globs: list[str] = field(default_factory=list)
    instructions: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "author": self.author,
            "tags": list(self.tags),
            "globs": list(self.globs),
            "instructions": self.instructions,
        }


def _split_frontmatter(text: str) -> tuple[str | None, str]:
    """Split text into (frontmatter, body). Frontmatter is None when absent."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FRONTMATTER_DELIMITER:
        return None, text

    for index in range(1, len(lines)):
        if lines[index].rstrip("\r\n") == FRONTMATTER_DELIMITER:
            frontmatter = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            return frontmatter, body

    raise SkillParseError("front-matter is not terminated by a '---' line")


def _string_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value]
    raise SkillParseError(f"front-matter field '{field_name}' must be a list")


def parse_skill(data: str | bytes) -> Skill:
    """Parse SKILL.md content into a Skill.

    Args:
        data: Raw file content

    Returns:
        Parsed Skill with the body preserved verbatim

    Raises:
        SkillParseError: If the content is empty or the YAML is malformed
        SkillValidationError: If the front-matter has no name
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")

    if not data.strip():
        raise SkillParseError("empty skill content")

    frontmatter, body = _split_frontmatter(data)
    if frontmatter is None:
        raise SkillValidationError("skill has no front-matter (name is required)")

    try:
        meta = yaml.safe_load(frontmatter) or {}
    except yaml.YAMLError as e:
        raise SkillParseError(f"invalid front-matter YAML: {e}") from e

    if not isinstance(meta, dict):
        raise SkillParseError("front-matter must be a YAML mapping")

    name = str(meta.get("name") or "").strip()
    if not name:
        raise SkillValidationError("skill name is required")

    version = meta.get("version")
    author = meta.get("author")
    return Skill(
        name=name,
        description=str(meta.get("description") or ""),
        version=str(version) if version is not None else None,
        author=str(author) if author is not None else None,
        tags=_string_list(meta.get("tags"), "tags"),
        globs=_string_list(meta.get("globs"), "globs"),
        instructions=body,
    )


def parse_skill_file(path: str | Path) -> Skill:
    """Read and parse a SKILL.md file.

    Raises:
        OSError: If the file cannot be read
        SkillParseError: If the content is malformed
        SkillValidationError: If the front-matter has no name
    """
    path = Path(path)
    logger.debug(f"Parsing skill file {path}")
    return parse_skill(path.read_text(encoding="utf-8"))


def render_skill(skill: Skill) -> str:
    """Render a Skill back to SKILL.md text."""
    meta: dict[str, Any] = {"name": skill.name, "description": skill.description}
    if skill.version:
        meta["version"] = skill.version
    if skill.author:
        meta["author"] = skill.author
    if skill.tags:
        meta["tags"] = list(skill.tags)
    if skill.globs:
        meta["globs"] = list(skill.globs)

    frontmatter = yaml.safe_dump(
        meta, default_flow_style=False, sort_keys=False, allow_unicode=True
    )
    return f"{FRONTMATTER_DELIMITER}\n{frontmatter}{FRONTMATTER_DELIMITER}\n{skill.instructions}"
