"""Tests for positive_vibes.schema.skill: SKILL.md parsing and rendering."""

from pathlib import Path

import pytest

from positive_vibes.errors import SkillParseError, SkillValidationError


class TestParseSkill:
    """Tests for parse_skill."""

    def test_parses_frontmatter_fields(self):
        """All known front-matter fields are read."""
        from positive_vibes.schema import parse_skill

        skill = parse_skill(
            "---\n"
            "name: code-review\n"
            "description: Review code\n"
            "version: 1.2.0\n"
            "author: Ada\n"
            "tags: [review, quality]\n"
            "globs:\n"
            "  - '**/*.py'\n"
            "---\n"
            "# Body\n"
        )

        assert skill.name == "code-review"
        assert skill.description == "Review code"
        assert skill.version == "1.2.0"
        assert skill.author == "Ada"
        assert skill.tags == ["review", "quality"]
        assert skill.globs == ["**/*.py"]
        assert skill.instructions == "# Body\n"

    def test_body_kept_verbatim(self):
        """Whitespace and blank lines in the body are preserved."""
        from positive_vibes.schema import parse_skill

        body = "\n  indented line\n\n---\ntrailing rule above\n\n"
        skill = parse_skill(f"---\nname: x\n---\n{body}")

        assert skill.instructions == body

    def test_accepts_bytes(self):
        """Bytes input is decoded as UTF-8."""
        from positive_vibes.schema import parse_skill

        skill = parse_skill("---\nname: café\n---\nbody\n".encode())

        assert skill.name == "café"

    def test_numeric_version_becomes_string(self):
        """A YAML number version is stored as a string."""
        from positive_vibes.schema import parse_skill

        skill = parse_skill("---\nname: x\nversion: 2\n---\n")

        assert skill.version == "2"

    def test_single_tag_string_becomes_list(self):
        """A scalar tags value is wrapped in a list."""
        from positive_vibes.schema import parse_skill

        skill = parse_skill("---\nname: x\ntags: solo\n---\n")

        assert skill.tags == ["solo"]

    def test_optional_fields_default(self):
        """Missing optional fields fall back to empty defaults."""
        from positive_vibes.schema import parse_skill

        skill = parse_skill("---\nname: minimal\n---\n")

        assert skill.description == ""
        assert skill.version is None
        assert skill.author is None
        assert skill.tags == []
        assert skill.globs == []
        assert skill.instructions == ""

    def test_empty_content_raises_parse_error(self):
        """Empty or whitespace-only content is a parse error."""
        from positive_vibes.schema import parse_skill

        with pytest.raises(SkillParseError, match="empty"):
            parse_skill("   \n")

    def test_unterminated_frontmatter_raises_parse_error(self):
        """A front-matter block without a closing delimiter is a parse error."""
        from positive_vibes.schema import parse_skill

        with pytest.raises(SkillParseError, match="not terminated"):
            parse_skill("---\nname: x\nno closing line\n")

    def test_invalid_yaml_raises_parse_error(self):
        """Malformed YAML in the front-matter is a parse error."""
        from positive_vibes.schema import parse_skill

        with pytest.raises(SkillParseError, match="invalid front-matter"):
            parse_skill("---\nname: [unclosed\n---\nbody\n")

    def test_non_mapping_frontmatter_raises_parse_error(self):
        """Front-matter that is a list rather than a mapping is rejected."""
        from positive_vibes.schema import parse_skill

        with pytest.raises(SkillParseError, match="mapping"):
            parse_skill("---\n- a\n- b\n---\nbody\n")

    def test_missing_name_raises_validation_error(self):
        """Front-matter without a name fails validation."""
        from positive_vibes.schema import parse_skill

        with pytest.raises(SkillValidationError, match="name is required"):
            parse_skill("---\ndescription: nameless\n---\nbody\n")

    def test_no_frontmatter_raises_validation_error(self):
        """Plain markdown has no name and fails validation."""
        from positive_vibes.schema import parse_skill

        with pytest.raises(SkillValidationError):
            parse_skill("# Just markdown\n")


class TestParseSkillFile:
    """Tests for parse_skill_file."""

    def test_reads_file(self, tmp_path: Path):
        """Skill files are read from disk."""
        from positive_vibes.schema import parse_skill_file

        path = tmp_path / "SKILL.md"
        path.write_text("---\nname: from-disk\n---\nhello\n")

        skill = parse_skill_file(path)

        assert skill.name == "from-disk"
        assert skill.instructions == "hello\n"

    def test_missing_file_raises_oserror(self, tmp_path: Path):
        """A missing file surfaces the OSError."""
        from positive_vibes.schema import parse_skill_file

        with pytest.raises(OSError):
            parse_skill_file(tmp_path / "nope" / "SKILL.md")


class TestRenderSkill:
    """Tests for render_skill."""

    def test_render_then_parse_keeps_fields_and_body(self):
        """Rendering and re-parsing yields the same skill."""
        from positive_vibes.schema import Skill, parse_skill, render_skill

        original = Skill(
            name="roundtrip",
            description="Check: colons survive",
            version="0.1",
            tags=["a", "b"],
            instructions="# Title\n\n- item\n",
        )

        parsed = parse_skill(render_skill(original))

        assert parsed == original

    def test_render_omits_empty_optional_fields(self):
        """Unset optional fields are not written."""
        from positive_vibes.schema import Skill, render_skill

        text = render_skill(Skill(name="bare", instructions="body\n"))

        assert text.startswith("---\nname: bare\n")
        assert "version" not in text
        assert "tags" not in text
        assert text.endswith("---\nbody\n")

    def test_to_dict(self):
        """to_dict exposes every field."""
        from positive_vibes.schema import Skill

        data = Skill(name="x", tags=["t"]).to_dict()

        assert data["name"] == "x"
        assert data["tags"] == ["t"]
        assert set(data) == {
            "name",
            "description",
            "version",
            "author",
            "tags",
            "globs",
            "instructions",
        }
