"""Resource file schema: SKILL.md front-matter plus markdown body."""

from positive_vibes.schema.skill import Skill, parse_skill, parse_skill_file, render_skill

__all__ = ["Skill", "parse_skill", "parse_skill_file", "render_skill"]
