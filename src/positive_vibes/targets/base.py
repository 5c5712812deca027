"""Shared install logic for target tools.

Every target lays resources out the same way under its own root directory:

    <project>/<root>/skills/<name>/SKILL.md
    <project>/<root>/instructions/<name>.md
    <project>/<root>/agents/<name>.md
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from shutil import copy2, copytree

from positive_vibes.errors import TargetError
from positive_vibes.schema import Skill, render_skill

logger = logging.getLogger(__name__)

DIR_MODE = 0o755
FILE_MODE = 0o644


@dataclass(frozen=True)
class InstallOptions:
    """Install behaviour switches.

    Attributes:
        force: Overwrite an existing destination
        link: Symlink to the source instead of copying it
    """

    force: bool = False
    link: bool = False


def _clear_destination(dest: Path, name: str, force: bool) -> None:
    """Make room for an install at dest, honouring force."""
    if dest.is_symlink() and not dest.exists():
        # dangling link from an earlier --link install
        dest.unlink()
        return
    if not dest.exists():
        return
    if not force:
        raise TargetError(f"{name} already exists at {dest} (use --force to overwrite)")
    if dest.is_symlink():
        os.unlink(dest)  # removes the link, not what it points at
    elif dest.is_dir():
        shutil.rmtree(dest)
    else:
        dest.unlink()


def _symlink(source: Path, dest: Path) -> bool:
    try:
        os.symlink(source.resolve(), dest)
    except OSError as e:
        logger.debug(f"Symlink {dest} -> {source} failed ({e}), copying instead")
        return False
    return True


def _write_file(dest: Path, data: str | bytes) -> None:
    if isinstance(data, str):
        dest.write_text(data, encoding="utf-8")
    else:
        dest.write_bytes(data)
    dest.chmod(FILE_MODE)


class Target:
    """A supported AI tool and its on-disk configuration layout.

    Subclasses set ``name`` and ``root``.
    """

    name: str = ""
    root: str = ""

    def root_dir(self, project_dir: str | Path) -> Path:
        return Path(project_dir) / self.root

    def skill_dir(self, name: str, project_dir: str | Path) -> Path:
        return self.root_dir(project_dir) / "skills" / name

    def instruction_path(self, name: str, project_dir: str | Path) -> Path:
        return self.root_dir(project_dir) / "instructions" / f"{name}.md"

    def agent_path(self, name: str, project_dir: str | Path) -> Path:
        return self.root_dir(project_dir) / "agents" / f"{name}.md"

    def skill_exists(self, name: str, project_dir: str | Path) -> bool:
        return (self.skill_dir(name, project_dir) / "SKILL.md").exists()

    def instruction_exists(self, name: str, project_dir: str | Path) -> bool:
        return self.instruction_path(name, project_dir).exists()

    def agent_exists(self, name: str, project_dir: str | Path) -> bool:
        return self.agent_path(name, project_dir).exists()

    def install(
        self,
        skill: Skill,
        source_dir: str | Path,
        project_dir: str | Path,
        opts: InstallOptions | None = None,
    ) -> Path:
        """Install a skill directory.

        In link mode the destination is a symlink to source_dir. Otherwise the
        rendered SKILL.md is written and every sibling file is copied.

        Args:
            skill: Parsed skill
            source_dir: Directory holding the skill's SKILL.md and extra files
            project_dir: Project root
            opts: Install options

        Returns:
            Path of the installed skill directory

        Raises:
            TargetError: If the destination exists and force is not set
            OSError: If file operations fail
        """
        opts = opts or InstallOptions()
        source_dir = Path(source_dir)
        dest = self.skill_dir(skill.name, project_dir)
        _clear_destination(dest, f"skill {skill.name!r}", opts.force)
        dest.parent.mkdir(parents=True, exist_ok=True, mode=DIR_MODE)

        if opts.link and _symlink(source_dir, dest):
            logger.debug(f"Linked skill {skill.name} into {self.name}")
            return dest

        dest.mkdir(mode=DIR_MODE)
        _write_file(dest / "SKILL.md", render_skill(skill))
        if source_dir.is_dir():
            for entry in source_dir.iterdir():
                if entry.name in ("SKILL.md", ".git"):
                    continue
                if entry.is_dir():
                    copytree(entry, dest / entry.name)
                else:
                    copy2(entry, dest / entry.name)
        logger.debug(f"Copied skill {skill.name} into {self.name}")
        return dest

    def _install_file(
        self,
        dest: Path,
        label: str,
        content: str | None,
        source_path: str | Path | None,
        opts: InstallOptions,
    ) -> Path:
        _clear_destination(dest, label, opts.force)
        dest.parent.mkdir(parents=True, exist_ok=True, mode=DIR_MODE)

        if content:
            _write_file(dest, content)
            return dest
        if source_path is None:
            raise TargetError(f"{label} has neither content nor a source file")

        source = Path(source_path)
        if opts.link and _symlink(source, dest):
            return dest
        _write_file(dest, source.read_bytes())
        return dest

    def install_instruction(
        self,
        name: str,
        content: str | None,
        source_path: str | Path | None,
        project_dir: str | Path,
        opts: InstallOptions | None = None,
    ) -> Path:
        """Write an instruction from inline content or a source file."""
        dest = self.instruction_path(name, project_dir)
        path = self._install_file(
            dest, f"instruction {name!r}", content, source_path, opts or InstallOptions()
        )
        logger.debug(f"Installed instruction {name} into {self.name}")
        return path

    def install_agent(
        self,
        name: str,
        source_path: str | Path,
        project_dir: str | Path,
        opts: InstallOptions | None = None,
    ) -> Path:
        """Copy (or link) an agent file into place."""
        dest = self.agent_path(name, project_dir)
        path = self._install_file(dest, f"agent {name!r}", None, source_path, opts or InstallOptions())
        logger.debug(f"Installed agent {name} into {self.name}")
        return path
