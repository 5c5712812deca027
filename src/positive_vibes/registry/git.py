"""Git-backed registry with a persistent local clone.

The clone lives under the user cache directory, keyed by registry name. It is
created on first use and only updated when explicitly refreshed, so a
populated cache keeps working offline.
"""

from __future__ import annotations

import fcntl
import logging
import os
import re
import shutil
import subprocess  # nosec B404 - subprocess needed for git clone operations
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from positive_vibes.errors import GitCommandError, RefNotFoundError, ResourceNotFoundError
from positive_vibes.manifest.models import LATEST_REF, RegistryRef
from positive_vibes.registry.base import Registry
from positive_vibes.schema import Skill, parse_skill_file

logger = logging.getLogger(__name__)

SHA_PATTERN = re.compile(r"^[0-9a-f]{7,40}$")


def is_commit_sha(ref: str) -> bool:
    return bool(SHA_PATTERN.match(ref))


class GitRegistry(Registry):
    """
    Registry served from a cached git working tree.

    Ref handling when the cache is absent:

    - ``latest``: clone the default branch
    - branch or tag: single-branch clone, then a full clone plus tag checkout
    - commit SHA: full clone, then checkout

    An existing cache directory is used as-is.
    """

    def __init__(
        self,
        name: str,
        url: str,
        cache_path: str | Path,
        ref: str = LATEST_REF,
        skills_path: str = ".",
        instructions_path: str = ".",
        agents_path: str = ".",
    ):
        """
        Initialize a git registry.

        Args:
            name: Registry identifier
            url: Clone URL (https, ssh or file)
            cache_path: Directory holding the cached working tree
            ref: 'latest', a branch, a tag or a commit SHA
            skills_path: Skills directory inside the repository
            instructions_path: Instructions directory inside the repository
            agents_path: Agents directory inside the repository
        """
        self._name = name
        self.url = url
        self.cache_path = Path(cache_path)
        self.ref = ref or LATEST_REF
        self._paths = {
            "skills": skills_path or ".",
            "instructions": instructions_path or ".",
            "agents": agents_path or ".",
        }

    @classmethod
    def from_ref(cls, registry: RegistryRef, cache_path: str | Path) -> GitRegistry:
        return cls(
            name=registry.name,
            url=registry.url,
            cache_path=cache_path,
            ref=registry.ref,
            skills_path=registry.skills_path,
            instructions_path=registry.instructions_path,
            agents_path=registry.agents_path,
        )

    @property
    def name(self) -> str:
        return self._name

    def _run_git(
        self,
        args: list[str],
        cwd: str | Path | None = None,
        timeout: int = 300,
    ) -> subprocess.CompletedProcess[str]:
        """
        Run a git command without interactive prompts.

        Args:
            args: Git command arguments (without 'git' prefix)
            cwd: Working directory (defaults to the cache path's parent)
            timeout: Command timeout in seconds

        Returns:
            CompletedProcess with stdout/stderr

        Raises:
            GitCommandError: If the command times out
        """
        if cwd is None:
            cwd = self.cache_path.parent

        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        # ssh uses the running agent if any; never ask for a passphrase
        env.setdefault("GIT_SSH_COMMAND", "ssh -o BatchMode=yes")

        cmd = ["git"] + args
        logger.debug(f"Running: {' '.join(cmd)} in {cwd}")

        try:
            return subprocess.run(  # nosec B603 B607 - cmd built from hardcoded git arguments
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            logger.error(f"Git command timed out: {' '.join(cmd)}")
            raise GitCommandError(args, f"timed out after {timeout}s") from e

    def _git_or_raise(self, args: list[str], cwd: str | Path | None = None) -> None:
        result = self._run_git(args, cwd=cwd)
        if result.returncode != 0:
            raise GitCommandError(args, result.stderr)

    @contextmanager
    def _cache_lock(self) -> Iterator[None]:
        lock_path = self.cache_path.parent / f".{self._name}.lock"
        with open(lock_path, "w") as handle:
            fcntl.flock(handle, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle, fcntl.LOCK_UN)

    def _remove_partial_clone(self) -> None:
        if self.cache_path.exists():
            shutil.rmtree(self.cache_path, ignore_errors=True)

    def _clone(self) -> None:
        path = str(self.cache_path)

        if self.ref == LATEST_REF:
            self._git_or_raise(["clone", "--quiet", self.url, path])
            return

        if is_commit_sha(self.ref):
            self._git_or_raise(["clone", "--quiet", self.url, path])
            result = self._run_git(["checkout", "--quiet", self.ref], cwd=self.cache_path)
            if result.returncode != 0:
                raise RefNotFoundError(self.ref, self.url)
            return

        result = self._run_git(
            ["clone", "--quiet", "--single-branch", "--branch", self.ref, self.url, path]
        )
        if result.returncode == 0:
            return

        logger.debug(f"Branch clone of {self.ref} failed, retrying as tag")
        self._remove_partial_clone()
        self._git_or_raise(["clone", "--quiet", self.url, path])
        result = self._run_git(
            ["checkout", "--quiet", f"refs/tags/{self.ref}"], cwd=self.cache_path
        )
        if result.returncode != 0:
            raise RefNotFoundError(self.ref, self.url)

    def ensure_cache(self) -> None:
        """Clone the repository into the cache unless a cache already exists.

        Raises:
            RefNotFoundError: If the ref does not exist in the repository
            GitCommandError: If cloning fails and there is no cache to fall back on
        """
        if self.cache_path.is_dir():
            logger.debug(f"Using cached registry {self._name} at {self.cache_path}")
            return

        self.cache_path.parent.mkdir(parents=True, exist_ok=True, mode=0o755)
        with self._cache_lock():
            # another process may have populated it while we waited
            if self.cache_path.is_dir():
                return
            logger.info(f"Cloning registry {self._name} ({self.ref}) from {self.url}")
            try:
                self._clone()
            except Exception:
                self._remove_partial_clone()
                raise

    def refresh(self) -> None:
        """Update the cache for registries tracking ``latest``.

        Pinned refs are already checked out at the right commit. Pull failures
        are logged and the stale cache stays in use.
        """
        self.ensure_cache()
        if self.ref != LATEST_REF:
            logger.debug(f"Registry {self._name} is pinned to {self.ref}, skipping refresh")
            return

        try:
            result = self._run_git(["pull", "--quiet", "--ff-only"], cwd=self.cache_path)
        except GitCommandError as e:
            logger.warning(f"Failed to refresh registry {self._name}, using cached copy: {e}")
            return
        if result.returncode != 0:
            logger.warning(
                f"Failed to refresh registry {self._name}, using cached copy: "
                f"{result.stderr.strip()}"
            )

    def _base_dir(self, kind: str) -> Path:
        return self.cache_path / self._paths.get(kind, ".")

    def list_skills(self) -> list[str]:
        self.ensure_cache()
        base = self._base_dir("skills")
        if not base.is_dir():
            return []
        return sorted(
            child.name
            for child in base.iterdir()
            if child.is_dir() and (child / "SKILL.md").is_file()
        )

    def fetch(self, name: str) -> tuple[Skill, Path]:
        self.ensure_cache()
        skill_dir = self._base_dir("skills") / name
        skill_file = skill_dir / "SKILL.md"
        if not skill_file.is_file():
            raise ResourceNotFoundError(
                f"skill {name!r} not found in registry {self._name!r}", name=name
            )
        return parse_skill_file(skill_file), skill_dir

    def _read(self, path: Path, label: str) -> bytes:
        if not path.is_file():
            raise ResourceNotFoundError(f"{label} not found in registry {self._name!r}", name=label)
        return path.read_bytes()

    def fetch_file(self, skill_name: str, rel_path: str) -> bytes:
        """Read a file relative to a skill directory."""
        self.ensure_cache()
        path = self._base_dir("skills") / skill_name / rel_path
        return self._read(path, f"{skill_name}/{rel_path}")

    def fetch_resource_file(self, kind: str, rel_path: str) -> bytes:
        """Read a file relative to a resource kind's base directory."""
        self.ensure_cache()
        return self._read(self._base_dir(kind) / rel_path, rel_path)

    def list_resource_files(self, kind: str) -> list[str]:
        """Walk a kind's base directory and return sorted slash-separated paths."""
        self.ensure_cache()
        base = self._base_dir(kind)
        if not base.is_dir():
            return []
        files = []
        for path in base.rglob("*"):
            rel = path.relative_to(base)
            if ".git" in rel.parts or not path.is_file():
                continue
            files.append(rel.as_posix())
        return sorted(files)
