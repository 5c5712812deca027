"""Exception hierarchy shared by the manifest, registry, target and engine layers.

Library code raises these; the CLI catches :class:`PositiveVibesError` at the
command boundary and turns it into ``Error: <message>`` plus exit status 1.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class PositiveVibesError(Exception):
    """Base class for every error raised by positive-vibes."""


class ManifestError(PositiveVibesError):
    """A manifest could not be read or parsed."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = str(path) if path else None
        super().__init__(f"{message}" + (f": {path}" if path else ""))


class ManifestNotFoundError(ManifestError):
    """No manifest file exists in the searched locations."""

    def __init__(self, directory: str | Path, tried: Sequence[str]):
        self.directory = str(directory)
        self.tried = list(tried)
        super().__init__(f"no manifest found in {directory} (tried {', '.join(self.tried)})")


class ManifestValidationError(PositiveVibesError):
    """A manifest violates one or more structural rules."""

    def __init__(self, problems: Sequence[str]):
        self.problems = list(problems)
        super().__init__("invalid manifest: " + "; ".join(self.problems))


class SkillParseError(PositiveVibesError):
    """A resource file has malformed front-matter or is empty."""


class SkillValidationError(PositiveVibesError):
    """A parsed resource file is missing a required field."""


class RegistryError(PositiveVibesError):
    """A registry could not serve a request."""


class ResourceNotFoundError(RegistryError):
    """A named skill, file or manifest entry does not exist."""

    def __init__(self, message: str, name: str | None = None):
        self.name = name
        super().__init__(message)


class RefNotFoundError(RegistryError):
    """A git ref could not be resolved in the remote repository."""

    def __init__(self, ref: str, url: str):
        self.ref = ref
        self.url = url
        super().__init__(f"ref {ref!r} not found in {url}")


class GitCommandError(RegistryError):
    """A git subprocess exited with a non-zero status."""

    def __init__(self, args: Sequence[str], stderr: str = ""):
        self.git_args = list(args)
        self.stderr = stderr.strip()
        message = f"git {' '.join(self.git_args)} failed"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class TargetError(PositiveVibesError):
    """A target is unknown or refused to install a resource."""


class DuplicateResourceError(PositiveVibesError):
    """A manifest already lists a resource with the given name."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} {name!r} is already in the manifest")
