"""GitHub Copilot in VS Code."""

from positive_vibes.targets.base import Target


class CopilotTarget(Target):
    """Installs into ``.github/``, where VS Code Copilot reads customizations."""

    name = "vscode-copilot"
    root = ".github"
