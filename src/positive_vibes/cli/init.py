"""
Init command: write a starter vibes.yaml.
"""

import json
import logging
from enum import Enum
from pathlib import Path

import click

from positive_vibes.engine import ProjectScan, scan_project
from positive_vibes.manifest import Manifest, RegistryPaths, RegistryRef, find_manifest

from .utils import echo, fail, get_global_path, get_project_dir

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = RegistryRef(
    name="awesome-copilot",
    url="https://github.com/github/awesome-copilot",
    ref="latest",
    paths=RegistryPaths(skills="skills/"),
)


class InitTarget(Enum):
    LOCAL = "local"
    GLOBAL = "global"
    BOTH = "both"


def global_defaults() -> Manifest:
    """Registries only; skills and targets are project decisions."""
    return Manifest(registries=[DEFAULT_REGISTRY.model_copy()])


def manifest_from_scan(scan: ProjectScan) -> Manifest:
    return Manifest(
        registries=[DEFAULT_REGISTRY.model_copy()],
        skills=[{"name": name} for name in scan.recommended_skills],
        targets=list(scan.suggested_targets),
    )


def render_bootstrap_manifest(manifest: Manifest) -> str:
    """Render a manifest with a comment above each section.

    Empty sections are written as commented-out examples.
    """
    out = [
        "# vibes.yaml - positive-vibes configuration",
        "# Run 'positive-vibes apply' to sync skills and instructions to all targets.",
        "# Global (~/.config/positive-vibes/vibes.yaml) and project configs are merged "
        "automatically; project values take priority.",
        "",
        "# Remote skill registries (git repos). Project entries override global by name.",
        "registries:",
    ]
    for registry in manifest.registries:
        out.append(f"  - name: {registry.name}")
        out.append(f"    url: {registry.url}")
        out.append(f"    ref: {registry.ref}")
        paths = registry.paths.model_dump(exclude_none=True)
        if paths:
            out.append("    paths:")
            out.extend(f"      {key}: {value}" for key, value in paths.items())
    out.append("")

    out.append("# Skills to install. Use name (from registry) or path (local directory).")
    if manifest.skills:
        out.append("skills:")
        for skill in manifest.skills:
            out.append(f"  - name: {skill.name}")
            if skill.path:
                out.append(f"    path: {skill.path}")
    else:
        out += [
            "# skills:",
            "#   - name: conventional-commits",
            "#   - name: my-custom-skill",
            "#     path: ./local-skills/my-custom-skill",
        ]
    out.append("")

    out.append("# Instructions for each target. Use content (inline) or path (file).")
    if manifest.instructions:
        out.append("instructions:")
        for instruction in manifest.instructions:
            out.append(f"  - name: {instruction.name}")
            if instruction.content:
                out.append(f"    content: {json.dumps(instruction.content)}")
            elif instruction.path:
                out.append(f"    path: {instruction.path}")
            if instruction.apply_to:
                out.append(f"    apply_to: {instruction.apply_to}")
    else:
        out += [
            "# instructions:",
            "#   - name: coding-style",
            '#     content: "Always use TypeScript for frontend code"',
            "#   - name: project-guide",
            "#     path: ./instructions/guide.md",
            "#     apply_to: opencode",
        ]
    out.append("")

    out.append("# Agents to install. Use path (local file) or registry + path (remote).")
    if manifest.agents:
        out.append("agents:")
        for agent in manifest.agents:
            out.append(f"  - name: {agent.name}")
            if agent.registry:
                out.append(f"    registry: {agent.registry}")
            if agent.path:
                out.append(f"    path: {agent.path}")
    else:
        out += [
            "# agents:",
            "#   - name: code-reviewer",
            "#     path: ./agents/reviewer.md",
            "#   - name: registry-agent",
            "#     registry: awesome-copilot",
            "#     path: my-skill/agents/reviewer.md",
        ]
    out.append("")

    out.append("# AI tools to sync into. Valid: vscode-copilot, opencode, cursor")
    if manifest.targets:
        out.append("targets:")
        out.extend(f"  - {target}" for target in manifest.targets)
    else:
        out += ["# targets:", "#   - vscode-copilot", "#   - opencode", "#   - cursor"]

    return "\n".join(out) + "\n"


def write_manifest_text(path: Path, content: str) -> None:
    """Write a new manifest, refusing to overwrite.

    Raises:
        FileExistsError: If the file already exists
    """
    if path.exists():
        raise FileExistsError(f"{path} already exists")
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o755)
    path.write_text(content, encoding="utf-8")
    path.chmod(0o644)


def resolve_init_target(global_exists: bool, local_exists: bool) -> InitTarget | None:
    """Pick what to create from what already exists; None means ask."""
    if global_exists and local_exists:
        raise click.ClickException("both manifests already exist; nothing to do")
    if global_exists:
        return InitTarget.LOCAL
    if local_exists:
        return InitTarget.GLOBAL
    return None


def prompt_init_target(ctx: click.Context) -> InitTarget:
    echo(ctx, "No vibes.yaml found (local or global).")
    echo(ctx, "Where would you like to create one?")
    echo(ctx, "  [L] Local  (project-level vibes.yaml)")
    echo(ctx, "  [G] Global (~/.config/positive-vibes/vibes.yaml)")
    echo(ctx, "  [B] Both")
    choice = click.prompt(
        "Choice",
        default="L",
        type=click.Choice(["L", "G", "B"], case_sensitive=False),
        show_choices=False,
    )
    return {"l": InitTarget.LOCAL, "g": InitTarget.GLOBAL, "b": InitTarget.BOTH}[choice.lower()]


@click.command()
@click.option("--local", "choice", flag_value="local", help="Create the project vibes.yaml")
@click.option("--global", "choice", flag_value="global", help="Create the global vibes.yaml")
@click.option("--both", "choice", flag_value="both", help="Create both manifests")
@click.pass_context
def init(ctx: click.Context, choice: str | None) -> None:
    """Create a starter vibes.yaml."""
    project_dir = get_project_dir(ctx)
    global_path = get_global_path(ctx)

    if choice:
        target = InitTarget(choice)
    else:
        target = resolve_init_target(global_path.exists(), find_manifest(project_dir) is not None)
        if target is None:
            target = prompt_init_target(ctx)

    try:
        if target in (InitTarget.LOCAL, InitTarget.BOTH):
            existing = find_manifest(project_dir)
            if existing is not None:
                raise FileExistsError(f"{existing} already exists")
            local_path = project_dir / "vibes.yaml"
            echo(ctx, "Scanning your project...")
            scan = scan_project(project_dir)
            write_manifest_text(local_path, render_bootstrap_manifest(manifest_from_scan(scan)))
            echo(
                ctx,
                f"Created {local_path} ({scan.language} project, "
                f"{len(scan.recommended_skills)} skills)",
            )
        if target in (InitTarget.GLOBAL, InitTarget.BOTH):
            write_manifest_text(global_path, render_bootstrap_manifest(global_defaults()))
            echo(ctx, f"Created {global_path}")
    except OSError as e:
        fail(str(e))

    echo(ctx)
    echo(ctx, "Run 'positive-vibes config validate' to verify your setup.")
    echo(ctx, "Run 'positive-vibes apply' to sync your tools!")
