"""Create workspaces and projects from built-in templates."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path

from .config import CONFIG_FILENAME, new_config, save_config
from .errors import ScaffoldError
from .models import WorkspaceConfig

logger = logging.getLogger(__name__)

RE_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")
RE_INVALID_NAME = re.compile(r"[^a-zA-Z0-9_-]")
RE_PROJECTS_HEADING = re.compile(r"^##\s+Projects\s*$")
RE_TABLE_ROW = re.compile(r"^\|.*\|\s*$")

PROCESS_MD = """\
# Product Development Process v2.0

See the Product OS Framework documentation for the full process.
"""

README_TEMPLATE = """\
# {{workspaceName}}

Product stories for this workspace live in one directory per project, one
`US-<number>.md` file per story. Run `prd` in this directory for a dashboard.

## Projects

| Project | Description |
|---------|-------------|
| [{{projectName}}](./{{projectName}}/) | {{projectDescription}} |

Next story ID: {{nextId}}
"""

BACKLOG_TEMPLATE = """\
# {{projectName}} - Backlog

| ID | Title | Status | Priority |
|----|-------|--------|----------|
"""

RULES_TEMPLATE = """\
# {{projectName}} - Technical Standards

Document your project's tech stack, patterns, and conventions here.
"""

GITIGNORE = "node_modules/\n.DS_Store\n"


def render_template(template: str, variables: dict[str, str]) -> str:
    """Replace ``{{name}}`` placeholders; unknown placeholders are left alone."""
    return RE_PLACEHOLDER.sub(
        lambda m: str(variables.get(m.group(1), m.group(0))), template
    )


def validate_project_name(name: str) -> str:
    """Return the stripped project name, or raise ScaffoldError."""
    name = name.strip()
    if not name:
        raise ScaffoldError("Project name is required")
    if RE_INVALID_NAME.search(name):
        raise ScaffoldError("Use only letters, numbers, hyphens, underscores")
    return name


def workspace_file_name(workspace_name: str) -> str:
    return re.sub(r"\s+", "-", workspace_name).lower() + ".code-workspace"


def _write(path: Path, content: str, created: list[Path]) -> None:
    path.write_text(content, encoding="utf-8")
    created.append(path)
    logger.info("Created %s", path)


def _resolve_repo(repo_path: str | Path | None) -> str | None:
    if repo_path is None:
        return None
    resolved = Path(repo_path).resolve()
    if not resolved.exists():
        raise ScaffoldError(f"Path not found: {resolved}")
    return str(resolved)


def _write_project_files(project_dir: Path, project_name: str, created: list[Path]) -> None:
    project_dir.mkdir(parents=True, exist_ok=True)
    variables = {"projectName": project_name}
    _write(project_dir / "backlog.md", render_template(BACKLOG_TEMPLATE, variables), created)
    _write(project_dir / "RULES.md", render_template(RULES_TEMPLATE, variables), created)


def create_workspace_file(
    workspace_dir: Path, workspace_name: str, projects: dict
) -> Path:
    """Write a ``.code-workspace`` file next to ``workspace_dir``."""
    parent = workspace_dir.parent
    folders = [{"name": "product-docs", "path": workspace_dir.name}]
    for name, project in projects.items():
        repo = (project or {}).get("repoPath")
        if repo:
            folders.append({"name": name, "path": os.path.relpath(repo, parent)})

    ws_path = parent / workspace_file_name(workspace_name)
    ws_path.write_text(
        json.dumps({"folders": folders, "settings": {}}, indent=2) + "\n",
        encoding="utf-8",
    )
    return ws_path


def init_workspace(
    target_dir: str | Path,
    workspace_name: str,
    project_name: str,
    description: str = "",
    repo_path: str | Path | None = None,
    force: bool = False,
) -> list[Path]:
    """Scaffold a new workspace with one project.

    Args:
        target_dir: Directory to create the workspace in
        workspace_name: Display name stored in the config
        project_name: Name of the first project directory
        description: Optional project description
        repo_path: Optional path to the project's development repository
        force: Add files even if ``target_dir`` already exists

    Returns:
        The files that were written.
    """
    workspace_name = workspace_name.strip()
    if not workspace_name:
        raise ScaffoldError("Workspace name is required")
    project_name = validate_project_name(project_name)
    description = description.strip()
    repo = _resolve_repo(repo_path)

    target = Path(target_dir).resolve()
    if target.exists() and not force:
        raise ScaffoldError(f"Directory {target} already exists (use --force to add files)")

    created: list[Path] = []
    target.mkdir(parents=True, exist_ok=True)

    config = new_config(target, workspace_name)
    config.add_project(project_name, description, repo)
    created.append(save_config(config))
    logger.info("Created %s", target / CONFIG_FILENAME)

    _write(target / "PROCESS.md", PROCESS_MD, created)
    readme = render_template(
        README_TEMPLATE,
        {
            "workspaceName": workspace_name,
            "projectName": project_name,
            "projectDescription": description or "No description yet",
            "nextId": "US-001",
        },
    )
    _write(target / "README.md", readme, created)
    _write_project_files(target / project_name, project_name, created)

    ws_path = create_workspace_file(target, workspace_name, config.projects)
    created.append(ws_path)
    logger.info("Created %s", ws_path)

    _write(target / ".gitignore", GITIGNORE, created)
    return created


def add_readme_row(readme_path: str | Path, project_name: str, description: str) -> bool:
    """Append a row to the table under ``## Projects`` in a README.

    Returns:
        True if the file was modified, False if there was no projects table.
    """
    path = Path(readme_path)
    lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
    row = f"| [{project_name}](./{project_name}/) | {description} |\n"

    i = 0
    while i < len(lines) and not RE_PROJECTS_HEADING.match(lines[i].rstrip("\r\n")):
        i += 1
    if i == len(lines):
        return False

    # Skip blank lines between the heading and the table
    i += 1
    while i < len(lines) and lines[i].strip() == "":
        i += 1

    start = i
    while i < len(lines) and RE_TABLE_ROW.match(lines[i].rstrip("\r\n")):
        i += 1
    # Need at least a header row and a separator row
    if i - start < 2:
        return False

    if not lines[i - 1].endswith("\n"):
        lines[i - 1] += "\n"
    lines.insert(i, row)
    path.write_text("".join(lines), encoding="utf-8")
    return True


def update_workspace_files(workspace_root: Path, projects: dict) -> Path | None:
    """Add project repos to the first usable ``.code-workspace`` file.

    Looks in the workspace's parent directory. Files that are not valid
    workspace JSON are skipped.
    """
    parent = workspace_root.parent
    for ws_path in sorted(parent.glob("*.code-workspace")):
        try:
            ws = json.loads(ws_path.read_text(encoding="utf-8"))
            folders = ws["folders"]
            for name, project in projects.items():
                repo = (project or {}).get("repoPath")
                if not repo:
                    continue
                rel_path = os.path.relpath(repo, parent)
                if any(f.get("path") == rel_path or f.get("name") == name for f in folders):
                    continue
                folders.append({"name": name, "path": rel_path})
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Skipping malformed workspace file %s: %s", ws_path, e)
            continue

        ws_path.write_text(json.dumps(ws, indent=2) + "\n", encoding="utf-8")
        return ws_path
    return None


def add_project(
    config: WorkspaceConfig,
    project_name: str,
    description: str = "",
    repo_path: str | Path | None = None,
) -> list[Path]:
    """Add a project directory to an existing workspace and register it.

    Returns:
        The files that were written or updated.
    """
    if config.root is None:
        raise ScaffoldError("Workspace config has no root directory")
    project_name = validate_project_name(project_name)
    if not isinstance(config.projects, dict):
        raise ScaffoldError("Config 'projects' is not a mapping")
    if project_name in config.projects:
        raise ScaffoldError(f"Project {project_name} already exists")
    description = description.strip()
    repo = _resolve_repo(repo_path)

    root = Path(config.root)
    written: list[Path] = []
    _write_project_files(root / project_name, project_name, written)

    config.add_project(project_name, description, repo)
    written.append(save_config(config))
    logger.info("Updated %s", CONFIG_FILENAME)

    readme = root / "README.md"
    if readme.is_file() and add_readme_row(readme, project_name, description):
        written.append(readme)
        logger.info("Updated %s", readme)

    if repo:
        ws_path = update_workspace_files(root, config.projects)
        if ws_path is not None:
            written.append(ws_path)
            logger.info("Updated %s", ws_path)

    return written
