"""Discover projects and stories in a workspace directory."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path

from .config import load_config
from .errors import ConfigParseError, NotFoundError, StoryParseError
from .models import Project, ScanResult, SkippedFile
from .parser import parse_story_file

logger = logging.getLogger(__name__)

RE_STORY_FILE = re.compile(r"^US-\d+\.md$", re.ASCII)

# Used when the workspace has no (readable) config file
DEFAULT_SCAN_IGNORE_DIRS = [".git", "node_modules", "scripts", "cli", "docs"]


def is_story_file(name: str) -> bool:
    return RE_STORY_FILE.fullmatch(name) is not None


def resolve_ignore_dirs(workspace: Path) -> list[str]:
    """Ignore list from the workspace config, or the built-in default."""
    try:
        config = load_config(workspace)
    except ConfigParseError as e:
        logger.warning("%s; using default ignore list", e)
        return list(DEFAULT_SCAN_IGNORE_DIRS)
    if config is None:
        return list(DEFAULT_SCAN_IGNORE_DIRS)

    ignore_dirs = config.ignore_dirs
    if not isinstance(ignore_dirs, list):
        logger.warning("ignoreDirs is not a list (%r); ignoring nothing extra", ignore_dirs)
        return []
    return [str(d) for d in ignore_dirs]


def scan_all_stories(workspace_path: str | Path) -> ScanResult:
    """Scan every project directory under ``workspace_path`` for stories.

    Raises NotFoundError if the workspace does not exist or is not a
    directory. Story files that fail to parse are left out of the result and
    listed in ``skipped``.
    """
    workspace = Path(workspace_path)
    if not workspace.exists():
        raise NotFoundError(f"Path does not exist: {workspace}")
    if not workspace.is_dir():
        raise NotFoundError(f"Not a directory: {workspace}")
    workspace = workspace.resolve()

    ignore_dirs = set(resolve_ignore_dirs(workspace))
    result = ScanResult()

    for entry in sorted(workspace.iterdir(), key=lambda p: p.name):
        if not entry.is_dir():
            continue
        if entry.name.startswith(".") or entry.name in ignore_dirs:
            logger.debug("Skipping directory %s", entry.name)
            continue

        story_files = sorted(
            (f for f in entry.iterdir() if f.is_file() and is_story_file(f.name)),
            key=lambda p: p.name,
        )
        if not story_files:
            continue

        project = Project(name=entry.name, path=entry, story_count=len(story_files))
        for story_file in story_files:
            try:
                story = parse_story_file(story_file)
            except StoryParseError as e:
                logger.debug("Skipping %s: %s", story_file, e)
                result.skipped.append(SkippedFile(path=story_file, reason=str(e)))
                continue
            project.stories.append(story)
            result.stories.append(story)

        result.projects.append(project)

    result.last_updated = datetime.now()
    logger.debug(
        "Scanned %s: %d project(s), %d story(ies), %d skipped",
        workspace,
        len(result.projects),
        len(result.stories),
        len(result.skipped),
    )
    return result
