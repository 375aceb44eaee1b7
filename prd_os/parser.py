"""Parser for US-*.md story files."""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Any

import yaml

from .errors import StoryParseError
from .models import Story

# Regex patterns
RE_FRONT_MATTER = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*\r?$\n?", re.DOTALL | re.MULTILINE
)
RE_TITLE = re.compile(r"^#\s+(.+)$", re.MULTILINE)

UNTITLED = "Untitled"


def split_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Split a markdown document into its YAML front-matter and body."""
    m = RE_FRONT_MATTER.match(content)
    if not m:
        return {}, content

    try:
        data = yaml.safe_load(m.group(1))
    except yaml.YAMLError as e:
        raise StoryParseError(f"Malformed front-matter: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise StoryParseError(
            f"Front-matter must be a mapping, got {type(data).__name__}"
        )
    return data, content[m.end():]


def extract_title(body: str) -> str:
    m = RE_TITLE.search(body)
    if not m:
        return UNTITLED
    return m.group(1).strip()


def normalize_progress(value: Any) -> str:
    """Normalize a progress value to ``"<completed>/<total>"``.

    Bare numbers are percentages (``75`` -> ``"75/100"``), strings that
    already hold a ratio are kept, other strings get ``/100`` appended and a
    missing value means nothing to measure (``"0/0"``).
    """
    if value is None:
        return "0/0"
    if isinstance(value, bool):
        value = str(value).lower()
    if isinstance(value, (int, float)):
        return f"{value}/100"
    progress = str(value)
    if "/" not in progress:
        progress = f"{progress}/100"
    return progress


def split_progress(progress: str) -> tuple[float, float]:
    """Split a normalized progress string into ``(completed, total)``.

    Parts that are not finite numbers count as 0, so a total of 0 always
    means "not applicable".
    """
    completed, _, total = progress.partition("/")
    return _to_number(completed), _to_number(total)


def progress_percentage(progress: str) -> float | None:
    """Percentage complete, or None when the total is 0.

    A ratio too large to represent (``1e308/1e-308``) is also None.
    """
    completed, total = split_progress(progress)
    if total <= 0:
        return None
    percentage = completed / total * 100
    if not math.isfinite(percentage):
        return None
    return percentage


def normalize_source_issue(value: Any) -> str | None:
    if value is None:
        return None
    issue = str(value)
    if not issue.startswith("#"):
        issue = "#" + issue
    return issue


def parse_story_md(content: str, file_path: str | Path) -> Story:
    """Parse the text of a story file into a Story."""
    data, body = split_front_matter(content)
    path = Path(file_path)

    return Story(
        id=_text(data.get("id"), path.stem),
        title=extract_title(body),
        project=_text(data.get("project"), "unknown"),
        status=_text(data.get("status"), "backlog"),
        phase=_text(data.get("phase"), "create"),
        progress=normalize_progress(data.get("progress")),
        priority=_text(data.get("priority"), "P2"),
        assignee=_text(data.get("assignee"), "unassigned"),
        blockers=_string_list(data.get("blockers")),
        dependencies=_string_list(data.get("dependencies")),
        created=_optional_text(data.get("created")),
        updated=_optional_text(data.get("updated")),
        source_issue=normalize_source_issue(data.get("source_issue")),
        file_path=str(path.resolve()),
    )


def parse_story_file(path: str | Path) -> Story:
    """Parse a story file from disk."""
    p = Path(path)
    try:
        content = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StoryParseError(f"Cannot read {p}: {e}") from e
    return parse_story_md(content, p)


def _text(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    return str(value)


def _optional_text(value: Any) -> str | None:
    # YAML turns bare dates into date objects; keep them as written
    if value is None:
        return None
    return str(value)


def _string_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v) for v in value if v is not None)


def _to_number(raw: str) -> float:
    try:
        number = float(raw.strip())
    except ValueError:
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number
