"""Tests for workspace scanning."""

import json
from pathlib import Path

import pytest

from prd_os.config import CONFIG_FILENAME
from prd_os.errors import NotFoundError
from prd_os.scanner import is_story_file, scan_all_stories
from prd_os.stats import get_stats


def _story(
    story_id: str,
    status: str = "backlog",
    progress: str = "0/0",
    priority: str = "P2",
    phase: str = "create",
    blockers: list[str] | None = None,
) -> str:
    lines = [
        "---",
        f"id: {story_id}",
        f"status: {status}",
        f"phase: {phase}",
        f'progress: "{progress}"',
        f"priority: {priority}",
        f"blockers: {json.dumps(blockers or [])}",
        "---",
        "",
        f"# Story {story_id}",
        "",
    ]
    return "\n".join(lines)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Two projects: checkout with four stories, billing with one."""
    _write(tmp_path / "checkout" / "US-001.md", _story("US-001", "done", "10/10", "P0", "release"))
    _write(tmp_path / "checkout" / "US-002.md", _story("US-002", "dev", "5/10", "P1", "dev", ["US-005"]))
    _write(tmp_path / "checkout" / "US-003.md", _story("US-003", "create", "0/0"))
    _write(tmp_path / "checkout" / "US-004.md", _story("US-004", "backlog", "0/10"))
    _write(tmp_path / "checkout" / "backlog.md", "# checkout - Backlog\n")
    _write(tmp_path / "billing" / "US-010.md", _story("US-010", "backlog", "0/10", "P1"))
    return tmp_path


def test_is_story_file():
    assert is_story_file("US-001.md")
    assert is_story_file("US-42.md")
    assert is_story_file("US-01.md")
    assert not is_story_file("us-001.md")
    assert not is_story_file("US-1a.md")
    assert not is_story_file("README.md")
    assert not is_story_file("US-.md")
    assert not is_story_file("US-001.md.bak")
    assert not is_story_file("XUS-001.md")


def test_missing_path_raises(tmp_path: Path):
    with pytest.raises(NotFoundError):
        scan_all_stories(tmp_path / "nope")


def test_end_to_end(workspace: Path):
    result = scan_all_stories(workspace)
    assert len(result.projects) == 2
    assert len(result.stories) == 5
    assert result.skipped == []

    by_project = result.by_project
    assert by_project["checkout"].story_count == 4
    assert by_project["billing"].story_count == 1
    assert [s.id for s in by_project["checkout"].stories] == [
        "US-001", "US-002", "US-003", "US-004",
    ]

    stats = get_stats(result.stories)
    assert stats.total == 5
    assert stats.by_status == {"done": 1, "dev": 1, "create": 1, "backlog": 2}
    assert stats.by_priority == {"P0": 1, "P1": 2, "P2": 2}
    assert stats.blocked == 1
    assert stats.avg_progress == 30


def test_projects_in_name_order(workspace: Path):
    result = scan_all_stories(workspace)
    assert [p.name for p in result.projects] == ["billing", "checkout"]


def test_project_path_and_story_file_path(workspace: Path):
    result = scan_all_stories(workspace)
    checkout = result.by_project["checkout"]
    assert checkout.path == (workspace / "checkout").resolve()
    assert checkout.stories[0].file_path == str((workspace / "checkout" / "US-001.md").resolve())


def test_directory_without_stories_is_not_a_project(workspace: Path):
    _write(workspace / "notes" / "README.md", "# Notes\n")
    _write(workspace / "notes" / "us-001.md", _story("US-001"))
    (workspace / "empty").mkdir()
    result = scan_all_stories(workspace)
    names = [p.name for p in result.projects]
    assert "notes" not in names
    assert "empty" not in names


def test_default_ignored_and_hidden_dirs(workspace: Path):
    for name in (".git", "node_modules", "scripts", "cli", "docs", ".hidden"):
        _write(workspace / name / "US-001.md", _story("US-001"))
    result = scan_all_stories(workspace)
    assert [p.name for p in result.projects] == ["billing", "checkout"]


def test_config_ignore_dirs(workspace: Path):
    _write(
        workspace / CONFIG_FILENAME,
        json.dumps({"ignoreDirs": ["billing"]}),
    )
    _write(workspace / "docs" / "US-001.md", _story("US-001"))
    result = scan_all_stories(workspace)
    # config list replaces the default, so docs is scanned now
    assert [p.name for p in result.projects] == ["checkout", "docs"]


def test_hidden_dirs_skipped_even_with_config(workspace: Path):
    _write(workspace / CONFIG_FILENAME, json.dumps({"ignoreDirs": []}))
    _write(workspace / ".archive" / "US-001.md", _story("US-001"))
    result = scan_all_stories(workspace)
    assert ".archive" not in [p.name for p in result.projects]


def test_broken_config_falls_back_to_defaults(workspace: Path):
    _write(workspace / CONFIG_FILENAME, "{not json")
    _write(workspace / "docs" / "US-001.md", _story("US-001"))
    result = scan_all_stories(workspace)
    assert [p.name for p in result.projects] == ["billing", "checkout"]


def test_malformed_story_is_skipped_and_reported(workspace: Path):
    bad = _write(workspace / "checkout" / "US-005.md", "---\nid: [oops\n---\n# Bad\n")
    result = scan_all_stories(workspace)

    checkout = result.by_project["checkout"]
    assert checkout.story_count == 5
    assert len(checkout.stories) == 4
    assert len(result.stories) == 5
    assert len(result.skipped) == 1
    assert result.skipped[0].path == bad.resolve()


def test_project_with_only_bad_stories_is_kept(tmp_path: Path):
    _write(tmp_path / "broken" / "US-001.md", "---\nid: [oops\n---\n# Broken\n")
    result = scan_all_stories(tmp_path)
    assert len(result.projects) == 1
    assert result.projects[0].story_count == 1
    assert result.projects[0].stories == []
    assert result.stories == []


def test_files_in_root_are_ignored(workspace: Path):
    _write(workspace / "US-999.md", _story("US-999"))
    result = scan_all_stories(workspace)
    assert "US-999" not in [s.id for s in result.stories]


def test_last_updated_is_set(workspace: Path):
    result = scan_all_stories(workspace)
    assert result.last_updated is not None


def test_file_path_raises_not_found(tmp_path: Path):
    notes = _write(tmp_path / "notes.txt", "not a workspace\n")
    with pytest.raises(NotFoundError):
        scan_all_stories(notes)


def test_story_with_infinite_progress_does_not_break_stats(workspace: Path):
    _write(workspace / "billing" / "US-011.md", "---\nprogress: .inf\n---\n# Huge\n")
    result = scan_all_stories(workspace)
    assert len(result.stories) == 6
    assert get_stats(result.stories).avg_progress == 25
