"""Data models for workspaces, stories and scan results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

DEFAULT_IGNORE_DIRS = [".git", "node_modules", "scripts", "docs"]


@dataclass
class WorkspaceConfig:
    """Contents of a workspace's ``.prd.config.json``.

    ``root`` is the directory the file was found in and is never written
    back. ``extra`` holds keys this tool does not know about so that a
    load/save cycle leaves them untouched.
    """

    name: Any = "Product Docs"
    next_id: Any = 1
    ignore_dirs: Any = field(default_factory=lambda: list(DEFAULT_IGNORE_DIRS))
    projects: Any = field(default_factory=dict)
    process_version: Any = "2.0"
    root: Path | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    key_order: list[str] = field(default_factory=list)

    def add_project(
        self, name: str, description: str = "", repo_path: str | None = None
    ) -> None:
        self.projects[name] = {"description": description, "repoPath": repo_path}


@dataclass(frozen=True)
class Story:
    """A single story parsed from a ``US-<n>.md`` file."""

    id: str
    title: str
    project: str = "unknown"
    status: str = "backlog"
    phase: str = "create"
    progress: str = "0/0"
    priority: str = "P2"
    assignee: str = "unassigned"
    blockers: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    created: str | None = None
    updated: str | None = None
    source_issue: str | None = None
    file_path: str = ""

    @property
    def is_blocked(self) -> bool:
        return len(self.blockers) > 0


@dataclass
class Project:
    """A workspace subdirectory holding at least one story file."""

    name: str
    path: Path
    story_count: int = 0
    stories: list[Story] = field(default_factory=list)


@dataclass
class SkippedFile:
    """A story file that matched the naming convention but failed to parse."""

    path: Path
    reason: str


@dataclass
class ScanResult:
    """Everything found by one scan of a workspace."""

    projects: list[Project] = field(default_factory=list)
    stories: list[Story] = field(default_factory=list)
    last_updated: datetime = field(default_factory=datetime.now)
    skipped: list[SkippedFile] = field(default_factory=list)

    @property
    def by_project(self) -> dict[str, Project]:
        return {p.name: p for p in self.projects}


@dataclass
class Statistics:
    """Aggregate counts over a list of stories."""

    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_phase: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
    blocked: int = 0
    avg_progress: int = 0
