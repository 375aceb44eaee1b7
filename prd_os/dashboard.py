"""Plain-text rendering of scan results and statistics."""

from __future__ import annotations

from dataclasses import dataclass

from .models import Project, ScanResult, Statistics, Story
from .parser import progress_percentage
from .stats import round_half_up

RULE_WIDTH = 60
BAR_LENGTH = 12


@dataclass(frozen=True)
class StatusStyle:
    icon: str
    label: str


STATUS_STYLES = {
    "backlog": StatusStyle("📋", "Backlog"),
    "create": StatusStyle("✏️", "Creating"),
    "approved": StatusStyle("✅", "Approved"),
    "dev": StatusStyle("🔨", "In Dev"),
    "in_progress": StatusStyle("🔄", "In Progress"),
    "testing": StatusStyle("🧪", "Testing"),
    "review": StatusStyle("👀", "Review"),
    "release": StatusStyle("🚀", "Release"),
    "done": StatusStyle("✅", "Done"),
    "blocked": StatusStyle("🚫", "Blocked"),
}
UNKNOWN_ICON = "❓"
BLOCKED_MARK = " 🚫"


def status_style(status: str) -> StatusStyle:
    """Style for a known status, or the raw status with a placeholder icon."""
    return STATUS_STYLES.get(status) or StatusStyle(UNKNOWN_ICON, status)


def format_status(status: str) -> str:
    style = status_style(status)
    return f"{style.icon} {style.label}"


def format_triage(count: int | None) -> str:
    return "N/A (gh?)" if count is None else str(count)


def format_progress_bar(progress: str) -> str:
    percentage = progress_percentage(progress)
    if percentage is None:
        return "N/A"

    filled = round_half_up(min(max(percentage, 0), 100) * BAR_LENGTH / 100)
    return "█" * filled + "░" * (BAR_LENGTH - filled) + f" {round_half_up(percentage)}%"


def render_summary(stats: Statistics, triage_count: int | None = None) -> str:
    lines = [
        "",
        "━" * RULE_WIDTH,
        "  📊 PRODUCT STORIES DASHBOARD",
        "━" * RULE_WIDTH,
        "",
        "Summary:",
        f"  Total Stories:     {stats.total}",
        f"  Average Progress:  {stats.avg_progress}%",
        f"  Blocked:           {stats.blocked}",
        f"  Issues (triage):   {format_triage(triage_count)}",
        "",
        "By Status:",
    ]
    for status, count in stats.by_status.items():
        lines.append(f"  {status_style(status).icon}  {status:<12} {count}")
    lines += ["", "By Priority:"]
    for priority, count in stats.by_priority.items():
        lines.append(f"  {priority}  {count}")
    lines += ["", "─" * RULE_WIDTH, ""]
    return "\n".join(lines)


def sorted_stories(project: Project) -> list[Story]:
    return sorted(project.stories, key=lambda s: s.id)


def render_projects(
    projects: list[Project],
    status: str | None = None,
    phase: str | None = None,
) -> str:
    lines: list[str] = []
    for project in projects:
        lines.append(f"\n{project.name} ({project.story_count} stories)")
        lines.append("─" * RULE_WIDTH)

        stories = sorted_stories(project)
        if status:
            stories = [s for s in stories if s.status == status]
        if phase:
            stories = [s for s in stories if s.phase == phase]

        if not stories:
            lines.append("  No stories match filters\n")
            continue

        for story in stories:
            blocked = BLOCKED_MARK if story.is_blocked else ""
            lines.append(
                f"  {story.id}  {format_status(story.status)}  {story.priority}{blocked}"
            )
            lines.append(f"    {story.title}")
            lines.append(f"    {format_progress_bar(story.progress)}  {story.progress} AC")
            if story.is_blocked:
                lines.append(f"    Blocked by: {', '.join(story.blockers)}")
            lines.append("")
    return "\n".join(lines)


def render_compact(projects: list[Project]) -> str:
    lines: list[str] = []
    for project in projects:
        lines.append(f"\n{project.name}")
        for story in sorted_stories(project):
            percentage = round_half_up(progress_percentage(story.progress) or 0)
            blocked = BLOCKED_MARK if story.is_blocked else ""
            lines.append(
                f"  {status_style(story.status).icon} {story.id} {story.title} {percentage}%{blocked}"
            )
    lines.append("")
    return "\n".join(lines)


def render_stats(stats: Statistics, triage_count: int | None = None) -> str:
    return "\n".join([
        "",
        "📊 Statistics",
        "─" * 40,
        f"Total:      {stats.total}",
        f"Progress:   {stats.avg_progress}%",
        f"Blocked:    {stats.blocked}",
        f"Triage:     {format_triage(triage_count)}",
        "",
    ])


def render_dashboard(
    docs_path: str,
    scan: ScanResult,
    stats: Statistics,
    triage_count: int | None = None,
    compact: bool = False,
    status: str | None = None,
    phase: str | None = None,
) -> str:
    """Full dashboard text for one scan."""
    if not scan.stories:
        lines = [
            f"\nNo stories found in {docs_path}",
            'Create your first story in Cursor: /create "feature" @project/backlog.md\n',
        ]
        if triage_count is not None:
            lines.append(f"Issues (triage): {triage_count}\n")
        return "\n".join(lines)

    parts: list[str] = []
    if compact:
        parts.append(render_compact(scan.projects))
    else:
        parts.append(render_summary(stats, triage_count))
        parts.append(render_projects(scan.projects, status=status, phase=phase))
    parts.append(f"Last updated: {scan.last_updated:%Y-%m-%d %H:%M:%S}\n")
    return "\n".join(parts)
