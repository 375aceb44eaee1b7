"""Summary statistics over parsed stories."""

from __future__ import annotations

import math
from collections.abc import Iterable

from .models import Statistics, Story
from .parser import progress_percentage


def get_stats(stories: Iterable[Story]) -> Statistics:
    """Count stories by status, phase and priority and average their progress.

    Stories whose progress total is 0 add nothing to the progress sum but
    still count towards the number it is averaged over.
    """
    stats = Statistics()
    progress_sum = 0.0

    for story in stories:
        stats.total += 1
        _bump(stats.by_status, story.status)
        _bump(stats.by_phase, story.phase)
        _bump(stats.by_priority, story.priority)

        if story.is_blocked:
            stats.blocked += 1

        percentage = progress_percentage(story.progress)
        if percentage is not None:
            progress_sum += percentage

    if stats.total:
        stats.avg_progress = round_half_up(progress_sum / stats.total)
    return stats


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round (``12.5`` -> ``13``, ``-0.5`` -> ``0``)."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def _bump(counts: dict[str, int], key: str) -> None:
    counts[key] = counts.get(key, 0) + 1
