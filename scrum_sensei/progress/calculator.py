"""Single source of truth for completion and score arithmetic.

The web client has always rounded with ``Math.round``, which rounds halves
up; Python's ``round`` rounds halves to even, so the helpers here never use it.
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (``2.5 -> 3``)."""
    return math.floor(value + 0.5)


def completion_percentage(completed_sections: int, total_sections: int) -> int:
    """Return the 0-100 share of completed sections.

    Returns
    -------
        0 when the content has no sections.
    """
    if total_sections <= 0:
        return 0
    completed_sections = min(max(completed_sections, 0), total_sections)
    return round_half_up(completed_sections * 100 / total_sections)


def status_for_completion(percentage: int) -> str:
    """Map a completion percentage to a progress status."""
    if percentage <= 0:
        return "not-started"
    if percentage >= 100:
        return "completed"
    return "in-progress"


def score_percentage(points_earned: float, max_points: float) -> int:
    """Return the 0-100 quiz score; an empty quiz scores 0."""
    if max_points <= 0:
        return 0
    return round_half_up(points_earned * 100 / max_points)


def rank_topics(tag_scores: dict[str, float], size: int) -> tuple[list[str], list[str]]:
    """Split tags into strong and weak topics.

    Tags are sorted by score, highest first. The first ``size`` tags are the
    strong topics; the first ``size`` of the reversed ordering are the weak
    ones. Ties keep insertion order.
    """
    ranked = sorted(tag_scores, key=lambda tag: tag_scores[tag], reverse=True)
    strong = ranked[:size]
    weak = list(reversed(ranked))[:size]
    return strong, weak
