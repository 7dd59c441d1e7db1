"""Topic selection: sticky focus override, else round-robin over unskipped topics."""
from __future__ import annotations

from typing import List, Optional

from services.sessions import InterviewSession

DEFAULT_SKILL_RATING = 5


def rotation_candidates(session: InterviewSession) -> List[str]:
    """Setup topics in their original order, minus the skipped ones."""

    skipped = set(session.skipped_subjects)
    return [entry.topic for entry in session.skill_ratings if entry.topic not in skipped]


def select_by_rotation(session: InterviewSession) -> Optional[str]:
    """Pick ``candidates[(index - 1) mod N]``; ``None`` when nothing is left.

    Pure with respect to ``current_question_index`` and ``skipped_subjects``.
    """

    candidates = rotation_candidates(session)
    if not candidates:
        return None
    return candidates[(session.current_question_index - 1) % len(candidates)]


def target_topic(session: InterviewSession) -> Optional[str]:
    return session.focused_technology or select_by_rotation(session)


def skill_rating_for(session: InterviewSession, topic: str) -> int:
    """In-session subject rating, else the setup self-rating, else 5."""

    if topic in session.subject_ratings:
        return session.subject_ratings[topic]
    for entry in session.skill_ratings:
        if entry.topic == topic:
            return entry.rating
    return DEFAULT_SKILL_RATING


__all__ = [
    "DEFAULT_SKILL_RATING",
    "rotation_candidates",
    "select_by_rotation",
    "skill_rating_for",
    "target_topic",
]
