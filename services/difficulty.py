"""Difficulty adaptation policy."""
from __future__ import annotations

from typing import Sequence

from agents.types import Difficulty
from config.settings import settings
from services.sessions import InterviewSession

LEVELS: tuple[Difficulty, ...] = ("beginner", "intermediate", "advanced")


def base_difficulty(skill_rating: int) -> Difficulty:
    if skill_rating <= 3:
        return "beginner"
    if skill_rating <= 7:
        return "intermediate"
    return "advanced"


def step(level: Difficulty, delta: int) -> Difficulty:
    """Move ``level`` by ``delta`` positions, clamped to the ends of the scale."""

    index = LEVELS.index(level) + delta
    return LEVELS[max(0, min(len(LEVELS) - 1, index))]


def adjust_for_scores(base: Difficulty, scores: Sequence[float]) -> Difficulty:
    """Step one level up or down from ``base`` based on the recent window.

    The window is the last ``DIFFICULTY_WINDOW`` scores and is only consulted
    once at least that many exist. Never moves more than one level.
    """

    window = settings.DIFFICULTY_WINDOW
    if len(scores) < window:
        return base
    recent = list(scores)[-window:]
    recent_average = sum(recent) / window
    if recent_average > settings.DIFFICULTY_UP_THRESHOLD and base != "advanced":
        return step(base, 1)
    if recent_average < settings.DIFFICULTY_DOWN_THRESHOLD and base != "beginner":
        return step(base, -1)
    return base


def adapt_difficulty(session: InterviewSession, skill_rating: int) -> Difficulty:
    return adjust_for_scores(base_difficulty(skill_rating), [entry.score for entry in session.responses])


__all__ = ["LEVELS", "adapt_difficulty", "adjust_for_scores", "base_difficulty", "step"]
