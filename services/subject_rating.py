"""Subject-rating intake run once per topic before its first scored question."""
from __future__ import annotations

import re

from agents.types import RatingQuestion, ResponseEvaluation
from services.sessions import InterviewSession

SKIP_TOKEN = "skip"
DEFAULT_SUBJECT_RATING = 5
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def needs_rating(session: InterviewSession, topic: str) -> bool:
    return topic not in session.subject_ratings and topic not in session.skipped_subjects


def rating_question(topic: str) -> RatingQuestion:
    return RatingQuestion(
        topic=topic,
        question=(
            f"Before we dive into {topic}, how would you rate your current skill level "
            f"from 1 (just starting) to 10 (expert)? Choose \"Skip Subject\" to leave {topic} out."
        ),
        tags=[topic, "self-assessment"],
    )


def is_skip(text: str) -> bool:
    return SKIP_TOKEN in (text or "").lower()


def clamp_rating(value: int) -> int:
    return max(1, min(10, int(value)))


def parse_rating(text: str) -> int:
    """Leading integer of ``text`` clamped to 1..10; 5 when there is none."""

    match = _LEADING_INT.match(text or "")
    if not match:
        return DEFAULT_SUBJECT_RATING
    return clamp_rating(int(match.group(1)))


def record_rating(session: InterviewSession, topic: str, rating: int) -> int:
    value = clamp_rating(rating)
    session.subject_ratings[topic] = value
    return value


def record_skip(session: InterviewSession, topic: str) -> None:
    """Exclude ``topic`` for the rest of the session."""

    if topic not in session.skipped_subjects:
        session.skipped_subjects.append(topic)
    if session.focused_technology == topic:
        session.focused_technology = None
    pending = session.current_question
    if pending is not None and pending.type == "rating" and pending.topic == topic:
        session.current_question = None


def rating_ack(topic: str, rating: int) -> ResponseEvaluation:
    return ResponseEvaluation(
        score=100.0,
        feedback=f"Thanks! You rated yourself {rating}/10 in {topic}. Questions will be tailored to that level.",
        strengths=[f"Self-assessment recorded for {topic}"],
    )


def skip_ack(topic: str) -> ResponseEvaluation:
    return ResponseEvaluation(
        score=0.0,
        feedback=f"{topic} skipped. It will not come up again in this interview.",
    )


__all__ = [
    "DEFAULT_SUBJECT_RATING",
    "SKIP_TOKEN",
    "clamp_rating",
    "is_skip",
    "needs_rating",
    "parse_rating",
    "rating_ack",
    "rating_question",
    "record_rating",
    "record_skip",
    "skip_ack",
]
