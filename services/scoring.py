"""Scoring aggregation helpers."""
from __future__ import annotations

from typing import Dict, List, Sequence

from agents.types import ProgressSnapshot, StudentResponse
from services.sessions import InterviewSession


def _round1(value: float) -> float:
    """Round a float to one decimal place with stable formatting."""
    return float(f"{value:.1f}")


def mean(scores: Sequence[float]) -> float:
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def running_average(responses: Sequence[StudentResponse]) -> float:
    return mean([entry.score for entry in responses])


def recent_scores(responses: Sequence[StudentResponse], window: int) -> List[float]:
    return [entry.score for entry in responses[-window:]] if window > 0 else []


def topic_breakdown(session: InterviewSession) -> Dict[str, float]:
    """Mean score per topic from topic-tagged response records.

    Every setup topic is listed (0.0 when unanswered), followed by any other
    topic that was answered through a focus override.
    """

    by_topic: Dict[str, List[float]] = {entry.topic: [] for entry in session.skill_ratings}
    for record in session.responses:
        by_topic.setdefault(record.topic, []).append(record.score)
    return {topic: _round1(mean(scores)) for topic, scores in by_topic.items()}


def progress_snapshot(session: InterviewSession) -> ProgressSnapshot:
    return ProgressSnapshot(
        session_id=session.session_id,
        current_question_index=session.current_question_index,
        total_questions=session.total_questions,
        average_score=session.average_score,
        technology_scores=topic_breakdown(session),
        status=session.status,
        completion_reason=session.completion_reason,
        answered_count=len(session.responses),
        subject_ratings=dict(session.subject_ratings),
        skipped_subjects=list(session.skipped_subjects),
    )


__all__ = [
    "mean",
    "progress_snapshot",
    "recent_scores",
    "running_average",
    "topic_breakdown",
]
