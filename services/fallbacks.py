"""Deterministic substitutes used when the question service is unavailable."""
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from agents.types import Difficulty, ResponseEvaluation, TextualQuestion
from config.settings import settings
from storage.questions import QuestionRecord


def generic_question(topic: str, difficulty: Difficulty) -> TextualQuestion:
    return TextualQuestion(
        topic=topic,
        difficulty=difficulty,
        question=f"Tell me about your experience with {topic} and how you've used it in projects.",
        expected_answer=(
            f"Should discuss practical experience, specific examples, and understanding of {topic} concepts."
        ),
        tags=[topic, "experience", "practical"],
    )


def bank_question(
    records: Sequence[QuestionRecord], asked: Iterable[str], difficulty: Difficulty
) -> Optional[TextualQuestion]:
    """First bank question whose text has not been asked in this session."""

    seen = {text.strip().lower() for text in asked}
    for record in records:
        if record.question.strip().lower() in seen:
            continue
        return TextualQuestion(
            topic=record.topic,
            difficulty=difficulty,
            question=record.question,
            expected_answer=record.expected_answer,
            tags=list(record.tags),
        )
    return None


def fallback_evaluation() -> ResponseEvaluation:
    return ResponseEvaluation(
        score=settings.FALLBACK_SCORE,
        feedback="Unable to evaluate response at this time. Please try again.",
        improvements=["Please provide a more detailed response"],
    )


__all__ = ["bank_question", "fallback_evaluation", "generic_question"]
