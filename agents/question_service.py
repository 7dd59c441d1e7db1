"""Question generation and answer evaluation backed by the model registry."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from agents.types import (
    QUESTION_ADAPTER,
    GeneratedQuestion,
    ResponseEvaluation,
    ScoredQuestion,
)
from config.registry import ADAPTIVE_QUESTION_KEY, EVAL_KEY, QUESTION_KEY, get_model
from config.settings import settings

logger = logging.getLogger(__name__)


class QuestionServiceError(RuntimeError):
    """Raised when a model call fails, times out or returns malformed output."""


def _clamp_score(raw: Any) -> Any:
    if isinstance(raw, dict) and isinstance(raw.get("score"), (int, float)):
        bounded = max(0.0, min(100.0, float(raw["score"])))
        return {**raw, "score": bounded}
    return raw


def to_question(
    generated: GeneratedQuestion, topic: str, difficulty: Optional[str] = None
) -> ScoredQuestion:
    """Convert the flat model payload into the tagged question union.

    A payload without its own difficulty takes the requested ``difficulty``.

    Raises:
        ValidationError: If the payload lacks the fields its ``type`` needs,
            e.g. an MCQ without choices.
    """

    payload = generated.model_dump(exclude_none=True)
    payload["topic"] = topic
    if difficulty is not None:
        payload.setdefault("difficulty", difficulty)
    return QUESTION_ADAPTER.validate_python(payload)


def question_prompt_text(question: ScoredQuestion) -> str:
    """Render question text plus any attached code or choices for evaluation."""

    parts = [question.question]
    snippet = getattr(question, "code_snippet", None)
    if snippet:
        parts.append(f"Code:\n{snippet}")
    if question.type == "mcq":
        parts.append("Choices:\n" + "\n".join(f"- {choice}" for choice in question.choices))
    return "\n\n".join(parts)


class QuestionService:
    """Async facade over the registry-bound question and evaluation models."""

    def __init__(self, *, timeout_s: Optional[float] = None) -> None:
        self._timeout_s = timeout_s

    @property
    def timeout_s(self) -> float:
        return self._timeout_s if self._timeout_s is not None else settings.QUESTION_TIMEOUT_S

    async def generate_question(
        self,
        topic: str,
        difficulty: str,
        skill_rating: int,
        previous_tags: Sequence[str] = (),
    ) -> ScoredQuestion:
        raw = await self._invoke(
            QUESTION_KEY,
            {
                "topic": topic,
                "difficulty": difficulty,
                "skill_rating": skill_rating,
                "previous_tags": ", ".join(previous_tags) or "none",
            },
        )
        return self._parse_question(raw, topic, difficulty)

    async def generate_adaptive_question(
        self,
        topic: str,
        current_difficulty: str,
        average_score: float,
        recent_scores: Sequence[float],
        skill_rating: int,
    ) -> ScoredQuestion:
        raw = await self._invoke(
            ADAPTIVE_QUESTION_KEY,
            {
                "topic": topic,
                "current_difficulty": current_difficulty,
                "average_score": round(float(average_score), 1),
                "recent_scores": ", ".join(f"{score:g}" for score in recent_scores),
                "skill_rating": skill_rating,
            },
        )
        return self._parse_question(raw, topic, current_difficulty)

    async def evaluate_response(
        self,
        question: str,
        response: str,
        expected_answer: str,
        topic: str,
        difficulty: str,
        question_type: str,
    ) -> ResponseEvaluation:
        raw = await self._invoke(
            EVAL_KEY,
            {
                "question": question,
                "response": response,
                "expected_answer": expected_answer or "Not provided.",
                "topic": topic,
                "difficulty": difficulty,
                "question_type": question_type,
            },
        )
        try:
            return ResponseEvaluation.model_validate(_clamp_score(raw))
        except ValidationError as exc:
            logger.warning("Malformed evaluation payload for topic=%s: %s", topic, exc)
            raise QuestionServiceError("evaluation payload failed validation") from exc

    def _parse_question(self, raw: Any, topic: str, difficulty: str) -> ScoredQuestion:
        try:
            generated = GeneratedQuestion.model_validate(raw)
            return to_question(generated, topic, difficulty)
        except ValidationError as exc:
            logger.warning("Malformed question payload for topic=%s: %s", topic, exc)
            raise QuestionServiceError("question payload failed validation") from exc

    async def _invoke(self, key: str, inputs: Dict[str, Any]) -> Any:
        try:
            llm = get_model(key)
        except KeyError as exc:
            logger.error("No model bound for %s", key)
            raise QuestionServiceError(f"model not bound: {key}") from exc

        try:
            raw = await asyncio.wait_for(_call_model(llm, inputs), timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            logger.warning("Model %s timed out after %.1fs", key, self.timeout_s)
            raise QuestionServiceError(f"{key} timed out") from exc
        except QuestionServiceError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Model %s failed: %s", key, exc)
            raise QuestionServiceError(f"{key} failed") from exc
        return raw


async def _call_model(llm: Any, inputs: Dict[str, Any]) -> Any:
    """Await coroutine models directly; run plain callables on a worker thread."""

    if inspect.iscoroutinefunction(llm) or inspect.iscoroutinefunction(getattr(llm, "__call__", None)):
        raw = llm(inputs=inputs)
    else:
        raw = await asyncio.to_thread(llm, inputs=inputs)
    if inspect.isawaitable(raw):
        raw = await raw
    return raw


def previous_tags(tag_lists: Sequence[Sequence[str]]) -> List[str]:
    """Flatten tag lists while keeping first-seen order and dropping repeats."""

    seen: List[str] = []
    for tags in tag_lists:
        for tag in tags:
            if tag and tag not in seen:
                seen.append(tag)
    return seen


__all__ = [
    "QuestionService",
    "QuestionServiceError",
    "previous_tags",
    "question_prompt_text",
    "to_question",
]
