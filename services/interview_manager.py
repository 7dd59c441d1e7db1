"""Interview manager: owns live sessions and sequences questions, ratings and scoring.

Every public operation returns ``None``/``False`` for an unknown or inactive
session instead of raising. Upstream failures (question service, history
store) are absorbed with deterministic fallbacks so a session always makes
progress. Only :meth:`InterviewManager.initialize` raises, and only for
unusable configuration.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import TypeAdapter, ValidationError

from agents.question_service import QuestionService, QuestionServiceError, previous_tags, question_prompt_text
from agents.types import (
    CodeCompletionQuestion,
    CodeSnippetQuestion,
    CompletionReason,
    Difficulty,
    InterviewConfig,
    McqQuestion,
    ProgressSnapshot,
    QuestionWithType,
    RatingQuestion,
    ResponseEvaluation,
    ScoredQuestion,
    SkillRating,
    StudentResponse,
    TextualQuestion,
)
from config.settings import settings
from observability.logger import log_event
from observability.tracing import span
from services.difficulty import adapt_difficulty
from services.fallbacks import bank_question, fallback_evaluation, generic_question
from services.rotation import skill_rating_for, target_topic
from services.scoring import progress_snapshot, recent_scores, running_average
from services.sessions import InMemorySessionStore, InterviewSession, SessionStore, new_session
from services.subject_rating import (
    is_skip,
    needs_rating,
    parse_rating,
    rating_ack,
    rating_question,
    record_rating,
    record_skip,
    skip_ack,
)
from storage.history import HistoryStore, SqliteHistoryStore
from storage.questions import SAMPLE_QUESTIONS, QuestionRecord

logger = logging.getLogger(__name__)

_SKILL_RATINGS = TypeAdapter(List[SkillRating])
_RESPONSE_TYPES = ("text", "voice", "canvas")


class InvalidConfigError(ValueError):
    """Raised by ``initialize`` for unusable session configuration."""


def expected_answer_for(question: ScoredQuestion) -> str:
    if isinstance(question, CodeCompletionQuestion):
        return question.expected_completion or question.expected_answer
    if isinstance(question, (McqQuestion, CodeSnippetQuestion, TextualQuestion)):
        return question.expected_answer
    raise TypeError(f"Unsupported question type: {getattr(question, 'type', None)!r}")


class InterviewManager:
    def __init__(
        self,
        *,
        store: Optional[SessionStore] = None,
        questions: Optional[QuestionService] = None,
        history: Optional[HistoryStore] = None,
    ) -> None:
        self._store = store if store is not None else InMemorySessionStore()
        self._questions = questions if questions is not None else QuestionService()
        self._history = history if history is not None else SqliteHistoryStore()
        self._locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------ lifecycle

    async def initialize(
        self,
        student_id: str,
        skill_ratings: Iterable[Union[SkillRating, Mapping[str, Any]]] = (),
        config: Union[InterviewConfig, Mapping[str, Any], None] = None,
    ) -> InterviewSession:
        """Create and register a new active session.

        Raises:
            InvalidConfigError: On an empty ``student_id``, malformed skill
                ratings or a non-positive ``total_questions``.
        """
        if not student_id or not str(student_id).strip():
            raise InvalidConfigError("student_id is required")
        try:
            ratings = _SKILL_RATINGS.validate_python(list(skill_ratings or []))
            resolved = _resolve_config(config)
        except ValidationError as exc:
            raise InvalidConfigError(str(exc)) from exc

        session = new_session(str(student_id).strip(), ratings, resolved)
        self._store.put(session)
        log_event(
            "session_started",
            session.session_id,
            student_id=session.student_id,
            topics=[entry.topic for entry in ratings],
            total_questions=session.total_questions,
        )
        return session.model_copy(deep=True)

    async def end_session(self, session_id: str) -> Optional[InterviewSession]:
        async with self._locked(session_id) as session:
            if session is not None:
                self._complete(session, "ended")
                self._store.put(session)
                return session.model_copy(deep=True)
        return await self.get_session(session_id)

    async def get_session(self, session_id: str) -> Optional[InterviewSession]:
        session = self._store.get(session_id)
        return session.model_copy(deep=True) if session is not None else None

    async def get_session_progress(self, session_id: str) -> Optional[ProgressSnapshot]:
        session = self._store.get(session_id)
        if session is None:
            return None
        return progress_snapshot(session)

    # ------------------------------------------------------------------ question loop

    async def get_next_question(
        self, session_id: str, focused_technology: Optional[str] = None
    ) -> Optional[QuestionWithType]:
        async with self._locked(session_id) as session:
            if session is None:
                return None
            if focused_technology and focused_technology.strip():
                session.focused_technology = focused_technology.strip()

            topic = target_topic(session)
            if topic is None:
                self._complete(session, "no_topics_remaining")
                self._store.put(session)
                return None

            if needs_rating(session, topic):
                intake = rating_question(topic)
                session.current_question = intake
                self._store.put(session)
                log_event("rating_requested", session_id, topic=topic)
                return intake.model_copy(deep=True)

            skill = skill_rating_for(session, topic)
            difficulty = adapt_difficulty(session, skill)
            with span(session_id, "generate_question", topic=topic):
                generated = await self._generate(session, topic, difficulty, skill)
            question = generated.model_copy(update={"topic": topic, "difficulty": difficulty})
            session.current_question = question
            self._store.put(session)
            log_event(
                "question_issued",
                session_id,
                topic=topic,
                difficulty=difficulty,
                question_type=question.type,
                index=session.current_question_index,
            )
            return question.model_copy(deep=True)

    async def submit_response(
        self,
        session_id: str,
        question_id: str,
        response: str,
        response_type: str = "text",
    ) -> Optional[ResponseEvaluation]:
        async with self._locked(session_id) as session:
            if session is None:
                return None
            question = session.current_question
            if question is None or question.id != question_id:
                reason = "no_pending_question" if question is None else "question_mismatch"
                logger.warning("Rejected response for session=%s question=%s: %s", session_id, question_id, reason)
                log_event("response_rejected", session_id, level=logging.WARNING, reason=reason)
                return None

            text = response or ""
            if isinstance(question, RatingQuestion):
                return self._apply_rating(session, question, text)

            evaluation = await self._evaluate(session, question, text)
            record = StudentResponse(
                student_id=session.student_id,
                session_id=session_id,
                question_id=question.id,
                topic=question.topic,
                difficulty=question.difficulty,
                question_type=question.type,
                question=question.question,
                response=text,
                score=evaluation.score,
                feedback=evaluation.feedback,
                response_type=_response_type(response_type),
                tags=list(question.tags),
            )
            session.responses.append(record)
            session.average_score = running_average(session.responses)
            session.current_question = None
            session.current_question_index += 1
            log_event(
                "response_scored",
                session_id,
                topic=question.topic,
                question_type=question.type,
                score=evaluation.score,
                index=session.current_question_index,
            )
            if session.current_question_index > session.total_questions:
                self._complete(session, "question_limit")
            self._store.put(session)

        await self._persist(record)
        return evaluation

    # ------------------------------------------------------------------ direct mutators

    async def set_subject_rating(self, session_id: str, subject: str, rating: int) -> bool:
        async with self._locked(session_id) as session:
            if session is None or not (subject or "").strip():
                return False
            value = record_rating(session, subject.strip(), rating)
            self._store.put(session)
            log_event("subject_rated", session_id, topic=subject.strip(), rating=value, source="direct")
            return True

    async def handle_subject_skip(self, session_id: str, subject: str) -> bool:
        async with self._locked(session_id) as session:
            if session is None or not (subject or "").strip():
                return False
            record_skip(session, subject.strip())
            self._store.put(session)
            log_event("subject_skipped", session_id, topic=subject.strip(), source="direct")
            return True

    async def set_focused_technology(self, session_id: str, topic: Optional[str]) -> bool:
        """Set the sticky focus, or clear it with ``None``/blank."""
        async with self._locked(session_id) as session:
            if session is None:
                return False
            session.focused_technology = (topic or "").strip() or None
            self._store.put(session)
            return True

    # ------------------------------------------------------------------ history and question bank

    async def get_student_history(
        self, student_id: str, limit: Optional[int] = None, topic: Optional[str] = None
    ) -> List[StudentResponse]:
        try:
            return await self._history.fetch_history(student_id, limit or settings.HISTORY_LIMIT, topic)
        except Exception as exc:  # noqa: BLE001
            logger.warning("History fetch failed for student=%s: %s", student_id, exc)
            return []

    async def seed_questions(self) -> int:
        for record in SAMPLE_QUESTIONS:
            await self._history.store_question(record)
        return len(SAMPLE_QUESTIONS)

    async def search_questions(
        self, query: str, topic: Optional[str] = None, limit: int = 5
    ) -> List[QuestionRecord]:
        try:
            return await self._history.search_similar_questions(query, topic, limit)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Question search failed: %s", exc)
            return []

    # ------------------------------------------------------------------ internals

    @asynccontextmanager
    async def _locked(self, session_id: str) -> AsyncIterator[Optional[InterviewSession]]:
        """Hold the session's lock and yield it while active, else yield ``None``.

        Locks exist only for active sessions and are dropped once the session
        is no longer active, so unknown or finished ids leave nothing behind.
        """
        if self._active(session_id) is None:
            yield None
            return
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        try:
            async with lock:
                yield self._active(session_id)
        finally:
            if self._active(session_id) is None and self._locks.get(session_id) is lock:
                del self._locks[session_id]

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    def _active(self, session_id: str) -> Optional[InterviewSession]:
        session = self._store.get(session_id)
        if session is None or not session.is_active:
            return None
        return session

    def _complete(self, session: InterviewSession, reason: CompletionReason) -> None:
        if session.status == "completed":
            return
        session.status = "completed"
        session.completion_reason = reason
        session.current_question = None
        log_event(
            "session_completed",
            session.session_id,
            reason=reason,
            score=round(session.average_score, 1),
            answered=len(session.responses),
        )

    def _apply_rating(self, session: InterviewSession, question: RatingQuestion, text: str) -> ResponseEvaluation:
        topic = question.topic
        session.current_question = None
        if is_skip(text):
            record_skip(session, topic)
            self._store.put(session)
            log_event("subject_skipped", session.session_id, topic=topic, source="intake")
            return skip_ack(topic)
        value = record_rating(session, topic, parse_rating(text))
        self._store.put(session)
        log_event("subject_rated", session.session_id, topic=topic, rating=value, source="intake")
        return rating_ack(topic, value)

    async def _generate(
        self, session: InterviewSession, topic: str, difficulty: Difficulty, skill: int
    ) -> ScoredQuestion:
        if len(session.responses) >= settings.ADAPTIVE_MIN_RESPONSES:
            try:
                return await self._questions.generate_adaptive_question(
                    topic,
                    difficulty,
                    session.average_score,
                    recent_scores(session.responses, settings.RECENT_SCORES_WINDOW),
                    skill,
                )
            except QuestionServiceError as exc:
                logger.warning("Adaptive question failed session=%s topic=%s: %s", session.session_id, topic, exc)
        try:
            return await self._questions.generate_question(
                topic,
                difficulty,
                skill,
                previous_tags([record.tags for record in session.responses]),
            )
        except QuestionServiceError as exc:
            logger.warning("Question generation failed session=%s topic=%s: %s", session.session_id, topic, exc)

        log_event("question_fallback", session.session_id, level=logging.WARNING, topic=topic, difficulty=difficulty)
        return await self._fallback_question(session, topic, difficulty)

    async def _fallback_question(self, session: InterviewSession, topic: str, difficulty: Difficulty) -> ScoredQuestion:
        try:
            records = await self._history.find_questions(topic, difficulty, limit=10)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Question bank lookup failed topic=%s: %s", topic, exc)
            records = []
        asked = [record.question for record in session.responses]
        return bank_question(records, asked, difficulty) or generic_question(topic, difficulty)

    async def _evaluate(self, session: InterviewSession, question: ScoredQuestion, text: str) -> ResponseEvaluation:
        try:
            with span(session.session_id, "evaluate_response", topic=question.topic):
                return await self._questions.evaluate_response(
                    question_prompt_text(question),
                    text,
                    expected_answer_for(question),
                    question.topic,
                    question.difficulty,
                    question.type,
                )
        except QuestionServiceError as exc:
            logger.warning("Evaluation failed session=%s topic=%s: %s", session.session_id, question.topic, exc)
            log_event("evaluation_fallback", session.session_id, level=logging.WARNING, topic=question.topic)
            return fallback_evaluation()

    async def _persist(self, record: StudentResponse) -> None:
        try:
            await self._history.store_response(record)
        except Exception as exc:  # noqa: BLE001
            logger.warning("History write failed session=%s: %s", record.session_id, exc)
            log_event("history_write_failed", record.session_id, level=logging.WARNING, reason=str(exc))


def _resolve_config(config: Union[InterviewConfig, Mapping[str, Any], None]) -> InterviewConfig:
    if config is None:
        return InterviewConfig(total_questions=settings.TOTAL_QUESTIONS_DEFAULT)
    if isinstance(config, InterviewConfig):
        return config
    data = dict(config)
    data.setdefault("total_questions", settings.TOTAL_QUESTIONS_DEFAULT)
    return InterviewConfig.model_validate(data)


def _response_type(value: str) -> str:
    if value in _RESPONSE_TYPES:
        return value
    logger.warning("Unknown response type %r, recording as text", value)
    return "text"


_manager: Optional[InterviewManager] = None


def get_interview_manager() -> InterviewManager:
    """Process-wide manager used by the HTTP layer."""
    global _manager
    if _manager is None:
        _manager = InterviewManager()
    return _manager


__all__ = [
    "InterviewManager",
    "InvalidConfigError",
    "expected_answer_for",
    "get_interview_manager",
]
