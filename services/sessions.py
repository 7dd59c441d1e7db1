"""Interview session state and the session store seam."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from agents.types import (
    CompletionReason,
    InterviewConfig,
    QuestionWithType,
    SessionStatus,
    SkillRating,
    StudentResponse,
    utcnow,
)


class InterviewSession(BaseModel):
    """Mutable state of one interview, owned by the interview manager."""

    session_id: str = Field(frozen=True)
    student_id: str = Field(frozen=True)
    start_time: datetime = Field(default_factory=utcnow, frozen=True)
    total_questions: int = Field(gt=0, frozen=True)
    skill_ratings: List[SkillRating] = Field(default_factory=list, frozen=True)
    config: InterviewConfig = Field(default_factory=InterviewConfig, frozen=True)

    current_question_index: int = 1
    focused_technology: Optional[str] = None
    subject_ratings: Dict[str, int] = Field(default_factory=dict)
    skipped_subjects: List[str] = Field(default_factory=list)
    responses: List[StudentResponse] = Field(default_factory=list)
    current_question: Optional[QuestionWithType] = None
    average_score: float = 0.0

    status: SessionStatus = "active"
    completion_reason: Optional[CompletionReason] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class SessionStore:
    """Abstract live-session registry keyed by session id.

    Replace this with an external store without changing the manager.
    """

    def get(self, session_id: str) -> Optional[InterviewSession]:
        raise NotImplementedError

    def put(self, session: InterviewSession) -> None:
        raise NotImplementedError

    def remove(self, session_id: str) -> bool:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._sessions: Dict[str, InterviewSession] = {}

    def get(self, session_id: str) -> Optional[InterviewSession]:
        return self._sessions.get(session_id)

    def put(self, session: InterviewSession) -> None:
        self._sessions[session.session_id] = session

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


def new_session(student_id: str, skill_ratings: List[SkillRating], config: InterviewConfig) -> InterviewSession:
    """Create a fresh active session with a generated identifier."""

    return InterviewSession(
        session_id=f"session_{uuid.uuid4().hex}",
        student_id=student_id,
        total_questions=config.total_questions,
        skill_ratings=list(skill_ratings),
        config=config,
    )


__all__ = ["InterviewSession", "SessionStore", "InMemorySessionStore", "new_session"]
