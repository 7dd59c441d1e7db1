"""Shared type definitions for interview sessions and the question service."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

Difficulty = Literal["beginner", "intermediate", "advanced"]
SkillCategory = Literal["languages", "frameworks", "ai_tools"]
ResponseType = Literal["text", "voice", "canvas"]
SessionStatus = Literal["active", "completed", "paused"]
CompletionReason = Literal["question_limit", "ended", "no_topics_remaining"]
ScoredQuestionType = Literal["mcq", "code_snippet", "code_completion", "textual"]

SKIP_SUBJECT_CHOICE = "Skip Subject"
RATING_CHOICES: List[str] = [str(value) for value in range(1, 11)] + [SKIP_SUBJECT_CHOICE]


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SkillRating(BaseModel):
    topic: str = Field(min_length=1)
    rating: int = Field(ge=1, le=10)
    category: SkillCategory


class _QuestionBase(BaseModel):
    id: str = Field(default_factory=_new_id)
    topic: str
    question: str
    tags: List[str] = Field(default_factory=list)


class _ScoredQuestion(_QuestionBase):
    expected_answer: str = ""
    difficulty: Difficulty


class McqQuestion(_ScoredQuestion):
    type: Literal["mcq"] = "mcq"
    choices: List[str] = Field(min_length=2)


class CodeSnippetQuestion(_ScoredQuestion):
    type: Literal["code_snippet"] = "code_snippet"
    code_snippet: str = Field(min_length=1)


class CodeCompletionQuestion(_ScoredQuestion):
    type: Literal["code_completion"] = "code_completion"
    code_snippet: str = Field(min_length=1)
    expected_completion: str = ""


class TextualQuestion(_ScoredQuestion):
    type: Literal["textual"] = "textual"


class RatingQuestion(_QuestionBase):
    """Synthetic intake question asking the candidate to rate a subject."""

    type: Literal["rating"] = "rating"
    choices: List[str] = Field(default_factory=lambda: list(RATING_CHOICES))


ScoredQuestion = Union[McqQuestion, CodeSnippetQuestion, CodeCompletionQuestion, TextualQuestion]

QuestionWithType = Annotated[
    Union[McqQuestion, CodeSnippetQuestion, CodeCompletionQuestion, TextualQuestion, RatingQuestion],
    Field(discriminator="type"),
]

QUESTION_ADAPTER: TypeAdapter = TypeAdapter(QuestionWithType)


class GeneratedQuestion(BaseModel):
    """Flat question payload the language model is asked to produce."""

    question: str = Field(min_length=1)
    expected_answer: str = ""
    difficulty: Optional[Difficulty] = None
    tags: List[str] = Field(default_factory=list)
    type: ScoredQuestionType = "textual"
    choices: Optional[List[str]] = None
    code_snippet: Optional[str] = None
    expected_completion: Optional[str] = None


class ResponseEvaluation(BaseModel):
    score: float = Field(ge=0.0, le=100.0)
    feedback: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    follow_up_question: Optional[str] = None


class StudentResponse(BaseModel):
    """One scored answer, tagged with the topic it was asked about."""

    student_id: str
    session_id: str
    question_id: str
    topic: str
    difficulty: Difficulty
    question_type: ScoredQuestionType
    question: str = ""
    response: str
    score: float
    feedback: str
    timestamp: datetime = Field(default_factory=utcnow)
    response_type: ResponseType = "text"
    tags: List[str] = Field(default_factory=list)


class InterviewConfig(BaseModel):
    total_questions: int = Field(default=10, gt=0)
    adaptive_difficulty: bool = True
    focus_mode: bool = False
    allow_voice_input: bool = True
    allow_canvas_input: bool = True


class ProgressSnapshot(BaseModel):
    session_id: str
    current_question_index: int
    total_questions: int
    average_score: float
    technology_scores: Dict[str, float] = Field(default_factory=dict)
    status: SessionStatus
    completion_reason: Optional[CompletionReason] = None
    answered_count: int = 0
    subject_ratings: Dict[str, int] = Field(default_factory=dict)
    skipped_subjects: List[str] = Field(default_factory=list)
