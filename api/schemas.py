"""Pydantic schemas for the interview HTTP API."""
from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from agents.types import InterviewConfig, ResponseType, SkillRating

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class StartSessionReq(BaseModel):
    student_id: str
    skill_ratings: List[SkillRating] = Field(default_factory=list)
    config: Optional[InterviewConfig] = None


class NextQuestionReq(BaseModel):
    focused_technology: Optional[str] = None


class SubmitResponseReq(BaseModel):
    question_id: str
    response: str = ""
    response_type: ResponseType = "text"


class SubjectRatingReq(BaseModel):
    subject: str
    rating: int


class SubjectSkipReq(BaseModel):
    subject: str


class FocusReq(BaseModel):
    topic: Optional[str] = None


class SeedResult(BaseModel):
    inserted: int
