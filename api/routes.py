"""FastAPI routes for interview session control."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from agents.types import ProgressSnapshot, QuestionWithType, ResponseEvaluation, StudentResponse
from api.schemas import (
    Envelope,
    FocusReq,
    NextQuestionReq,
    SeedResult,
    StartSessionReq,
    SubjectRatingReq,
    SubjectSkipReq,
    SubmitResponseReq,
)
from services.interview_manager import InterviewManager, InvalidConfigError, get_interview_manager
from services.sessions import InterviewSession
from storage.questions import QuestionRecord


router = APIRouter(prefix="/api/interview")

SESSION_NOT_FOUND = "session not found or not active"


def _missing(message: str = SESSION_NOT_FOUND) -> Envelope:
    return Envelope(success=False, data=None, message=message)


@router.post("/sessions", response_model=Envelope[InterviewSession])
async def start_session(
    req: StartSessionReq, manager: InterviewManager = Depends(get_interview_manager)
) -> Envelope[InterviewSession]:
    try:
        session = await manager.initialize(req.student_id, req.skill_ratings, req.config)
    except InvalidConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Envelope(data=session)


@router.post("/sessions/{session_id}/next-question", response_model=Envelope[QuestionWithType])
async def next_question(
    session_id: str,
    req: Optional[NextQuestionReq] = None,
    manager: InterviewManager = Depends(get_interview_manager),
) -> Envelope[QuestionWithType]:
    focus = req.focused_technology if req else None
    question = await manager.get_next_question(session_id, focus)
    if question is None:
        return _missing("no question available")
    return Envelope(data=question)


@router.post("/sessions/{session_id}/responses", response_model=Envelope[ResponseEvaluation])
async def submit_response(
    session_id: str,
    req: SubmitResponseReq,
    manager: InterviewManager = Depends(get_interview_manager),
) -> Envelope[ResponseEvaluation]:
    evaluation = await manager.submit_response(session_id, req.question_id, req.response, req.response_type)
    if evaluation is None:
        return _missing("response not accepted")
    return Envelope(data=evaluation)


@router.get("/sessions/{session_id}/progress", response_model=Envelope[ProgressSnapshot])
async def session_progress(
    session_id: str, manager: InterviewManager = Depends(get_interview_manager)
) -> Envelope[ProgressSnapshot]:
    snapshot = await manager.get_session_progress(session_id)
    if snapshot is None:
        return _missing()
    return Envelope(data=snapshot)


@router.post("/sessions/{session_id}/end", response_model=Envelope[InterviewSession])
async def end_session(
    session_id: str, manager: InterviewManager = Depends(get_interview_manager)
) -> Envelope[InterviewSession]:
    session = await manager.end_session(session_id)
    if session is None:
        return _missing()
    return Envelope(data=session)


@router.post("/sessions/{session_id}/subject-ratings", response_model=Envelope[bool])
async def set_subject_rating(
    session_id: str,
    req: SubjectRatingReq,
    manager: InterviewManager = Depends(get_interview_manager),
) -> Envelope[bool]:
    ok = await manager.set_subject_rating(session_id, req.subject, req.rating)
    return Envelope(success=ok, data=ok)


@router.post("/sessions/{session_id}/skipped-subjects", response_model=Envelope[bool])
async def skip_subject(
    session_id: str,
    req: SubjectSkipReq,
    manager: InterviewManager = Depends(get_interview_manager),
) -> Envelope[bool]:
    ok = await manager.handle_subject_skip(session_id, req.subject)
    return Envelope(success=ok, data=ok)


@router.put("/sessions/{session_id}/focus", response_model=Envelope[bool])
async def set_focus(
    session_id: str,
    req: FocusReq,
    manager: InterviewManager = Depends(get_interview_manager),
) -> Envelope[bool]:
    ok = await manager.set_focused_technology(session_id, req.topic)
    return Envelope(success=ok, data=ok)


@router.get("/students/{student_id}/history", response_model=Envelope[List[StudentResponse]])
async def student_history(
    student_id: str,
    limit: Optional[int] = Query(default=None, gt=0),
    topic: Optional[str] = None,
    manager: InterviewManager = Depends(get_interview_manager),
) -> Envelope[List[StudentResponse]]:
    return Envelope(data=await manager.get_student_history(student_id, limit, topic))


@router.post("/questions/seed", response_model=Envelope[SeedResult])
async def seed_questions(manager: InterviewManager = Depends(get_interview_manager)) -> Envelope[SeedResult]:
    inserted = await manager.seed_questions()
    return Envelope(data=SeedResult(inserted=inserted))


@router.get("/questions/search", response_model=Envelope[List[QuestionRecord]])
async def search_questions(
    q: str,
    topic: Optional[str] = None,
    limit: int = Query(default=5, gt=0, le=50),
    manager: InterviewManager = Depends(get_interview_manager),
) -> Envelope[List[QuestionRecord]]:
    return Envelope(data=await manager.search_questions(q, topic, limit))
