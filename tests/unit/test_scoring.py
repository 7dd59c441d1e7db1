import pytest

from agents.types import InterviewConfig, SkillRating, StudentResponse
from services.scoring import mean, progress_snapshot, recent_scores, running_average, topic_breakdown
from services.sessions import new_session


def _record(session, topic, score):
    return StudentResponse(
        student_id=session.student_id,
        session_id=session.session_id,
        question_id=f"q-{topic}-{score}",
        topic=topic,
        difficulty="beginner",
        question_type="textual",
        response="answer",
        score=score,
        feedback="ok",
    )


def _session():
    return new_session(
        "s1",
        [
            SkillRating(topic="JavaScript", rating=2, category="languages"),
            SkillRating(topic="React", rating=6, category="frameworks"),
        ],
        InterviewConfig(total_questions=5),
    )


def test_mean_of_empty_is_zero():
    assert mean([]) == 0.0


def test_running_average_and_recent_window():
    session = _session()
    session.responses.extend(_record(session, "JavaScript", s) for s in (90, 92, 95))
    assert running_average(session.responses) == pytest.approx(92.333, abs=0.01)
    assert recent_scores(session.responses, 2) == [92, 95]


def test_breakdown_uses_response_topics():
    session = _session()
    session.responses.extend(
        [
            _record(session, "JavaScript", 80),
            _record(session, "JavaScript", 91),
            _record(session, "Docker", 70),
        ]
    )
    assert topic_breakdown(session) == {"JavaScript": 85.5, "React": 0.0, "Docker": 70.0}


def test_progress_snapshot_reflects_session():
    session = _session()
    session.responses.append(_record(session, "React", 60))
    session.average_score = 60.0
    session.current_question_index = 2
    session.subject_ratings["React"] = 4
    session.skipped_subjects.append("JavaScript")

    snapshot = progress_snapshot(session)
    assert snapshot.session_id == session.session_id
    assert snapshot.current_question_index == 2
    assert snapshot.total_questions == 5
    assert snapshot.answered_count == 1
    assert snapshot.status == "active"
    assert snapshot.subject_ratings == {"React": 4}
    assert snapshot.skipped_subjects == ["JavaScript"]
    assert snapshot.technology_scores["React"] == 60.0
