from agents.types import InterviewConfig, SkillRating, StudentResponse
from services.difficulty import adapt_difficulty, adjust_for_scores, base_difficulty, step
from services.sessions import new_session


def _session_with_scores(*scores):
    session = new_session(
        "s1",
        [SkillRating(topic="Python", rating=5, category="languages")],
        InterviewConfig(total_questions=10),
    )
    for index, score in enumerate(scores):
        session.responses.append(
            StudentResponse(
                student_id="s1",
                session_id=session.session_id,
                question_id=f"q{index}",
                topic="Python",
                difficulty="intermediate",
                question_type="textual",
                response="answer",
                score=score,
                feedback="ok",
            )
        )
    return session


def test_base_difficulty_bands():
    assert [base_difficulty(r) for r in (1, 3, 4, 7, 8, 10)] == [
        "beginner",
        "beginner",
        "intermediate",
        "intermediate",
        "advanced",
        "advanced",
    ]


def test_step_clamps_at_ends():
    assert step("beginner", -1) == "beginner"
    assert step("advanced", 1) == "advanced"
    assert step("beginner", 1) == "intermediate"


def test_needs_full_window_before_adjusting():
    assert adjust_for_scores("intermediate", []) == "intermediate"
    assert adjust_for_scores("intermediate", [99]) == "intermediate"


def test_high_recent_average_steps_up_once():
    assert adjust_for_scores("beginner", [90, 92]) == "intermediate"
    assert adjust_for_scores("advanced", [95, 96]) == "advanced"


def test_low_recent_average_steps_down_once():
    assert adjust_for_scores("advanced", [10, 20]) == "intermediate"
    assert adjust_for_scores("beginner", [0, 0]) == "beginner"


def test_thresholds_are_strict():
    assert adjust_for_scores("intermediate", [85, 85]) == "intermediate"
    assert adjust_for_scores("intermediate", [60, 60]) == "intermediate"


def test_only_latest_window_counts():
    assert adjust_for_scores("intermediate", [10, 10, 90, 95]) == "advanced"


def test_adapt_difficulty_reads_session_scores():
    assert adapt_difficulty(_session_with_scores(), 7) == "intermediate"
    assert adapt_difficulty(_session_with_scores(90, 92), 7) == "advanced"
    assert adapt_difficulty(_session_with_scores(40, 50), 2) == "beginner"
