import asyncio
import time

import pytest

from agents.question_service import (
    QuestionService,
    QuestionServiceError,
    previous_tags,
    question_prompt_text,
    to_question,
)
from agents.types import GeneratedQuestion
from config.registry import ADAPTIVE_QUESTION_KEY, EVAL_KEY, QUESTION_KEY, bind_model


def test_generate_question_builds_tagged_union():
    seen = {}

    def fake(**kwargs):
        seen.update(kwargs["inputs"])
        return {
            "question": "Which keyword declares a block-scoped constant?",
            "expected_answer": "const",
            "difficulty": "beginner",
            "tags": ["variables"],
            "type": "mcq",
            "choices": ["var", "let", "const"],
        }

    bind_model(QUESTION_KEY, fake)
    question = asyncio.run(QuestionService().generate_question("JavaScript", "beginner", 2, ["scope"]))
    assert question.type == "mcq"
    assert question.topic == "JavaScript"
    assert question.choices == ["var", "let", "const"]
    assert seen == {"topic": "JavaScript", "difficulty": "beginner", "skill_rating": 2, "previous_tags": "scope"}


def test_async_models_are_awaited():
    async def fake(**kwargs):
        return {"question": "Explain closures.", "difficulty": "intermediate"}

    bind_model(QUESTION_KEY, fake)
    question = asyncio.run(QuestionService().generate_question("JavaScript", "intermediate", 5))
    assert question.type == "textual"
    assert question.question == "Explain closures."


def test_adaptive_inputs_summarise_performance():
    seen = {}

    def fake(**kwargs):
        seen.update(kwargs["inputs"])
        return {"question": "Next?", "difficulty": "advanced"}

    bind_model(ADAPTIVE_QUESTION_KEY, fake)
    asyncio.run(QuestionService().generate_adaptive_question("React", "advanced", 91.0, [90.0, 92.0], 7))
    assert seen["recent_scores"] == "90, 92"
    assert seen["average_score"] == 91.0
    assert seen["current_difficulty"] == "advanced"


def test_mcq_without_choices_is_rejected():
    bind_model(QUESTION_KEY, lambda **_: {"question": "Pick one", "difficulty": "beginner", "type": "mcq"})
    with pytest.raises(QuestionServiceError):
        asyncio.run(QuestionService().generate_question("JavaScript", "beginner", 2))


def test_unbound_model_raises_service_error():
    with pytest.raises(QuestionServiceError):
        asyncio.run(QuestionService().generate_question("JavaScript", "beginner", 2))


def test_model_exception_is_wrapped():
    def boom(**_):
        raise RuntimeError("upstream down")

    bind_model(EVAL_KEY, boom)
    with pytest.raises(QuestionServiceError):
        asyncio.run(QuestionService().evaluate_response("q", "a", "e", "JavaScript", "beginner", "textual"))


def test_slow_model_times_out():
    async def slow(**_):
        await asyncio.sleep(1)
        return {"score": 90, "feedback": "late"}

    bind_model(EVAL_KEY, slow)
    service = QuestionService(timeout_s=0.05)
    with pytest.raises(QuestionServiceError):
        asyncio.run(service.evaluate_response("q", "a", "e", "JavaScript", "beginner", "textual"))


def test_blocking_model_times_out():
    def slow(**_):
        time.sleep(0.3)
        return {"score": 90, "feedback": "late"}

    bind_model(EVAL_KEY, slow)
    service = QuestionService(timeout_s=0.05)
    with pytest.raises(QuestionServiceError):
        asyncio.run(service.evaluate_response("q", "a", "e", "JavaScript", "beginner", "textual"))


def test_blocking_model_leaves_event_loop_free():
    ticks = []
    finished = []

    def slow(**_):
        time.sleep(0.2)
        finished.append(time.monotonic())
        return {"question": "Explain the event loop.", "difficulty": "intermediate"}

    async def ticker():
        for _ in range(5):
            ticks.append(time.monotonic())
            await asyncio.sleep(0.01)

    async def scenario():
        return await asyncio.gather(
            QuestionService().generate_question("JavaScript", "intermediate", 5), ticker()
        )

    bind_model(QUESTION_KEY, slow)
    question, _ = asyncio.run(scenario())
    assert question.question == "Explain the event loop."
    assert len(ticks) == 5
    assert ticks[-1] < finished[0]


def test_missing_difficulty_defaults_to_requested():
    bind_model(QUESTION_KEY, lambda **_: {"question": "Explain hoisting."})
    bind_model(ADAPTIVE_QUESTION_KEY, lambda **_: {"question": "Explain the TDZ."})
    service = QuestionService()

    first = asyncio.run(service.generate_question("JavaScript", "beginner", 2))
    adaptive = asyncio.run(service.generate_adaptive_question("JavaScript", "advanced", 88.0, [85.0, 91.0], 6))

    assert first.difficulty == "beginner"
    assert adaptive.difficulty == "advanced"


def test_model_difficulty_wins_over_requested():
    bind_model(QUESTION_KEY, lambda **_: {"question": "Explain hoisting.", "difficulty": "intermediate"})
    question = asyncio.run(QuestionService().generate_question("JavaScript", "beginner", 2))
    assert question.difficulty == "intermediate"


def test_evaluation_score_is_clamped():
    bind_model(EVAL_KEY, lambda **_: {"score": 140, "feedback": "great"})
    evaluation = asyncio.run(
        QuestionService().evaluate_response("q", "a", "", "JavaScript", "beginner", "textual")
    )
    assert evaluation.score == 100.0


def test_evaluation_missing_feedback_is_rejected():
    bind_model(EVAL_KEY, lambda **_: {"score": 40})
    with pytest.raises(QuestionServiceError):
        asyncio.run(QuestionService().evaluate_response("q", "a", "", "JavaScript", "beginner", "textual"))


def test_prompt_text_includes_code_and_choices():
    snippet = to_question(
        GeneratedQuestion(
            question="What does this print?",
            difficulty="beginner",
            type="code_snippet",
            code_snippet="console.log(typeof null)",
        ),
        "JavaScript",
    )
    assert "console.log(typeof null)" in question_prompt_text(snippet)

    mcq = to_question(
        GeneratedQuestion(question="Pick", difficulty="beginner", type="mcq", choices=["a", "b"]),
        "JavaScript",
    )
    assert "- b" in question_prompt_text(mcq)


def test_previous_tags_deduplicates_in_order():
    assert previous_tags([["a", "b"], ["b", "c"], []]) == ["a", "b", "c"]
