from __future__ import annotations  # Default LLM-backed bindings for the question service registry keys

from textwrap import dedent
from typing import Any, Callable, Dict, Type

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel

from agents.types import GeneratedQuestion, ResponseEvaluation
from config import AppConfig, LlmRoute, resolve_registry
from config.registry import ADAPTIVE_QUESTION_KEY, EVAL_KEY, QUESTION_KEY, bind_model
from llm_gateway import chat, prompt_messages


INTERVIEWER_GUIDANCE = dedent(  # Shared guardrails for question generation
    """
    You are a technical interviewer running an adaptive mock interview.
    Ask exactly one question. Pick the question type that fits the topic best:
    mcq (supply 3-5 choices and put the correct choice in expected_answer),
    code_snippet (supply code_snippet for the candidate to analyse),
    code_completion (supply an incomplete code_snippet and the expected_completion),
    or textual.
    Keep beginner questions practical; use design or debugging scenarios for advanced ones.
    """
).strip()

EVALUATOR_GUIDANCE = dedent(  # Scoring guardrails for answer evaluation
    """
    You are an expert technical interviewer evaluating a candidate answer.
    Judge technical accuracy and depth, clarity, problem-solving approach, completeness
    and understanding of concepts. Score 0-100 and give concise, actionable feedback.
    """
).strip()

QUESTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", INTERVIEWER_GUIDANCE),
        (
            "human",
            (
                "Generate a {difficulty} level interview question for {topic}.\n"
                "Student's skill level in {topic}: {skill_rating}/10\n"
                "Tags already covered: {previous_tags}\n"
                "Avoid repeating covered tags."
            ),
        ),
    ]
)

ADAPTIVE_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", INTERVIEWER_GUIDANCE),
        (
            "human",
            (
                "Student performance summary:\n"
                "- Average score: {average_score}\n"
                "- Recent scores: {recent_scores}\n"
                "- Current topic: {topic}\n"
                "- Current difficulty: {current_difficulty}\n"
                "- Skill self-rating: {skill_rating}/10\n\n"
                "Generate the next question at the current difficulty, varying the question type."
            ),
        ),
    ]
)

EVALUATION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", EVALUATOR_GUIDANCE),
        (
            "human",
            (
                "Question ({question_type}): {question}\n"
                "Expected answer key points: {expected_answer}\n"
                "Candidate response: {response}\n"
                "Topic: {topic}\n"
                "Difficulty: {difficulty}"
            ),
        ),
    ]
)

PROMPTS: Dict[str, ChatPromptTemplate] = {
    QUESTION_KEY: QUESTION_PROMPT,
    ADAPTIVE_QUESTION_KEY: ADAPTIVE_PROMPT,
    EVAL_KEY: EVALUATION_PROMPT,
}

SCHEMAS: Dict[str, Type[BaseModel]] = {
    QUESTION_KEY: GeneratedQuestion,
    ADAPTIVE_QUESTION_KEY: GeneratedQuestion,
    EVAL_KEY: ResponseEvaluation,
}


def make_model(route: LlmRoute, schema: Type[BaseModel], prompt: ChatPromptTemplate) -> Callable[..., Any]:  # Build an async registry callable for one route
    async def _invoke(*, inputs: Dict[str, Any], **_: Any) -> Dict[str, Any]:
        messages = prompt_messages(prompt, **inputs)
        result = await chat(messages, schema, cfg=route)
        return result.model_dump()

    return _invoke


def bind_default_models(cfg: AppConfig) -> None:  # Bind every question service key to its configured route
    for key, (route, schema) in resolve_registry(cfg, SCHEMAS).items():
        bind_model(key, make_model(route, schema, PROMPTS[key]))


__all__ = ["PROMPTS", "SCHEMAS", "bind_default_models", "make_model"]
