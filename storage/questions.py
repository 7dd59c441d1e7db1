"""Question bank persistence: seeding, lookup and semantic similarity search."""
from __future__ import annotations

import json
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from agents.types import Difficulty

from .question_index import index_question, query_question_keys
from .sqlite import get_conn

QuestionCategory = Literal["technical", "behavioral", "system_design"]


class QuestionRecord(BaseModel):
    question_key: str
    topic: str
    difficulty: Difficulty
    question: str
    expected_answer: str = ""
    tags: List[str] = Field(default_factory=list)
    category: QuestionCategory = "technical"


SAMPLE_QUESTIONS: List[QuestionRecord] = [
    QuestionRecord(
        question_key="js_1",
        topic="JavaScript",
        difficulty="beginner",
        question="Explain the difference between let, const, and var in JavaScript.",
        expected_answer="let and const are block-scoped, var is function-scoped. const cannot be reassigned.",
        tags=["variables", "scope", "fundamentals"],
    ),
    QuestionRecord(
        question_key="react_1",
        topic="React",
        difficulty="intermediate",
        question="How do React hooks work and what problems do they solve?",
        expected_answer=(
            "Hooks allow functional components to use state and lifecycle methods, "
            "solving code reuse and component complexity issues."
        ),
        tags=["hooks", "state", "lifecycle"],
    ),
    QuestionRecord(
        question_key="python_1",
        topic="Python",
        difficulty="advanced",
        question="Explain Python's GIL and its impact on multithreading.",
        expected_answer=(
            "Global Interpreter Lock prevents true parallelism in CPU-bound tasks, "
            "but allows I/O-bound concurrency."
        ),
        tags=["GIL", "threading", "performance"],
    ),
]


def upsert_question(record: QuestionRecord) -> None:
    """Insert a bank question, replacing any row with the same key."""

    with get_conn() as conn:
        conn.execute(
            """INSERT INTO interview_questions
               (question_key, topic, difficulty, question, expected_answer, tags, category)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(question_key) DO UPDATE SET
                 topic = excluded.topic,
                 difficulty = excluded.difficulty,
                 question = excluded.question,
                 expected_answer = excluded.expected_answer,
                 tags = excluded.tags,
                 category = excluded.category""",
            (
                record.question_key,
                record.topic,
                record.difficulty,
                record.question,
                record.expected_answer,
                json.dumps(record.tags),
                record.category,
            ),
        )
    index_question(record.question_key, record.topic, record.difficulty, _document(record))


def find_questions(topic: str, difficulty: str, limit: int = 5) -> List[QuestionRecord]:
    """Return bank questions for a topic and difficulty in insertion order."""

    with get_conn() as conn:
        rows = conn.execute(
            """SELECT * FROM interview_questions
               WHERE lower(topic) = lower(?) AND difficulty = ?
               ORDER BY id ASC LIMIT ?""",
            (topic, difficulty, int(limit)),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


def search_similar_questions(query: str, topic: Optional[str] = None, limit: int = 5) -> List[QuestionRecord]:
    """Bank questions semantically nearest to ``query``, closest first."""

    keys = query_question_keys(query, topic, limit)
    if not keys:
        return []
    placeholders = ", ".join("?" for _ in keys)
    with get_conn() as conn:
        rows = conn.execute(
            f"SELECT * FROM interview_questions WHERE question_key IN ({placeholders})",
            keys,
        ).fetchall()
    by_key = {row["question_key"]: _row_to_record(row) for row in rows}
    return [by_key[key] for key in keys if key in by_key]


def _document(record: QuestionRecord) -> str:
    return " ".join([record.question, " ".join(record.tags), record.topic])


def _row_to_record(row) -> QuestionRecord:
    return QuestionRecord(
        question_key=row["question_key"],
        topic=row["topic"],
        difficulty=row["difficulty"],
        question=row["question"],
        expected_answer=row["expected_answer"],
        tags=json.loads(row["tags"] or "[]"),
        category=row["category"],
    )


__all__ = [
    "QuestionRecord",
    "SAMPLE_QUESTIONS",
    "upsert_question",
    "find_questions",
    "search_similar_questions",
]
