"""Persistence helpers for the student response log."""
from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

from agents.types import StudentResponse

from .sqlite import get_conn


def insert_student_response(record: StudentResponse) -> int:
    """Append a scored response and return its row id."""

    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute(
            """INSERT INTO student_responses
               (timestamp, student_id, session_id, question_id, topic, difficulty, question_type,
                question, response, score, feedback, response_type, tags)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                record.timestamp.isoformat(),
                record.student_id,
                record.session_id,
                record.question_id,
                record.topic,
                record.difficulty,
                record.question_type,
                record.question,
                record.response,
                float(record.score),
                record.feedback,
                record.response_type,
                json.dumps(record.tags),
            ),
        )
        return int(cur.lastrowid)


def fetch_student_history(student_id: str, limit: int, topic: Optional[str] = None) -> List[StudentResponse]:
    """Return the most recent responses for ``student_id``, newest first."""

    query = "SELECT * FROM student_responses WHERE student_id = ?"
    params: list = [student_id]
    if topic:
        query += " AND lower(topic) = lower(?)"
        params.append(topic)
    query += " ORDER BY id DESC LIMIT ?"
    params.append(int(limit))

    with get_conn() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_response(row) for row in rows]


def _row_to_response(row) -> StudentResponse:
    return StudentResponse(
        student_id=row["student_id"],
        session_id=row["session_id"],
        question_id=row["question_id"],
        topic=row["topic"],
        difficulty=row["difficulty"],
        question_type=row["question_type"],
        question=row["question"],
        response=row["response"],
        score=row["score"],
        feedback=row["feedback"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
        response_type=row["response_type"],
        tags=json.loads(row["tags"] or "[]"),
    )


__all__ = ["insert_student_response", "fetch_student_history"]
