"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS student_responses (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  student_id TEXT NOT NULL,
  session_id TEXT NOT NULL,
  question_id TEXT NOT NULL,
  topic TEXT NOT NULL,
  difficulty TEXT NOT NULL,
  question_type TEXT NOT NULL,
  question TEXT NOT NULL,
  response TEXT NOT NULL,
  score REAL NOT NULL,
  feedback TEXT NOT NULL,
  response_type TEXT NOT NULL,
  tags TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_student_responses_student
  ON student_responses (student_id, topic);
""",
    """
CREATE TABLE IF NOT EXISTS interview_questions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  question_key TEXT NOT NULL UNIQUE,
  topic TEXT NOT NULL,
  difficulty TEXT NOT NULL,
  question TEXT NOT NULL,
  expected_answer TEXT NOT NULL,
  tags TEXT NOT NULL,
  category TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_interview_questions_topic
  ON interview_questions (topic, difficulty);
""",
]


def migrate(db_path: str = "data/interview.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    migrate()
