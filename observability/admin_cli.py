"""Lightweight CLI helpers for inspecting interview history tables."""
from __future__ import annotations

import argparse
import sqlite3

from config.settings import settings
from storage.migrate import migrate
from storage.questions import SAMPLE_QUESTIONS, upsert_question


def tail_responses(limit: int = 20) -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT timestamp, student_id, session_id, topic, difficulty, question_type, score
            FROM student_responses
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        )
        for row in cursor.fetchall():
            ts, student_id, session_id, topic, difficulty, question_type, score = row
            print(f"[{ts}] {student_id}/{session_id} {topic}:{difficulty} {question_type} score={score:.1f}")
    finally:
        conn.close()


def list_questions(topic: str | None = None) -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        query = "SELECT question_key, topic, difficulty, question FROM interview_questions"
        params: tuple = ()
        if topic:
            query += " WHERE lower(topic) = lower(?)"
            params = (topic,)
        cursor.execute(query + " ORDER BY id ASC", params)
        for key, row_topic, difficulty, question in cursor.fetchall():
            print(f"{key} [{row_topic}/{difficulty}] {question}")
    finally:
        conn.close()


def seed() -> int:
    migrate(settings.DB_PATH)
    for record in SAMPLE_QUESTIONS:
        upsert_question(record)
    return len(SAMPLE_QUESTIONS)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-responses", type=int, help="Show the latest scored responses")
    parser.add_argument("--questions", nargs="?", const="", help="List bank questions, optionally for one topic")
    parser.add_argument("--seed", action="store_true", help="Insert the sample question bank")
    args = parser.parse_args(argv)

    if args.seed:
        print(f"seeded {seed()} questions")
    if args.tail_responses:
        tail_responses(args.tail_responses)
    if args.questions is not None:
        list_questions(args.questions or None)
    if not (args.seed or args.tail_responses or args.questions is not None):
        parser.print_help()


if __name__ == "__main__":
    main()
