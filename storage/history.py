"""History store seam used by the interview manager.

The manager only talks to :class:`HistoryStore`; the SQLite implementation
pushes the blocking calls onto worker threads so a slow disk never stalls
the event loop.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional

from agents.types import StudentResponse

from .questions import QuestionRecord, find_questions, search_similar_questions, upsert_question
from .responses import fetch_student_history, insert_student_response


class HistoryStore:
    """Abstract durable log of responses plus the question bank."""

    async def store_response(self, record: StudentResponse) -> None:
        raise NotImplementedError

    async def fetch_history(
        self, student_id: str, limit: int, topic: Optional[str] = None
    ) -> List[StudentResponse]:
        raise NotImplementedError

    async def store_question(self, record: QuestionRecord) -> None:
        raise NotImplementedError

    async def find_questions(self, topic: str, difficulty: str, limit: int = 5) -> List[QuestionRecord]:
        raise NotImplementedError

    async def search_similar_questions(
        self, query: str, topic: Optional[str] = None, limit: int = 5
    ) -> List[QuestionRecord]:
        raise NotImplementedError


class SqliteHistoryStore(HistoryStore):
    async def store_response(self, record: StudentResponse) -> None:
        await asyncio.to_thread(insert_student_response, record)

    async def fetch_history(
        self, student_id: str, limit: int, topic: Optional[str] = None
    ) -> List[StudentResponse]:
        return await asyncio.to_thread(fetch_student_history, student_id, limit, topic)

    async def store_question(self, record: QuestionRecord) -> None:
        await asyncio.to_thread(upsert_question, record)

    async def find_questions(self, topic: str, difficulty: str, limit: int = 5) -> List[QuestionRecord]:
        return await asyncio.to_thread(find_questions, topic, difficulty, limit)

    async def search_similar_questions(
        self, query: str, topic: Optional[str] = None, limit: int = 5
    ) -> List[QuestionRecord]:
        return await asyncio.to_thread(search_similar_questions, query, topic, limit)


__all__ = ["HistoryStore", "SqliteHistoryStore"]
