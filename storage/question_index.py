"""Chroma vector index over the question bank for semantic similarity search.

SQLite stays the source of truth for bank rows. This collection only maps
question keys to embeddings of their text, tags and topic.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

import chromadb
from chromadb.config import Settings as ChromaSettings
from chromadb.utils import embedding_functions

from config.settings import settings

logger = logging.getLogger(__name__)

COLLECTION_NAME = "interview_questions"

_embedding_function: Optional[Any] = None


def embedding_function() -> Any:
    """Sentence-transformers embedder for ``settings.EMBEDDING_MODEL``, loaded once."""
    global _embedding_function
    if _embedding_function is None:
        _embedding_function = embedding_functions.SentenceTransformerEmbeddingFunction(
            model_name=settings.EMBEDDING_MODEL
        )
        logger.info("Loaded question embedding model %s", settings.EMBEDDING_MODEL)
    return _embedding_function


def set_embedding_function(fn: Optional[Any]) -> None:
    """Swap the embedder; ``None`` restores the configured model on next use."""
    global _embedding_function
    _embedding_function = fn


def get_collection() -> chromadb.Collection:
    client = chromadb.PersistentClient(
        path=settings.CHROMA_PATH,
        settings=ChromaSettings(anonymized_telemetry=False),
    )
    return client.get_or_create_collection(
        name=COLLECTION_NAME,
        embedding_function=embedding_function(),
        metadata={"hnsw:space": "cosine"},
    )


def index_question(question_key: str, topic: str, difficulty: str, text: str) -> None:
    get_collection().upsert(
        ids=[question_key],
        documents=[text],
        metadatas=[{"topic": topic, "topic_key": topic.strip().lower(), "difficulty": difficulty}],
    )


def query_question_keys(query: str, topic: Optional[str] = None, limit: int = 5) -> List[str]:
    """Question keys nearest to ``query``, closest first."""

    if not query.strip() or limit <= 0:
        return []
    collection = get_collection()
    total = collection.count()
    if total == 0:
        return []
    kwargs: dict[str, Any] = {"query_texts": [query], "n_results": min(int(limit), total)}
    if topic:
        kwargs["where"] = {"topic_key": topic.strip().lower()}
    result = collection.query(**kwargs)
    ids = result.get("ids") or [[]]
    return list(ids[0])


__all__ = [
    "COLLECTION_NAME",
    "embedding_function",
    "get_collection",
    "index_question",
    "query_question_keys",
    "set_embedding_function",
]
