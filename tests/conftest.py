import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import hashlib
import re

import numpy as np
from chromadb import Documents, EmbeddingFunction, Embeddings
from chromadb.api.client import SharedSystemClient

from storage.migrate import migrate
from storage.question_index import set_embedding_function
from config.settings import settings
from config.registry import ADAPTIVE_QUESTION_KEY, EVAL_KEY, QUESTION_KEY, bind_model, unbind_model


class KeywordEmbedding(EmbeddingFunction[Documents]):
    """Offline embedder: hashed bag of words plus a constant bias component."""

    dims = 256

    def __call__(self, input: Documents) -> Embeddings:
        vectors = []
        for text in input:
            vector = np.zeros(self.dims, dtype=np.float32)
            vector[0] = 0.5
            for word in re.findall(r"[a-z0-9+#]+", text.lower()):
                digest = hashlib.md5(word.encode("utf-8")).digest()
                vector[1 + digest[0] % (self.dims - 1)] += 1.0
            vectors.append(vector / np.linalg.norm(vector))
        return vectors


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "CHROMA_PATH", os.path.join(td.name, "chroma"), raising=False)
    migrate(db_path)
    set_embedding_function(KeywordEmbedding())
    try:
        yield db_path
    finally:
        set_embedding_function(None)
        SharedSystemClient.clear_system_cache()
        td.cleanup()


@pytest.fixture(autouse=True)
def clean_registry():
    yield
    for key in (QUESTION_KEY, ADAPTIVE_QUESTION_KEY, EVAL_KEY):
        unbind_model(key)


class ScoreQueue:
    """Evaluation stub returning queued scores, then a constant 80."""

    def __init__(self, scores=()):
        self.scores = list(scores)
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs["inputs"])
        score = self.scores.pop(0) if self.scores else 80
        return {
            "score": score,
            "feedback": f"scored {score}",
            "strengths": ["clear"],
            "improvements": [],
        }


class QuestionStub:
    """Question generator stub recording the inputs it was called with."""

    def __init__(self, label="initial"):
        self.label = label
        self.calls = []

    def __call__(self, **kwargs):
        inputs = kwargs["inputs"]
        self.calls.append(inputs)
        topic = inputs["topic"]
        return {
            "question": f"{self.label} question {len(self.calls)} about {topic}",
            "expected_answer": f"key points for {topic}",
            "difficulty": inputs.get("difficulty") or inputs.get("current_difficulty"),
            "tags": [topic.lower(), f"{self.label}-{len(self.calls)}"],
            "type": "textual",
        }


@pytest.fixture
def fake_models():
    models = {
        "question": QuestionStub("initial"),
        "adaptive": QuestionStub("adaptive"),
        "eval": ScoreQueue(),
    }
    bind_model(QUESTION_KEY, models["question"])
    bind_model(ADAPTIVE_QUESTION_KEY, models["adaptive"])
    bind_model(EVAL_KEY, models["eval"])
    return models
