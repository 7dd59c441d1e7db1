from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List

import pytest
from pydantic import BaseModel

from agents.llm_models import QUESTION_PROMPT, make_model
from config import LlmRoute
from llm_gateway import LlmGatewayError, call, chat, prompt_messages


class Answer(BaseModel):
    value: int


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self) -> Any:
        return self._payload


class FakeClient:
    def __init__(self, contents: List[str], status_code: int = 200) -> None:
        self.contents = list(contents)
        self.status_code = status_code
        self.requests: List[Dict[str, Any]] = []

    async def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> FakeResponse:
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        content = self.contents.pop(0)
        return FakeResponse({"choices": [{"message": {"content": content}}]}, self.status_code)


def _route(**overrides: Any) -> LlmRoute:
    values = {"name": "test", "base_url": "http://example.com", "model": "demo", "max_retries": 1}
    values.update(overrides)
    return LlmRoute(**values)


def test_call_parses_schema_and_sets_headers(monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "secret")
    client = FakeClient(['{"value": 3}'])
    result = asyncio.run(call("hi", Answer, cfg=_route(api_key_env="TEST_LLM_KEY"), client=client))
    assert result.value == 3
    request = client.requests[0]
    assert request["url"] == "http://example.com/chat/completions"
    assert request["headers"]["Authorization"] == "Bearer secret"
    assert request["json"]["messages"][0]["role"] == "system"


def test_code_fences_are_stripped():
    client = FakeClient(['```json\n{"value": 5}\n```'])
    assert asyncio.run(call("hi", Answer, cfg=_route(), client=client)).value == 5


def test_invalid_output_is_retried_with_hint():
    client = FakeClient(['{"value": "nope"}', '{"value": 7}'])
    result = asyncio.run(chat([{"role": "user", "content": "hi"}], Answer, cfg=_route(), client=client))
    assert result.value == 7
    retry_messages = client.requests[1]["json"]["messages"]
    assert "failed validation" in retry_messages[-1]["content"]


def test_retries_exhausted_raise():
    client = FakeClient(['{"value": "x"}', '{"value": "y"}'])
    with pytest.raises(LlmGatewayError):
        asyncio.run(call("hi", Answer, cfg=_route(), client=client))


def test_error_status_raises():
    client = FakeClient(['{"value": 1}'], status_code=503)
    with pytest.raises(LlmGatewayError):
        asyncio.run(call("hi", Answer, cfg=_route(), client=client))


def test_prompt_messages_render_roles():
    messages = prompt_messages(
        QUESTION_PROMPT, topic="React", difficulty="beginner", skill_rating=3, previous_tags="none"
    )
    assert [m["role"] for m in messages] == ["system", "user"]
    assert "beginner level interview question for React" in messages[1]["content"]


def test_make_model_returns_plain_payload(monkeypatch):
    route = _route()
    client = FakeClient(['{"question": "Explain JSX.", "difficulty": "beginner", "type": "textual"}'])

    async def fake_chat(messages, schema, *, cfg):
        return await chat(messages, schema, cfg=cfg, client=client)

    monkeypatch.setattr("agents.llm_models.chat", fake_chat)
    from agents.types import GeneratedQuestion

    model = make_model(route, GeneratedQuestion, QUESTION_PROMPT)
    payload = asyncio.run(
        model(inputs={"topic": "React", "difficulty": "beginner", "skill_rating": 3, "previous_tags": "none"})
    )
    assert payload["question"] == "Explain JSX."
    assert payload["type"] == "textual"
