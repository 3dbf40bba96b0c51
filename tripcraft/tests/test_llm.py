from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List

import httpx
import pytest

from tripcraft.core import llm


def _completion(content: str) -> Dict[str, Any]:
    return {"choices": [{"message": {"content": content}}]}


def _client(responses: List[httpx.Response], calls: List[httpx.Request]) -> llm.LLMClient:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return responses.pop(0)

    return llm.LLMClient(
        model="test-model",
        api_key="sk-test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def test_llm_json_retries_forced_json() -> None:
    calls: List[httpx.Request] = []
    client = _client(
        [
            httpx.Response(200, json=_completion("not json")),
            httpx.Response(200, json=_completion(json.dumps({"foo": "bar"}))),
        ],
        calls,
    )

    result = asyncio.run(
        llm.llm_json(
            client,
            prompt="Give me data",
            system="You are helpful",
            stop=["###"],
            prompt_version="v1",
        )
    )

    assert result == {"foo": "bar"}
    assert len(calls) == 2
    payloads = [json.loads(call.content) for call in calls]
    assert "response_format" not in payloads[0]
    assert payloads[1]["response_format"] == {"type": "json_object"}
    assert all(payload["user"] == "v1" for payload in payloads)
    assert payloads[0]["stop"] == ["###"]
    assert payloads[0]["messages"][0] == {"role": "system", "content": "You are helpful"}


def test_llm_json_gives_up_after_one_reissue() -> None:
    calls: List[httpx.Request] = []
    client = _client(
        [
            httpx.Response(200, json=_completion("still not json")),
            httpx.Response(200, json=_completion("nope")),
        ],
        calls,
    )

    with pytest.raises(json.JSONDecodeError):
        asyncio.run(llm.llm_json(client, prompt="x", prompt_version="v1"))

    assert len(calls) == 2
    first, second = [json.loads(call.content) for call in calls]
    assert "response_format" not in first
    assert second["response_format"] == {"type": "json_object"}


def test_llm_json_without_json_mode_does_not_reissue() -> None:
    calls: List[httpx.Request] = []
    client = _client([httpx.Response(200, json=_completion("plain prose"))], calls)

    with pytest.raises(json.JSONDecodeError):
        asyncio.run(llm.llm_json(client, prompt="x", prompt_version="v1", json_mode=False))

    assert len(calls) == 1
    assert "response_format" not in json.loads(calls[0].content)


def test_llm_json_valid_first_reply_sends_one_plain_request() -> None:
    calls: List[httpx.Request] = []
    client = _client([httpx.Response(200, json=_completion(json.dumps({"ok": True})))], calls)

    assert asyncio.run(llm.llm_json(client, prompt="x", prompt_version="v1")) == {"ok": True}

    assert len(calls) == 1
    assert "response_format" not in json.loads(calls[0].content)


def test_chat_posts_to_chat_completions_with_bearer_key() -> None:
    calls: List[httpx.Request] = []
    client = _client([httpx.Response(200, json=_completion("{}"))], calls)

    asyncio.run(client.chat(prompt="hello", prompt_version="v2", model="other-model"))

    request = calls[0]
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    payload = json.loads(request.content)
    assert payload["model"] == "other-model"
    assert payload["temperature"] == 0.7
    assert "max_tokens" not in payload


def test_chat_raises_for_http_errors() -> None:
    client = _client([httpx.Response(401, json={"error": "Unauthorized"})], [])

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.chat(prompt="hello", prompt_version="v1"))


def test_extract_content_requires_choices() -> None:
    with pytest.raises(llm.LLMResponseError):
        llm.LLMClient.extract_content({"choices": []})
    with pytest.raises(llm.LLMResponseError):
        llm.LLMClient.extract_content({"choices": [{"message": {}}]})
