from __future__ import annotations

import asyncio
import json
from typing import Callable

import httpx
import pytest

from chatmate.completion import CompletionClient, CompletionConfig, build_request_body
from chatmate.errors import ConfigError, EmptyCompletionError, UpstreamError

BASE_URL = "https://llm.test/v1"


def _client(handler: Callable[[httpx.Request], httpx.Response], **overrides: object) -> CompletionClient:
    config = CompletionConfig(api_key="sk-test", base_url=BASE_URL, **overrides)
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return CompletionClient(config, http_client=http_client)


def _choices(*contents: object) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}} for content in contents]}


def test_request_shape_and_first_choice() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_choices("  first answer \n", "second answer"))

    client = _client(handler)
    assert asyncio.run(client.complete("be nice", "hello")) == "first answer"

    (request,) = seen
    assert request.method == "POST"
    assert str(request.url) == f"{BASE_URL}/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body == {
        "model": "gpt-4o-mini",
        "temperature": 1.1,
        "max_tokens": 250,
        "presence_penalty": 0.6,
        "frequency_penalty": 0.2,
        "messages": [
            {"role": "system", "content": "be nice"},
            {"role": "user", "content": "hello"},
        ],
    }


def test_request_uses_configured_parameters() -> None:
    config = CompletionConfig(api_key="k", model="m-1", temperature=0.2, max_tokens=10, presence_penalty=0, frequency_penalty=1)
    body = build_request_body(config, "s", "u")
    assert (body["model"], body["temperature"], body["max_tokens"]) == ("m-1", 0.2, 10)
    assert (body["presence_penalty"], body["frequency_penalty"]) == (0, 1)
    assert [m["role"] for m in body["messages"]] == ["system", "user"]


def test_missing_credential_is_config_error() -> None:
    with pytest.raises(ConfigError):
        CompletionClient(CompletionConfig(api_key=""))


def test_non_success_status_is_upstream_error() -> None:
    client = _client(lambda request: httpx.Response(429, text='{"error": "rate limited"}'))

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.complete("s", "u"))
    assert excinfo.value.status_code == 429
    assert excinfo.value.body == '{"error": "rate limited"}'


def test_transport_failure_is_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(_client(handler).complete("s", "u"))
    assert excinfo.value.status_code == 0


@pytest.mark.parametrize(
    "payload",
    [
        _choices("   "),
        _choices(None),
        {"choices": []},
        {"choices": [{"message": {}}]},
        {},
    ],
)
def test_empty_completion(payload: dict[str, object]) -> None:
    client = _client(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(EmptyCompletionError):
        asyncio.run(client.complete("s", "u"))


def test_non_json_body_is_empty_completion() -> None:
    client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(EmptyCompletionError):
        asyncio.run(client.complete("s", "u"))
