import asyncio
import json

import httpx
import pytest

from asap_agent.exceptions import ExternalAPIError
from asap_agent.upstream import UpstreamClient

URL = "https://api.example.test/v1/chat/completions"


def make_client(handler, api_key="sk-test"):
    return UpstreamClient(URL, api_key, "deepseek-chat", timeout=5, transport=httpx.MockTransport(handler))


def completion(text):
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def test_complete_sends_bearer_payload_and_returns_text():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion("Gate B12."))

    client = make_client(handler)
    messages = [{"role": "system", "content": "s"}, {"role": "user", "content": "gate?"}]
    text = asyncio.run(client.complete(messages, temperature=0.2, max_tokens=50))

    assert text == "Gate B12."
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"] == {
        "model": "deepseek-chat",
        "messages": messages,
        "temperature": 0.2,
        "max_tokens": 50,
    }


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(401, json={"error": "bad key"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"message": {"content": None}}]}),
    ],
)
def test_complete_failures_raise_external_api_error(response):
    client = make_client(lambda request: response)
    with pytest.raises(ExternalAPIError):
        asyncio.run(client.complete([{"role": "user", "content": "x"}]))


def test_status_code_is_kept_on_error():
    client = make_client(lambda request: httpx.Response(503))
    with pytest.raises(ExternalAPIError) as exc_info:
        asyncio.run(client.complete([{"role": "user", "content": "x"}]))
    assert exc_info.value.status_code == 503


def test_network_error_and_timeout_raise_external_api_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    for handler in (refuse, slow):
        with pytest.raises(ExternalAPIError):
            asyncio.run(make_client(handler).complete([{"role": "user", "content": "x"}]))


def test_missing_api_key_fails_without_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=completion("x"))

    with pytest.raises(ExternalAPIError) as exc_info:
        asyncio.run(make_client(handler, api_key="").complete([{"role": "user", "content": "x"}]))
    assert calls == []
    assert exc_info.value.status_code is None


def test_forward_returns_raw_body_with_configured_model():
    seen = {}
    body = {"id": "cmpl-1", **completion("hello"), "usage": {"total_tokens": 3}}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=body)

    data = asyncio.run(make_client(handler).forward([{"role": "user", "content": "hi"}]))
    assert data == body
    assert seen["body"] == {"model": "deepseek-chat", "messages": [{"role": "user", "content": "hi"}]}
