import asyncio
import json
import time

import httpx
import pytest

from chatapp.services.completion import CompletionError, CompletionProvider


def completion_body(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def make_provider(handler, **kwargs):
    options = {
        "api_key": "cf-token",
        "base_url": "https://ai.example.test/v1",
        "model": "test-model",
        "timeout": 1.0,
    }
    options.update(kwargs)
    return CompletionProvider(transport=httpx.MockTransport(handler), **options)


def test_complete_sends_user_prompt_and_returns_first_choice():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion_body("Hello there"))

    provider = make_provider(handler)

    assert provider.complete("Say hello", max_tokens=20) == "Hello there"
    assert seen["url"] == "https://ai.example.test/v1/chat/completions"
    assert seen["auth"] == "Bearer cf-token"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["messages"] == [{"role": "user", "content": "Say hello"}]
    assert seen["body"]["max_tokens"] == 20


def test_non_success_status_raises_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"error": "upstream exploded"})

    with pytest.raises(CompletionError):
        make_provider(handler).complete("hi")
    assert len(calls) == 1


def test_timeout_raises_completion_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(CompletionError, match="timed out"):
        make_provider(handler).complete("hi")


@pytest.mark.parametrize(
    "payload",
    [
        {"choices": []},
        completion_body(None),
        completion_body("   "),
    ],
)
def test_malformed_or_blank_payload_raises(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    with pytest.raises(CompletionError):
        make_provider(handler).complete("hi")


def test_missing_credentials_raise_before_any_request():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(CompletionError, match="credentials"):
        make_provider(handler, api_key="").complete("hi")


def test_stalled_provider_is_cut_off_at_the_deadline():
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json=completion_body("too late"))

    provider = make_provider(handler, timeout=0.2)

    started = time.monotonic()
    with pytest.raises(CompletionError, match="timed out"):
        provider.complete("hi")
    assert time.monotonic() - started < 2


def test_trickling_response_body_counts_against_the_deadline():
    payload = json.dumps(completion_body("slow reply")).encode()

    async def trickle():
        for start in range(0, len(payload), 20):
            await asyncio.sleep(0.1)
            yield payload[start:start + 20]

    def handler(request):
        return httpx.Response(
            200, headers={"Content-Type": "application/json"}, content=trickle()
        )

    provider = make_provider(handler, timeout=0.3)

    started = time.monotonic()
    with pytest.raises(CompletionError, match="timed out"):
        provider.complete("hi")
    assert time.monotonic() - started < 2
