import asyncio

import httpx
import pytest

from ai_gateway.gateway.types import ProviderConfig

OPENAI_URL = "https://api.openai.test/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.test/v1/messages"
GOOGLE_URL = "https://generativelanguage.googleapis.test/v1beta/models/{model}:generateContent"


def openai_body(text: str = "Hello from OpenAI") -> dict:
    return {
        "id": "chatcmpl-1",
        "model": "gpt-4o-mini",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": text}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 5, "completion_tokens": 7},
    }


def anthropic_body(text: str = "Hello from Claude") -> dict:
    return {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
    }


def google_body(text: str = "Hello from Gemini") -> dict:
    return {
        "candidates": [{"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": "STOP"}],
        "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 4, "totalTokenCount": 7},
    }


class RecordingTransport(httpx.MockTransport):
    """MockTransport that routes by host and remembers every request."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requests: list[httpx.Request] = []
        super().__init__(self._dispatch)

    async def _dispatch(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes[request.url.host]
        result = handler(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]


def respond(status_code: int = 200, json_data=None, text: str = "", delay: float = 0.0):
    """Build a route handler returning a fixed response, optionally after a delay."""

    async def handler(request: httpx.Request) -> httpx.Response:
        if delay:
            await asyncio.sleep(delay)
        if json_data is not None:
            return httpx.Response(status_code, json=json_data)
        return httpx.Response(status_code, text=text)

    return handler


def corrupt_gzip(request: httpx.Request) -> httpx.Response:
    """A 200 that claims gzip encoding but whose body is not gzip."""
    return httpx.Response(200, headers={"content-encoding": "gzip"}, content=b"not-gzip")


@pytest.fixture
def openai_config():
    return ProviderConfig(
        name="openai",
        endpoint=OPENAI_URL,
        credential="sk-test",
        default_model="gpt-4o-mini",
        request_timeout=2.0,
    )


@pytest.fixture
def anthropic_config():
    return ProviderConfig(
        name="anthropic",
        endpoint=ANTHROPIC_URL,
        credential="ant-test",
        default_model="claude-3-5-sonnet-20241022",
        request_timeout=2.0,
    )


@pytest.fixture
def google_config():
    return ProviderConfig(
        name="google",
        endpoint=GOOGLE_URL,
        credential="g-test",
        default_model="gemini-1.5-flash-latest",
        request_timeout=2.0,
    )
