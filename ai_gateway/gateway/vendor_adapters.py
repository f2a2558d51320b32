"""Vendor-Specific Adapters — protocol-level handling for each LLM provider.

Each adapter translates a normalized (prompt, options) pair into the
vendor's HTTP protocol, sends exactly one POST, and returns the primary
text of the answer. Failures are raised as classified ProviderErrors;
retries are not the adapter's concern.

Vendor-specific behaviors:
  - OpenAI: Chat Completions, Bearer auth, text at choices[0].message.content
  - Anthropic: Messages API, x-api-key + anthropic-version, text at content[0].text
  - Google: generateContent, key in query string, text at
    candidates[0].content.parts[0].text
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from ai_gateway.gateway.errors import (
    EmptyPrompt,
    MalformedResponse,
    MissingCredential,
    TransportError,
    UpstreamError,
)
from ai_gateway.gateway.types import ProviderConfig, QueryOptions

logger = logging.getLogger(__name__)

# Vendor error bodies are truncated to this many characters
MAX_ERROR_BODY_CHARS = 500
# Raw body excerpt attached to MalformedResponse
MAX_SNIPPET_CHARS = 200

ANTHROPIC_VERSION = "2023-06-01"

# Seconds, for direct adapter calls without a resolved deadline
DEFAULT_TIMEOUT = 30.0


def _snippet(text: str, limit: int = MAX_SNIPPET_CHARS) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _vendor_message(resp: httpx.Response) -> str:
    """Best-effort error message from a non-2xx vendor response."""
    body = resp.text[:MAX_ERROR_BODY_CHARS]
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip()
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
    return body.strip()


class BaseProviderAdapter(ABC):
    """Base class for all provider adapters."""

    kind: str
    response_model: type[BaseModel]

    def __init__(self, config: ProviderConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    @property
    def name(self) -> str:
        return self.config.name

    async def complete(
        self,
        prompt: str,
        options: QueryOptions | None = None,
        timeout: float | None = None,
    ) -> str:
        """Send the prompt to the vendor and return the answer text verbatim.

        ``timeout`` is the deadline already resolved by the executor. Direct
        callers that omit it get the provider's own timeout, or
        DEFAULT_TIMEOUT when that is not positive.
        """
        if not self.config.has_credential:
            raise MissingCredential(self.name)
        if not prompt or not prompt.strip():
            raise EmptyPrompt()

        options = options or QueryOptions()
        model = options.model or self.config.default_model
        if not timeout or timeout <= 0:
            timeout = self.config.request_timeout if self.config.request_timeout > 0 else DEFAULT_TIMEOUT

        url, params, headers, payload = self.build_request(prompt, model, options)
        data = await self._post(url, payload=payload, headers=headers, params=params, timeout=timeout)
        return self.parse_response(data)

    @abstractmethod
    def build_request(
        self,
        prompt: str,
        model: str,
        options: QueryOptions,
    ) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        """Return (url, query params, headers, JSON body) for the vendor call."""
        ...

    @abstractmethod
    def extract_text(self, parsed: Any) -> str:
        """Pull the primary text out of the validated response model."""
        ...

    def parse_response(self, data: Any) -> str:
        """Validate the vendor body shape and return its primary text."""
        try:
            parsed = self.response_model.model_validate(data)
        except ValidationError as e:
            raise MalformedResponse(_snippet(json.dumps(data, ensure_ascii=False, default=str)), self.name) from e
        return self.extract_text(parsed)

    def _max_tokens(self, options: QueryOptions) -> int:
        return options.max_tokens if options.max_tokens is not None else self.config.default_max_tokens

    def _temperature(self, options: QueryOptions) -> float:
        return options.temperature if options.temperature is not None else self.config.default_temperature

    async def _post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        params: dict[str, str],
        timeout: float,
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.post(url, json=payload, headers=headers, params=params or None)
        except httpx.TransportError as e:
            raise TransportError(e, self.name) from e
        except httpx.DecodingError as e:
            # Body arrived but could not be decompressed or decoded
            raise MalformedResponse(_snippet(str(e)), self.name) from e
        except httpx.HTTPError as e:
            raise TransportError(e, self.name) from e

        if not resp.is_success:
            message = _vendor_message(resp)
            logger.debug("%s returned HTTP %d: %s", self.name, resp.status_code, message)
            raise UpstreamError(resp.status_code, message, self.name)

        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponse(_snippet(resp.text), self.name) from e


# ---------------------------------------------------------------------------
# OpenAI Adapter
# ---------------------------------------------------------------------------


class _OpenAIMessage(BaseModel):
    content: str


class _OpenAIChoice(BaseModel):
    message: _OpenAIMessage


class _OpenAIResponse(BaseModel):
    choices: list[_OpenAIChoice] = Field(min_length=1)


class OpenAIAdapter(BaseProviderAdapter):
    """OpenAI Chat Completions adapter."""

    kind = "openai"
    response_model = _OpenAIResponse

    def build_request(self, prompt, model, options):
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self._max_tokens(options),
            "temperature": self._temperature(options),
        }
        headers = {
            "Authorization": f"Bearer {self.config.credential}",
            "Content-Type": "application/json",
        }
        return self.config.endpoint, {}, headers, payload

    def extract_text(self, parsed: _OpenAIResponse) -> str:
        return parsed.choices[0].message.content


# ---------------------------------------------------------------------------
# Anthropic Adapter
# ---------------------------------------------------------------------------


class _AnthropicBlock(BaseModel):
    text: str


class _AnthropicResponse(BaseModel):
    content: list[_AnthropicBlock] = Field(min_length=1)


class AnthropicAdapter(BaseProviderAdapter):
    """Anthropic Messages API adapter."""

    kind = "anthropic"
    response_model = _AnthropicResponse

    def build_request(self, prompt, model, options):
        payload = {
            "model": model,
            "max_tokens": self._max_tokens(options),
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": self.config.credential,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }
        return self.config.endpoint, {}, headers, payload

    def extract_text(self, parsed: _AnthropicResponse) -> str:
        return parsed.content[0].text


# ---------------------------------------------------------------------------
# Google Adapter (Gemini generateContent)
# ---------------------------------------------------------------------------


class _GooglePart(BaseModel):
    text: str


class _GoogleContent(BaseModel):
    parts: list[_GooglePart] = Field(min_length=1)


class _GoogleCandidate(BaseModel):
    content: _GoogleContent


class _GoogleResponse(BaseModel):
    candidates: list[_GoogleCandidate] = Field(min_length=1)


class GoogleAdapter(BaseProviderAdapter):
    """Google Gemini adapter.

    The endpoint may contain a ``{model}`` placeholder, filled with the
    resolved model so per-call model overrides reach the URL.
    """

    kind = "google"
    response_model = _GoogleResponse

    def build_request(self, prompt, model, options):
        url = self.config.endpoint
        if "{model}" in url:
            url = url.format(model=model)
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._temperature(options),
                "maxOutputTokens": self._max_tokens(options),
            },
        }
        headers = {"Content-Type": "application/json"}
        return url, {"key": self.config.credential}, headers, payload

    def extract_text(self, parsed: _GoogleResponse) -> str:
        return parsed.candidates[0].content.parts[0].text


# ---------------------------------------------------------------------------
# Adapter registry
# ---------------------------------------------------------------------------

ADAPTER_REGISTRY: dict[str, type[BaseProviderAdapter]] = {
    OpenAIAdapter.kind: OpenAIAdapter,
    AnthropicAdapter.kind: AnthropicAdapter,
    GoogleAdapter.kind: GoogleAdapter,
}


def get_adapter(
    config: ProviderConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BaseProviderAdapter:
    """Factory: get the appropriate adapter for a provider config."""
    cls = ADAPTER_REGISTRY.get(config.adapter_kind)
    if cls is None:
        raise ValueError(f"No adapter registered for protocol: {config.adapter_kind}")
    return cls(config, transport=transport)
