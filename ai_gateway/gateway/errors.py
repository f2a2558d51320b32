"""Gateway error taxonomy.

Two families:
  - ProviderError: something went wrong talking to one provider. Recovered
    inside the executor and reported as a failed QueryResult.
  - Caller errors (UnknownProvider, NoProvidersRegistered, EmptyPrompt):
    misuse of the API, raised to the caller.
"""

from __future__ import annotations

import httpx


class GatewayError(Exception):
    """Base class for all gateway errors."""


# ---------------------------------------------------------------------------
# Per-provider errors
# ---------------------------------------------------------------------------


class ProviderError(GatewayError):
    """Raised by an adapter when a single provider call fails."""

    code = "provider_error"

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.provider = provider

    @property
    def classified_message(self) -> str:
        return f"{self.code}: {self}"


class MissingCredential(ProviderError):
    """Provider is registered but has no credential. Raised before any I/O."""

    code = "missing_credential"

    def __init__(self, provider: str = ""):
        super().__init__(f"No credential configured for {provider or 'provider'}", provider)

    @property
    def classified_message(self) -> str:
        return self.code


class TransportError(ProviderError):
    """DNS, connection or socket-level timeout failure."""

    code = "transport_error"

    def __init__(self, cause: BaseException, provider: str = ""):
        detail = str(cause)
        name = type(cause).__name__
        super().__init__(f"{name}: {detail}" if detail else name, provider)
        self.cause = cause

    @property
    def is_timeout(self) -> bool:
        return isinstance(self.cause, httpx.TimeoutException)


class UpstreamError(ProviderError):
    """Provider answered with a non-2xx HTTP status."""

    code = "upstream_error"

    def __init__(self, status_code: int, vendor_message: str = "", provider: str = ""):
        detail = f"HTTP {status_code}"
        if vendor_message:
            detail = f"{detail} - {vendor_message}"
        super().__init__(detail, provider)
        self.status_code = status_code
        self.vendor_message = vendor_message

    @property
    def is_transient(self) -> bool:
        return self.status_code == 429 or self.status_code >= 500


class MalformedResponse(ProviderError):
    """Provider answered 2xx but the body does not have the expected shape."""

    code = "malformed_response"

    def __init__(self, raw_snippet: str = "", provider: str = ""):
        super().__init__(f"Unexpected response body: {raw_snippet!r}", provider)
        self.raw_snippet = raw_snippet


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------


class UnknownProvider(GatewayError, KeyError):
    """Caller named a provider that was never registered."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown provider: {self.name!r}"


class NoProvidersRegistered(GatewayError):
    """A fan-out resolved to an empty provider list."""

    def __init__(self, message: str = "No providers to query"):
        super().__init__(message)


class EmptyPrompt(GatewayError, ValueError):
    """Prompt is empty or whitespace only."""

    def __init__(self, message: str = "Prompt must be a non-empty string"):
        super().__init__(message)
