"""Core types and DTOs for the AI Query Gateway."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProviderOutcome(str, Enum):
    """Outcome of the most recent call to a provider."""

    UNKNOWN = "unknown"  # Never called since registration
    SUCCESS = "success"
    FAILURE = "failure"


# ---------------------------------------------------------------------------
# Provider config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProviderConfig:
    """Identity and connection settings for one provider.

    Built once at startup and never mutated afterwards.
    """

    name: str  # Unique registry key, e.g. "openai"
    endpoint: str
    credential: str = ""  # Empty = registered but unusable
    default_model: str = ""
    request_timeout: float = 30.0  # Seconds
    default_max_tokens: int = 2000
    default_temperature: float = 0.7
    protocol: str = ""  # Wire protocol; empty = same as name

    @property
    def adapter_kind(self) -> str:
        return self.protocol or self.name

    @property
    def has_credential(self) -> bool:
        return bool(self.credential)

    def __repr__(self) -> str:
        # Never leak the credential into logs or tracebacks
        return (
            f"ProviderConfig(name={self.name!r}, endpoint={self.endpoint!r}, "
            f"credential={'***' if self.credential else ''!r}, default_model={self.default_model!r}, "
            f"request_timeout={self.request_timeout!r}, protocol={self.adapter_kind!r})"
        )


# ---------------------------------------------------------------------------
# Query request — input to the gateway
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QueryOptions:
    """Optional per-call overrides. ``None`` means the provider default."""

    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    timeout: float | None = None  # Seconds, replaces the provider's request_timeout


@dataclass(frozen=True)
class QueryRequest:
    """A single logical prompt to answer.

    ``target_providers`` empty means "all registered providers" for a fan-out.
    """

    prompt: str
    options: QueryOptions = field(default_factory=QueryOptions)
    target_providers: tuple[str, ...] = ()
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])


# ---------------------------------------------------------------------------
# Query result — unified DTO (output of the gateway)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QueryResult:
    """One provider's outcome for one request.

    Same structure regardless of which provider produced it.
    """

    provider: str
    success: bool
    content: str = ""  # Empty on failure
    error: str = ""  # Empty on success
    error_code: str = ""  # e.g. "timeout", "upstream_error"
    status_code: int = 0  # Vendor HTTP status for upstream errors
    latency_ms: int = 0
    attempts: int = 1
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict for storage/API."""
        return {
            "provider": self.provider,
            "success": self.success,
            "content": self.content,
            "error": self.error,
            "error_code": self.error_code,
            "status_code": self.status_code,
            "latency_ms": self.latency_ms,
            "attempts": self.attempts,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class AggregateResult:
    """Outcome of a fan-out.

    ``results`` follows the resolved provider order, not completion order.
    ``primary`` is the first successful result, or ``results[0]`` when none
    succeeded; check ``primary.success`` before using its content.
    """

    results: tuple[QueryResult, ...]
    primary: QueryResult

    @property
    def any_success(self) -> bool:
        return any(r.success for r in self.results)

    @property
    def successful(self) -> list[QueryResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[QueryResult]:
        return [r for r in self.results if not r.success]

    def get(self, provider: str) -> QueryResult | None:
        for r in self.results:
            if r.provider == provider:
                return r
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "primary": self.primary.to_dict(),
        }


# ---------------------------------------------------------------------------
# Provider health
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProviderHealth:
    """Point-in-time copy of one provider's health record."""

    name: str
    has_credential: bool
    endpoint: str = ""
    last_outcome: ProviderOutcome = ProviderOutcome.UNKNOWN
    last_checked_at: datetime | None = None
    last_error: str | None = None

    @property
    def usable(self) -> bool:
        return self.has_credential

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "has_credential": self.has_credential,
            "endpoint": self.endpoint,
            "last_outcome": self.last_outcome.value,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "last_error": self.last_error,
        }
