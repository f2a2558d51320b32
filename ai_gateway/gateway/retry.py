"""Bounded retry layer around the Single-Query Executor.

Off by default (max_retries=0): one caller-visible query is one attempt.
When enabled, only transient failures are retried:
  - timeout / transport_error
  - upstream_error with HTTP 429 or 5xx

Backoff strategy:
  delay = min(base * 2^attempt + jitter, max_delay)
  jitter = random(0, base * 0.5)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import random
from dataclasses import dataclass

from ai_gateway.gateway.errors import MissingCredential, TransportError
from ai_gateway.gateway.executor import TIMEOUT_ERROR, QueryExecutor
from ai_gateway.gateway.types import QueryRequest, QueryResult

logger = logging.getLogger(__name__)

_TRANSIENT_CODES = frozenset({TIMEOUT_ERROR, TransportError.code})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters for a provider call."""

    max_retries: int = 0  # Attempts beyond the first
    base_delay: float = 1.0  # Base delay for exponential backoff (seconds)
    max_delay: float = 30.0  # Cap on retry delay

    @property
    def enabled(self) -> bool:
        return self.max_retries > 0


def calculate_backoff(attempt: int, base_delay: float = 1.0, max_delay: float = 30.0) -> float:
    """Calculate exponential backoff with jitter.

    Formula: min(base * 2^attempt + jitter, max_delay)
    Jitter: random(0, base * 0.5)
    """
    exponential = base_delay * (2**attempt)
    jitter = random.uniform(0, base_delay * 0.5)
    return min(exponential + jitter, max_delay)


def is_transient(result: QueryResult) -> bool:
    """Whether a failed result is worth another attempt."""
    if result.success or result.error_code == MissingCredential.code:
        return False
    if result.error_code in _TRANSIENT_CODES:
        return True
    return result.status_code == 429 or result.status_code >= 500


class RetryingExecutor:
    """Wraps a QueryExecutor with bounded exponential-backoff retries.

    Exposes the same ``execute`` coroutine, so the aggregator and the
    facade use either one interchangeably. Every attempt records its own
    outcome in the Health Registry through the wrapped executor.
    """

    def __init__(self, executor: QueryExecutor, policy: RetryPolicy):
        if policy.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.executor = executor
        self.policy = policy

    async def execute(self, name: str, request: QueryRequest) -> QueryResult:
        attempt = 0
        while True:
            result = await self.executor.execute(name, request)
            if attempt >= self.policy.max_retries or not is_transient(result):
                return dataclasses.replace(result, attempts=attempt + 1)

            delay = calculate_backoff(attempt, self.policy.base_delay, self.policy.max_delay)
            logger.info(
                "Retrying %s request %s (attempt %d/%d) in %.1fs",
                name,
                request.request_id,
                attempt + 1,
                self.policy.max_retries,
                delay,
                extra={"request_id": request.request_id, "provider": name, "attempt": attempt + 1},
            )
            await asyncio.sleep(delay)
            attempt += 1
