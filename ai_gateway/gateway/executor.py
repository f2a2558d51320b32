"""Single-Query Executor — one provider, one attempt, bounded in time.

Flow for execute(name, request):
  1. Health Registry says unusable → "missing_credential", no network I/O
  2. Adapter call wrapped in asyncio.wait_for(timeout)
       - deadline hit → in-flight call is cancelled, "timeout"
       - ProviderError → "<code>: <detail>"
       - any other exception → "internal_error: <detail>"
  3. Exactly one record_outcome() on the registry, success or failure

Caller cancellation (asyncio.CancelledError) is not an outcome: it
propagates untouched and nothing is recorded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Mapping

from ai_gateway.gateway.errors import (
    EmptyPrompt,
    MissingCredential,
    ProviderError,
    TransportError,
    UnknownProvider,
    UpstreamError,
)
from ai_gateway.gateway.health import HealthRegistry
from ai_gateway.gateway.types import QueryRequest, QueryResult
from ai_gateway.gateway.vendor_adapters import BaseProviderAdapter

logger = logging.getLogger(__name__)

TIMEOUT_ERROR = "timeout"
INTERNAL_ERROR = "internal_error"


class QueryExecutor:
    """Runs exactly one adapter call and reports the outcome.

    ``timeout`` is mandatory: it bounds every call whose provider config
    does not define a positive ``request_timeout`` of its own.
    """

    def __init__(
        self,
        registry: HealthRegistry,
        adapters: Mapping[str, BaseProviderAdapter],
        timeout: float,
    ):
        if timeout is None or timeout <= 0:
            raise ValueError("Executor timeout must be a positive number of seconds")
        self.registry = registry
        self.adapters = adapters
        self.timeout = timeout

    def timeout_for(self, name: str, request: QueryRequest) -> float:
        """Effective deadline: per-call override, then provider config, then executor default."""
        if request.options.timeout and request.options.timeout > 0:
            return request.options.timeout
        config_timeout = self.registry.config(name).request_timeout
        return config_timeout if config_timeout and config_timeout > 0 else self.timeout

    async def execute(self, name: str, request: QueryRequest) -> QueryResult:
        if name not in self.registry:
            raise UnknownProvider(name)
        log_extra = {"request_id": request.request_id, "provider": name}

        if not self.registry.is_usable(name):
            error = MissingCredential(name).classified_message
            self.registry.record_outcome(name, success=False, error=error)
            logger.info("Skipping %s: no credential configured", name, extra={**log_extra, "outcome": error})
            return QueryResult(provider=name, success=False, error=error, error_code=error)

        adapter = self.adapters[name]
        timeout = self.timeout_for(name, request)
        start = time.monotonic()

        try:
            content = await asyncio.wait_for(
                adapter.complete(request.prompt, request.options, timeout=timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            result = self._failure(name, TIMEOUT_ERROR, TIMEOUT_ERROR, start)
        except TransportError as e:
            if e.is_timeout:
                result = self._failure(name, TIMEOUT_ERROR, TIMEOUT_ERROR, start)
            else:
                result = self._failure(name, e.classified_message, e.code, start)
        except UpstreamError as e:
            result = self._failure(name, e.classified_message, e.code, start, status_code=e.status_code)
        except ProviderError as e:
            result = self._failure(name, e.classified_message, e.code, start)
        except EmptyPrompt:
            raise
        except Exception as e:
            logger.exception("Unexpected error from %s adapter", name, extra={**log_extra, "outcome": INTERNAL_ERROR})
            result = self._failure(name, f"{INTERNAL_ERROR}: {type(e).__name__}: {e}", INTERNAL_ERROR, start)
        else:
            result = QueryResult(
                provider=name,
                success=True,
                content=content,
                latency_ms=_elapsed_ms(start),
            )

        self.registry.record_outcome(name, success=result.success, error=result.error)

        if result.success:
            logger.info(
                "%s answered request %s in %dms",
                name,
                request.request_id,
                result.latency_ms,
                extra={**log_extra, "latency_ms": result.latency_ms, "outcome": "success"},
            )
        else:
            logger.warning(
                "%s failed request %s after %dms: %s",
                name,
                request.request_id,
                result.latency_ms,
                result.error,
                extra={**log_extra, "latency_ms": result.latency_ms, "outcome": result.error_code},
            )
        return result

    @staticmethod
    def _failure(name: str, error: str, code: str, start: float, status_code: int = 0) -> QueryResult:
        return QueryResult(
            provider=name,
            success=False,
            error=error,
            error_code=code,
            status_code=status_code,
            latency_ms=_elapsed_ms(start),
        )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
