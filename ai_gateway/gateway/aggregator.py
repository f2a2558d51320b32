"""Fan-out Aggregator — same request, many providers, one ordered answer set.

Every target provider gets its own concurrent executor call. Results are
slotted by the provider's index in the target list, so the output order
never depends on which provider answers first. One provider's failure,
even an unexpected exception, never aborts its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from ai_gateway.gateway.errors import NoProvidersRegistered
from ai_gateway.gateway.executor import INTERNAL_ERROR
from ai_gateway.gateway.types import AggregateResult, QueryRequest, QueryResult

logger = logging.getLogger(__name__)


class Executor(Protocol):
    async def execute(self, name: str, request: QueryRequest) -> QueryResult: ...


def select_primary(results: Sequence[QueryResult]) -> QueryResult:
    """First successful result in list order, else the first result."""
    if not results:
        raise NoProvidersRegistered()
    for result in results:
        if result.success:
            return result
    return results[0]


class FanOutAggregator:
    """Concurrent dispatch of one request to several providers."""

    def __init__(self, executor: Executor):
        self.executor = executor

    async def run(self, providers: Sequence[str], request: QueryRequest) -> AggregateResult:
        """Query every provider concurrently and wait for all of them to settle.

        ``providers`` must already be resolved: non-empty and de-duplicated.
        """
        if not providers:
            raise NoProvidersRegistered()

        settled = await asyncio.gather(
            *(self.executor.execute(name, request) for name in providers),
            return_exceptions=True,
        )

        results: list[QueryResult] = []
        for name, outcome in zip(providers, settled):
            if isinstance(outcome, QueryResult):
                results.append(outcome)
            elif isinstance(outcome, Exception):
                logger.error(
                    "Unexpected error querying %s for request %s",
                    name,
                    request.request_id,
                    exc_info=outcome,
                    extra={"request_id": request.request_id, "provider": name, "outcome": INTERNAL_ERROR},
                )
                results.append(
                    QueryResult(
                        provider=name,
                        success=False,
                        error=f"{INTERNAL_ERROR}: {outcome}",
                        error_code=INTERNAL_ERROR,
                    )
                )
            else:
                # CancelledError and other BaseExceptions are not provider outcomes
                raise outcome

        primary = select_primary(results)
        logger.info(
            "Fan-out %s: %d/%d providers succeeded, primary=%s",
            request.request_id,
            sum(1 for r in results if r.success),
            len(results),
            primary.provider,
            extra={"request_id": request.request_id, "outcome": "success" if primary.success else "failure"},
        )
        return AggregateResult(results=tuple(results), primary=primary)
