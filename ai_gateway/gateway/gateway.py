"""AI Query Gateway — caller-facing facade over all gateway components.

Main entry point for answering prompts with one or many providers:
  1. Validates the caller's input (prompt, provider names)
  2. Resolves aliases and the target provider list
  3. Dispatches via the (optionally retrying) Single-Query Executor
  4. Fans out concurrently and picks the primary result
  5. Exposes provider health for diagnostics

Upstream failures never raise out of query_one / query_many: they come
back as QueryResult(success=False). Only caller mistakes raise.

Usage:
    gateway = Gateway.from_settings()

    result = await gateway.query_one("openai", QueryRequest(prompt="hi"))
    aggregate = await gateway.query_many(QueryRequest(prompt="hi"))
    aggregate.primary.content
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Iterable, Mapping

import httpx

from ai_gateway.gateway.aggregator import FanOutAggregator
from ai_gateway.gateway.errors import EmptyPrompt, NoProvidersRegistered, UnknownProvider
from ai_gateway.gateway.executor import QueryExecutor
from ai_gateway.gateway.health import HealthRegistry
from ai_gateway.gateway.retry import RetryingExecutor, RetryPolicy
from ai_gateway.gateway.types import (
    AggregateResult,
    ProviderConfig,
    ProviderHealth,
    QueryRequest,
    QueryResult,
)
from ai_gateway.gateway.vendor_adapters import BaseProviderAdapter, get_adapter

if TYPE_CHECKING:
    from ai_gateway.core.config import Settings

logger = logging.getLogger(__name__)

# Alternate names callers use for the built-in providers
PROVIDER_ALIASES: dict[str, str] = {
    "claude": "anthropic",
    "gemini": "google",
}

PROBE_PROMPT = "Reply with exactly: OK"


class Gateway:
    """Main gateway facade.

    Integrates:
      - HealthRegistry: credential presence and last outcome per provider
      - QueryExecutor (+ RetryingExecutor): one bounded call per provider
      - FanOutAggregator: concurrent dispatch and primary selection
      - Provider adapters: vendor wire protocols
    """

    def __init__(
        self,
        registry: HealthRegistry,
        adapters: Mapping[str, BaseProviderAdapter],
        timeout: float,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            registry: Health registry holding every provider's config
            adapters: Adapter per registered provider name
            timeout: Default per-call timeout (seconds) for the executor
            retry_policy: Optional bounded retries around each provider call
            transport: httpx transport for adapters created by register_provider
        """
        missing = [name for name in registry.names() if name not in adapters]
        if missing:
            raise ValueError(f"No adapter for registered providers: {', '.join(missing)}")

        self.registry = registry
        self._adapters: dict[str, BaseProviderAdapter] = dict(adapters)
        self._transport = transport

        self.executor = QueryExecutor(registry, self._adapters, timeout=timeout)
        self.retry_policy = retry_policy or RetryPolicy()
        if self.retry_policy.enabled:
            self._runner = RetryingExecutor(self.executor, self.retry_policy)
        else:
            self._runner = self.executor
        self.aggregator = FanOutAggregator(self._runner)

    @classmethod
    def from_configs(
        cls,
        configs: Iterable[ProviderConfig],
        timeout: float,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Gateway:
        """Build registry and adapters from provider configs, in order."""
        registry = HealthRegistry()
        adapters: dict[str, BaseProviderAdapter] = {}
        for config in configs:
            adapters[config.name] = get_adapter(config, transport=transport)
            registry.register(config)
        return cls(registry, adapters, timeout=timeout, retry_policy=retry_policy, transport=transport)

    @classmethod
    def from_settings(
        cls,
        cfg: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Gateway:
        """Build the standard openai / anthropic / google gateway from settings."""
        from ai_gateway.core.config import build_provider_configs, settings, validate_gateway_settings

        cfg = cfg or settings
        validate_gateway_settings(cfg)
        policy = RetryPolicy(
            max_retries=cfg.gateway_max_retries,
            base_delay=cfg.gateway_retry_base_delay,
            max_delay=cfg.gateway_retry_max_delay,
        )
        return cls.from_configs(
            build_provider_configs(cfg),
            timeout=cfg.gateway_request_timeout,
            retry_policy=policy,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_provider(self, config: ProviderConfig, adapter: BaseProviderAdapter | None = None) -> None:
        """Register an extra provider after construction."""
        if config.name in self.registry:
            raise ValueError(f"Provider already registered: {config.name}")
        self._adapters[config.name] = adapter or get_adapter(config, transport=self._transport)
        self.registry.register(config)

    @property
    def providers(self) -> list[str]:
        """Registered provider names in registration order."""
        return self.registry.names()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query_one(self, provider: str, request: QueryRequest) -> QueryResult:
        """Ask a single provider. Raises UnknownProvider or EmptyPrompt."""
        name = self._resolve_name(provider)
        _check_prompt(request)
        return await self._runner.execute(name, request)

    async def query_many(
        self,
        request: QueryRequest,
        providers: Iterable[str] | None = None,
    ) -> AggregateResult:
        """Ask several providers concurrently.

        Provider list precedence: ``providers`` argument, then
        ``request.target_providers``, then every registered provider.
        """
        targets = self.resolve_providers(providers if providers is not None else request.target_providers)
        _check_prompt(request)
        return await self.aggregator.run(targets, request)

    async def probe_all(self) -> AggregateResult:
        """Send a tiny test prompt to every registered provider."""
        return await self.query_many(QueryRequest(prompt=PROBE_PROMPT))

    def resolve_providers(self, providers: Iterable[str] | None) -> list[str]:
        """Concrete, de-duplicated provider list; empty input means all registered."""
        requested = list(providers or [])
        names = [self._resolve_name(p) for p in requested] if requested else self.registry.names()

        resolved: list[str] = []
        for name in names:
            if name not in resolved:
                resolved.append(name)

        if not resolved:
            raise NoProvidersRegistered()
        return resolved

    def _resolve_name(self, provider: str) -> str:
        if provider in self.registry:
            return provider
        alias = PROVIDER_ALIASES.get(provider.lower()) if isinstance(provider, str) else None
        if alias and alias in self.registry:
            return alias
        raise UnknownProvider(provider)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def health(self) -> Mapping[str, ProviderHealth]:
        """Read-only snapshot of every provider's health. No I/O."""
        return self.registry.snapshot()

    def health_status(self) -> dict[str, Any]:
        """JSON-ready health document for health-check endpoints."""
        snapshot = self.health()
        return {
            "healthy": {name: h.has_credential for name, h in snapshot.items()},
            "providers": [h.to_dict() for h in snapshot.values()],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


def _check_prompt(request: QueryRequest) -> None:
    if not isinstance(request.prompt, str) or not request.prompt.strip():
        raise EmptyPrompt()
