"""Health Registry — single source of truth for "can provider X be used".

Per provider it keeps:
  - has_credential: computed once at registration
  - last_outcome / last_checked_at / last_error: updated after every call

Only credential presence gates usability. A provider whose last call failed
is still tried on the next request; failures are treated as transient.

Each record has its own lock, so concurrent executors updating different
providers never contend, and a reader never sees a half-written record.
The locks are threading.Lock rather than asyncio.Lock: record_outcome and
snapshot are plain methods that hosts may call from worker threads as well
as from the event loop, and no lock is ever held across an await.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping

from ai_gateway.gateway.types import ProviderConfig, ProviderHealth, ProviderOutcome

logger = logging.getLogger(__name__)


@dataclass
class _HealthRecord:
    """Mutable health state for a single provider."""

    config: ProviderConfig
    has_credential: bool
    last_outcome: ProviderOutcome = ProviderOutcome.UNKNOWN
    last_checked_at: datetime | None = None
    last_error: str | None = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def to_health(self) -> ProviderHealth:
        return ProviderHealth(
            name=self.config.name,
            has_credential=self.has_credential,
            endpoint=self.config.endpoint,
            last_outcome=self.last_outcome,
            last_checked_at=self.last_checked_at,
            last_error=self.last_error,
        )


class HealthRegistry:
    """Per-provider health tracking.

    Usage:
        registry = HealthRegistry()
        registry.register(config)

        if registry.is_usable("openai"):
            ...
        registry.record_outcome("openai", success=False, error="timeout")

        registry.snapshot()["openai"].last_outcome  # ProviderOutcome.FAILURE
    """

    def __init__(self, configs: list[ProviderConfig] | None = None):
        self._records: dict[str, _HealthRecord] = {}
        self._registry_lock = threading.Lock()
        for config in configs or []:
            self.register(config)

    def register(self, config: ProviderConfig) -> None:
        """Add a provider. Raises ValueError if the name is already taken."""
        with self._registry_lock:
            if config.name in self._records:
                raise ValueError(f"Provider already registered: {config.name}")
            self._records[config.name] = _HealthRecord(config=config, has_credential=config.has_credential)

        logger.info(
            "Registered provider %s (credential %s)",
            config.name,
            "present" if config.has_credential else "missing",
            extra={"provider": config.name},
        )

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def names(self) -> list[str]:
        """Registered provider names in registration order."""
        with self._registry_lock:
            return list(self._records)

    def config(self, name: str) -> ProviderConfig:
        """Return the provider's config. Raises KeyError if not registered."""
        return self._records[name].config

    def is_usable(self, name: str) -> bool:
        """True iff the provider is registered and has a credential."""
        record = self._records.get(name)
        return record is not None and record.has_credential

    def record_outcome(self, name: str, success: bool, error: str = "") -> None:
        """Store the outcome of the latest call to a provider."""
        record = self._records.get(name)
        if record is None:
            raise KeyError(name)

        with record.lock:
            record.last_outcome = ProviderOutcome.SUCCESS if success else ProviderOutcome.FAILURE
            record.last_checked_at = datetime.now(timezone.utc)
            record.last_error = None if success else (error or "unknown error")

    def get(self, name: str) -> ProviderHealth:
        """Consistent copy of one provider's health. Raises KeyError."""
        record = self._records[name]
        with record.lock:
            return record.to_health()

    def snapshot(self) -> Mapping[str, ProviderHealth]:
        """Read-only copy of every provider's health, in registration order."""
        with self._registry_lock:
            records = list(self._records.values())

        copies: dict[str, ProviderHealth] = {}
        for record in records:
            with record.lock:
                copies[record.config.name] = record.to_health()
        return MappingProxyType(copies)
