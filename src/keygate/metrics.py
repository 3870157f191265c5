"""Authentication counters.

Providers report successful exchanges and validations through an
``AuthMetrics`` sink. The default sink writes Prometheus counters labelled by
provider name; exporting them is up to the hosting server.
"""

from typing import Protocol

from loguru import logger
from prometheus_client import REGISTRY, CollectorRegistry, Counter

from keygate.settings import settings


class AuthMetrics(Protocol):
    """Metrics sink consumed by providers."""

    def increment_valid(self, provider: str) -> None: ...

    def increment_exchange(self, provider: str) -> None: ...


class PrometheusAuthMetrics:
    """Prometheus backed sink. Counter increments are thread-safe."""

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        namespace: str = "keygate",
    ):
        self.registry = registry if registry is not None else REGISTRY
        self.auth_valid = Counter(
            "auth_valid",
            "Tokens that passed full validation",
            ["provider"],
            namespace=namespace,
            registry=self.registry,
        )
        self.auth_exchange = Counter(
            "auth_exchange",
            "Authorization codes exchanged for tokens",
            ["provider"],
            namespace=namespace,
            registry=self.registry,
        )

    def increment_valid(self, provider: str) -> None:
        self.auth_valid.labels(provider=provider).inc()

    def increment_exchange(self, provider: str) -> None:
        self.auth_exchange.labels(provider=provider).inc()


class NullAuthMetrics:
    """Sink that records nothing."""

    def increment_valid(self, provider: str) -> None:
        pass

    def increment_exchange(self, provider: str) -> None:
        pass


# Global sink (lazy-initialized)
_metrics_instance: AuthMetrics | None = None


def get_metrics() -> AuthMetrics:
    """Get or create the process-wide metrics sink.

    Counters can only be registered once per registry, so the default
    Prometheus sink is created on first use and shared afterwards.
    """
    global _metrics_instance

    if _metrics_instance is None:
        if settings.metrics.enabled:
            _metrics_instance = PrometheusAuthMetrics(namespace=settings.metrics.namespace)
            logger.debug("Registered Prometheus auth counters")
        else:
            _metrics_instance = NullAuthMetrics()
            logger.info("Auth metrics disabled")

    return _metrics_instance
