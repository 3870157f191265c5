"""Test auth counters."""

from concurrent.futures import ThreadPoolExecutor

from prometheus_client import CollectorRegistry

from keygate.metrics import NullAuthMetrics, PrometheusAuthMetrics


def test_counters_are_labelled_by_provider():
    """Test that counters are kept per provider label."""
    registry = CollectorRegistry()
    metrics = PrometheusAuthMetrics(registry=registry)

    metrics.increment_valid("google")
    metrics.increment_valid("google")
    metrics.increment_exchange("github")

    assert registry.get_sample_value("keygate_auth_valid_total", {"provider": "google"}) == 2
    assert registry.get_sample_value("keygate_auth_exchange_total", {"provider": "github"}) == 1
    assert registry.get_sample_value("keygate_auth_valid_total", {"provider": "github"}) is None


def test_concurrent_increments():
    """Test that concurrent increments are not lost."""
    registry = CollectorRegistry()
    metrics = PrometheusAuthMetrics(registry=registry)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda _: metrics.increment_exchange("gitlab"), range(1000)))

    assert registry.get_sample_value("keygate_auth_exchange_total", {"provider": "gitlab"}) == 1000


def test_custom_namespace():
    """Test that the metric namespace is configurable."""
    registry = CollectorRegistry()
    PrometheusAuthMetrics(registry=registry, namespace="ca").increment_valid("oidc")

    assert registry.get_sample_value("ca_auth_valid_total", {"provider": "oidc"}) == 1


def test_null_metrics_accepts_calls():
    """Test that the null sink accepts increments."""
    metrics = NullAuthMetrics()
    metrics.increment_valid("google")
    metrics.increment_exchange("google")
