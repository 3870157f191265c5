"""Shared fixtures for provider tests."""

import pytest
from prometheus_client import CollectorRegistry

from fakes import FakeGoogle
from keygate.metrics import PrometheusAuthMetrics


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return PrometheusAuthMetrics(registry=registry)


@pytest.fixture
def google_backend():
    return FakeGoogle()
