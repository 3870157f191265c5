"""OpenTelemetry instrumentation for keygate.

Providers emit spans around backend calls through the OTEL API. Spans are
no-ops until ``setup_instrumentation`` installs an SDK tracer provider.
Disabled by default - enable via settings.otel.enabled=True.
"""

from keygate.otel.setup import setup_instrumentation

__all__ = ["setup_instrumentation"]
