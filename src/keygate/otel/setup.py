"""OpenTelemetry setup."""

from loguru import logger
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from keygate.settings import OTELSettings, settings

# Track if we've already set up instrumentation
_instrumentation_setup = False


def setup_instrumentation(
    otel_settings: OTELSettings | None = None,
    processor: SpanProcessor | None = None,
) -> bool:
    """Install a tracer provider exporting spans over OTLP.

    Idempotent: calls after a successful setup are no-ops.

    Args:
        otel_settings: OTEL settings (defaults to settings.otel)
        processor: Span processor to use instead of the OTLP exporter

    Returns:
        True if instrumentation is active after the call
    """
    global _instrumentation_setup

    otel_settings = otel_settings or settings.otel
    if not otel_settings.enabled:
        logger.debug("OTEL instrumentation disabled")
        return False

    if _instrumentation_setup:
        logger.debug("OTEL instrumentation already configured")
        return True

    try:
        if processor is None:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

            # Uses OTEL_EXPORTER_OTLP_ENDPOINT
            processor = BatchSpanProcessor(OTLPSpanExporter())

        resource = Resource.create({"service.name": otel_settings.service_name})
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(processor)
        trace.set_tracer_provider(tracer_provider)

        _instrumentation_setup = True
        logger.success(f"OTEL instrumentation configured for {otel_settings.service_name}")
        return True

    except Exception as e:
        logger.error(f"Failed to setup OTEL instrumentation: {e}")
        raise RuntimeError(
            "OTEL instrumentation setup failed. "
            "Check configuration or disable with OTEL__ENABLED=false"
        ) from e
