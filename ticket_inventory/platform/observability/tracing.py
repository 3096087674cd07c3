"""
OpenTelemetry tracing

One tracer provider per process, exporting over OTLP when an endpoint is set.
Spans cross the broker in W3C `traceparent`/`tracestate` Kafka headers, so a
`ticket_purchased` consumer downstream and an `event_created` handled here
join the trace that produced them.
"""

from typing import Any, Iterable, List, Optional, Tuple

from opentelemetry import context as otel_context, trace
from opentelemetry.context import Context
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.propagate import extract, inject
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from ticket_inventory.platform.config.core_setting import settings


KafkaHeaders = List[Tuple[str, bytes]]


class TracingConfig:
    """
    Usage:
        tracing = TracingConfig(service_name='ticket-inventory-service')
        tracing.setup()
        ...
        tracing.shutdown()
    """

    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: Optional[str] = None,
        sample_ratio: Optional[float] = None,
        enable_console: Optional[bool] = None,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or settings.OTEL_EXPORTER_OTLP_ENDPOINT
        self.sample_ratio = settings.OTEL_SAMPLE_RATIO if sample_ratio is None else sample_ratio
        self.enable_console = (
            settings.OTEL_CONSOLE_EXPORT if enable_console is None else enable_console
        )
        self._provider: Optional[TracerProvider] = None

    def setup(self) -> None:
        resource = Resource(
            attributes={
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: settings.VERSION,
                DEPLOYMENT_ENVIRONMENT: settings.DEPLOY_ENV,
            }
        )
        # Follow the caller's decision when there is one (HTTP gateway, Kafka producer)
        sampler = ParentBased(root=TraceIdRatioBased(self.sample_ratio))
        self._provider = TracerProvider(resource=resource, sampler=sampler)

        if self.otlp_endpoint:
            self._provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=self.otlp_endpoint))
            )
        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)

    def instrument_fastapi(self, *, app: Any, excluded_urls: str = 'health,metrics') -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded_urls)

    def instrument_sqlalchemy(self, *, engine: Any) -> None:
        # AsyncEngine is instrumented through its sync_engine
        SQLAlchemyInstrumentor().instrument(engine=getattr(engine, 'sync_engine', engine))

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()


def inject_trace_context(*, headers: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Current trace context as a carrier dict (traceparent/tracestate)."""
    headers = headers or {}
    inject(headers)
    return headers


def trace_headers() -> KafkaHeaders:
    """Current trace context in the `[(key, bytes)]` shape confluent-kafka produces."""
    return [(key, value.encode('utf-8')) for key, value in inject_trace_context().items()]


def decode_kafka_headers(raw: Optional[Iterable[Tuple[str, Any]]]) -> dict[str, str]:
    return {
        key: value.decode('utf-8') if isinstance(value, bytes) else str(value)
        for key, value in (raw or [])
    }


def extract_trace_context(*, headers: Optional[dict[str, str]] = None) -> Context:
    """
    Attach the producer's trace context so spans opened while handling the
    message continue its trace. Without headers the current context is kept.
    """
    if headers:
        ctx = extract(headers)
        otel_context.attach(ctx)
        return ctx
    return otel_context.get_current()
