"""Query execution metrics with OpenTelemetry support."""
from typing import Optional

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader

_meter = metrics.get_meter("querybridge.core")
query_duration_histogram = _meter.create_histogram(
    name="querybridge.query.duration",
    description="Duration of query executions in milliseconds",
    unit="ms",
)
query_execution_counter = _meter.create_counter(
    name="querybridge.query.executions",
    description="Number of query executions by engine and final status",
    unit="1",
)


def record_query_execution(engine: str, status: str, duration_ms: float) -> None:
    attributes = {"engine": engine, "status": status}
    query_duration_histogram.record(duration_ms, attributes=attributes)
    query_execution_counter.add(1, attributes=attributes)


def configure_metrics(exporter_type: str = "none", otlp_endpoint: Optional[str] = None):
    """Configures the OpenTelemetry Metric Provider.

    Args:
        exporter_type: 'none', 'console', or 'otlp'
        otlp_endpoint: Optional endpoint for OTLP exporter
    """
    if exporter_type == "none":
        return

    reader = None
    if exporter_type == "console":
        reader = PeriodicExportingMetricReader(ConsoleMetricExporter())
    elif exporter_type == "otlp":
        endpoint = otlp_endpoint or "http://localhost:4317"
        reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=endpoint))

    if reader:
        provider = MeterProvider(metric_readers=[reader])
        metrics.set_meter_provider(provider)
