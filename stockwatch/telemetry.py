"""OpenTelemetry and Prometheus configuration for stockwatch"""
import structlog
from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from prometheus_client import start_http_server, Counter, Histogram

logger = structlog.get_logger()

# Upstream provider calls
api_calls_total = Counter(
    'provider_api_calls_total',
    'Total upstream API calls made',
    ['provider', 'endpoint', 'status']
)

api_call_duration_seconds = Histogram(
    'provider_api_call_duration_seconds',
    'Upstream API call duration in seconds',
    ['provider', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Provider selection
provider_probes_total = Counter(
    'provider_probes_total',
    'Availability probes by provider and result',
    ['provider', 'available']
)

provider_switches_total = Counter(
    'provider_switches_total',
    'Cursor moves to another provider',
    ['provider', 'reason']
)

mock_fallbacks_total = Counter(
    'mock_fallbacks_total',
    'Requests answered from the mock catalog because every provider was down',
    ['operation']
)


def setup_telemetry(app=None, service_name: str = "stockwatch", metrics_port: int = 8001) -> metrics.Meter:
    """
    Setup OpenTelemetry instrumentation

    Args:
        app: FastAPI app (optional, for FastAPI instrumentation)
        service_name: Service name for metrics
        metrics_port: Port to expose Prometheus metrics
    """
    logger.info("setting_up_telemetry", service=service_name, metrics_port=metrics_port)

    resource = Resource(attributes={
        "service.name": service_name,
    })

    prometheus_reader = PrometheusMetricReader()
    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[prometheus_reader]
    )
    metrics.set_meter_provider(meter_provider)
    meter = meter_provider.get_meter(service_name)

    if app:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("fastapi_instrumented")

    HTTPXClientInstrumentor().instrument()
    logger.info("httpx_instrumented")

    try:
        start_http_server(port=metrics_port, addr="0.0.0.0")
        logger.info("prometheus_metrics_server_started", port=metrics_port)
    except OSError as e:
        # Port already in use (multiple workers or already started)
        logger.warning("prometheus_metrics_server_already_running", port=metrics_port, error=str(e))

    return meter

