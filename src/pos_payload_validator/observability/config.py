"""Telemetry and logging setup for the payload validator.

Server spans cover the simulator, validate and history endpoints; client
spans cover outbound image fetches made through httpx. The validation
counters in ``observability.metrics`` are exported through the same OTLP/HTTP
collector. Nothing leaves the process when ENVIRONMENT=test.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "payload-validator"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
DEFAULT_METRIC_EXPORT_INTERVAL_MS = 60000

# Comma-separated URL patterns that get no server span
UNTRACED_URLS = "health"

# Per-request client logs from image fetches
QUIET_LOGGERS = ("httpx", "httpcore")


@dataclass(frozen=True)
class TelemetrySettings:
    """Where and how telemetry is exported, read from the environment."""

    service_name: str
    environment: str
    otlp_endpoint: str
    metric_export_interval_ms: int
    exporters_enabled: bool

    @classmethod
    def from_env(cls, enable_exporters: bool = True) -> "TelemetrySettings":
        """Read OTEL_SERVICE_NAME, ENVIRONMENT, OTEL_EXPORTER_OTLP_ENDPOINT and
        OTEL_METRIC_EXPORT_INTERVAL. Exporters are always off under ENVIRONMENT=test.

        Raises:
            ValueError: If OTEL_METRIC_EXPORT_INTERVAL is not an integer
        """
        environment = os.getenv("ENVIRONMENT", "development")
        return cls(
            service_name=os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME),
            environment=environment,
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT).rstrip(
                "/"
            ),
            metric_export_interval_ms=int(
                os.getenv("OTEL_METRIC_EXPORT_INTERVAL", str(DEFAULT_METRIC_EXPORT_INTERVAL_MS))
            ),
            exporters_enabled=enable_exporters and environment != "test",
        )

    @property
    def resource(self) -> Resource:
        return Resource.create(
            {
                "service.name": self.service_name,
                "deployment.environment": self.environment,
            }
        )


def build_providers(settings: TelemetrySettings) -> tuple[TracerProvider, MeterProvider]:
    """Create the tracer and meter providers for the validator.

    With exporters disabled the providers still record, so ``@traced`` spans
    and validation counters work in tests, but nothing is shipped.
    """
    resource = settings.resource
    tracer_provider = TracerProvider(resource=resource)
    metric_readers: list[MetricReader] = []

    if settings.exporters_enabled:
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{settings.otlp_endpoint}/v1/traces"))
        )
        metric_readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(endpoint=f"{settings.otlp_endpoint}/v1/metrics"),
                export_interval_millis=settings.metric_export_interval_ms,
            )
        )

    return tracer_provider, MeterProvider(resource=resource, metric_readers=metric_readers)


def setup_observability(app: Any = None, enable_exporters: bool = True) -> TelemetrySettings:
    """Install the telemetry providers and instrument the HTTP layers.

    Args:
        app: Optional FastAPI application whose endpoints get server spans
        enable_exporters: Whether to ship telemetry to the OTLP collector

    Returns:
        The settings the providers were built from
    """
    settings = TelemetrySettings.from_env(enable_exporters)
    tracer_provider, meter_provider = build_providers(settings)
    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(meter_provider)

    HTTPXClientInstrumentor().instrument(tracer_provider=tracer_provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=tracer_provider,
            meter_provider=meter_provider,
            excluded_urls=UNTRACED_URLS,
        )

    logger.info(
        "Telemetry configured",
        extra={
            "exporters_enabled": settings.exporters_enabled,
            "otlp_endpoint": settings.otlp_endpoint if settings.exporters_enabled else None,
            "app_instrumented": app is not None,
        },
    )
    return settings


def configure_logging(log_level: str = "INFO") -> None:
    """Send JSON log lines tagged with the service name to stderr.

    Args:
        log_level: Logging level name; LOG_LEVEL in the environment takes precedence
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        timestamp=True,
        static_fields={"service": os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME)},
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info("Structured JSON logging configured", extra={"log_level": level_name})
