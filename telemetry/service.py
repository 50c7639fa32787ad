"""
Telemetry service for structured logging and tracing.

This module provides structured JSON logging with request correlation,
OpenTelemetry spans around Redis operations, and lightweight metric
records for session store operations.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Dict
from contextvars import ContextVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

DEFAULT_SERVICE_NAME = "redis-session-store"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class JSONFormatter(logging.Formatter):
    """
    Renders log records as single-line JSON.

    Each entry carries timestamp, level, message, logger and the request id
    bound to the current context, plus whatever the caller passed as
    ``extra={"extra_data": {...}}``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": request_id_var.get(""),
        }

        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        if hasattr(record, "extra_data") and record.extra_data:
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


class TelemetryService:
    """
    Logging, tracing and metrics for the session store.

    Installs the JSON formatter on the root logger, exports spans over OTLP
    when an endpoint is configured, and records metrics as structured debug
    log entries.
    """

    def __init__(
        self,
        settings: Optional[Any] = None,
        stream: Any = None,
        tracer_provider: Optional[TracerProvider] = None
    ):
        """
        Initialize the telemetry service.

        Args:
            settings: Application settings containing log_level, otel_endpoint
                and otel_service_name
            stream: Output stream for log records, defaults to stdout
            tracer_provider: Provider to create spans with. When omitted a
                provider is built for settings.otel_endpoint, or the global
                provider is used if no endpoint is configured.
        """
        self.settings = settings
        self.tracer = None
        self._stream = stream if stream is not None else sys.stdout
        self._logger = None
        self._setup_logging()
        self._setup_tracing(tracer_provider)

    def _setup_logging(self) -> None:
        log_level_str = "INFO"
        if self.settings and hasattr(self.settings, "log_level"):
            log_level_str = self.settings.log_level

        log_level = getattr(logging, log_level_str.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # Remove existing handlers to avoid duplicate logs
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        stream_handler = logging.StreamHandler(self._stream)
        stream_handler.setLevel(log_level)
        stream_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(stream_handler)

        self._logger = logging.getLogger("telemetry")
        self._logger.info("Telemetry service initialized", extra={
            "extra_data": {"log_level": log_level_str}
        })

    def _setup_tracing(self, tracer_provider: Optional[TracerProvider]) -> None:
        """
        Configure OpenTelemetry tracing.

        An OTLP exporter is installed as the global tracer provider only when
        settings name a collector endpoint; otherwise spans go to whatever
        provider the host application registered, which is a no-op by default.
        """
        service_name = getattr(self.settings, "otel_service_name", None) or DEFAULT_SERVICE_NAME
        otel_endpoint = getattr(self.settings, "otel_endpoint", None)

        if tracer_provider is None and otel_endpoint:
            tracer_provider = TracerProvider(
                resource=Resource(attributes={SERVICE_NAME: service_name})
            )
            tracer_provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=otel_endpoint))
            )
            trace.set_tracer_provider(tracer_provider)
            self._logger.info("OpenTelemetry tracing configured", extra={
                "extra_data": {
                    "otel_endpoint": otel_endpoint,
                    "service_name": service_name,
                }
            })
        elif tracer_provider is None:
            self._logger.debug("OpenTelemetry endpoint not configured, using global tracer provider")

        self.tracer = trace.get_tracer(service_name, tracer_provider=tracer_provider)

    def record_metric(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Record a custom metric.

        Args:
            name: Name of the metric
            value: Metric value
            tags: Optional tags for metric dimensions
        """
        metric_data = {
            "metric_name": name,
            "metric_value": value,
        }

        if tags:
            metric_data["tags"] = tags

        self._logger.debug(
            f"Metric: {name}={value}",
            extra={"extra_data": metric_data}
        )

    def create_span(
        self,
        name: str,
        attributes: Optional[Dict[str, Any]] = None,
        kind: trace.SpanKind = trace.SpanKind.INTERNAL
    ):
        """
        Start a span as the current span.

        Exceptions escaping the block are recorded on the span and mark it
        as failed before they propagate.

        Returns:
            Context manager yielding the span
        """
        return self.tracer.start_as_current_span(name, kind=kind, attributes=attributes)

    def create_external_service_span(
        self,
        service_name: str,
        operation: str,
        attributes: Optional[Dict[str, Any]] = None
    ):
        """
        Start a client span for a call to an external service.

        Args:
            service_name: Name of the external service (e.g. "redis")
            operation: The operation being performed (e.g. "sessionLoad")
            attributes: Optional additional attributes for the span
        """
        span_attributes: Dict[str, Any] = {
            "peer.service": service_name,
            "operation.name": operation,
        }
        if attributes:
            span_attributes.update(attributes)

        return self.create_span(
            f"{service_name}.{operation}",
            span_attributes,
            kind=trace.SpanKind.CLIENT,
        )


# Global telemetry service instance
_telemetry_service: Optional[TelemetryService] = None


def get_telemetry_service() -> Optional[TelemetryService]:
    """Return the global telemetry service, or None if not initialized."""
    return _telemetry_service


def initialize_telemetry(settings: Optional[Any] = None) -> TelemetryService:
    """
    Initialize the global telemetry service.

    Executors built with PooledRedisExecutor.from_settings() afterwards
    report their timings and spans through it.

    Args:
        settings: Application settings for configuration

    Returns:
        The initialized telemetry service
    """
    global _telemetry_service
    _telemetry_service = TelemetryService(settings)
    return _telemetry_service


def set_request_id(request_id: str) -> None:
    """Bind a request id to the current context so log records carry it."""
    request_id_var.set(request_id)


def get_request_id() -> str:
    """Return the request id bound to the current context, or an empty string."""
    return request_id_var.get("")
