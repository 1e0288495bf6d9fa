"""OpenTelemetry wiring for the FastAPI app."""

from __future__ import annotations

import os

from fastapi import FastAPI
from loguru import logger
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.semconv.resource import ResourceAttributes

_PROVIDER: TracerProvider | None = None


def parse_otlp_headers(raw: str | None) -> dict[str, str] | None:
    """Parse ``key=value,key2=value2`` header lists, skipping malformed pairs."""

    if not raw:
        return None
    headers: dict[str, str] = {}
    for pair in raw.split(","):
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            continue
        headers[key.strip()] = value.strip()
    return headers or None


def _build_exporter() -> SpanExporter:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        return OTLPSpanExporter(
            endpoint=endpoint,
            headers=parse_otlp_headers(os.getenv("OTEL_EXPORTER_OTLP_HEADERS")),
        )
    return ConsoleSpanExporter()


def configure_tracing(
    app: FastAPI,
    *,
    service_name: str,
    service_version: str,
    environment: str,
) -> None:
    """Install the tracer provider once per process and instrument ``app``."""

    global _PROVIDER

    if _PROVIDER is None:
        resource = Resource.create(
            {
                ResourceAttributes.SERVICE_NAME: service_name,
                ResourceAttributes.SERVICE_VERSION: service_version,
                ResourceAttributes.DEPLOYMENT_ENVIRONMENT: environment,
            }
        )
        _PROVIDER = TracerProvider(resource=resource)
        _PROVIDER.add_span_processor(BatchSpanProcessor(_build_exporter()))
        trace.set_tracer_provider(_PROVIDER)
        LoggingInstrumentor().instrument(set_logging_format=False)
        logger.info("Tracing enabled", service=service_name)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=_PROVIDER)


__all__ = ["configure_tracing", "parse_otlp_headers"]
