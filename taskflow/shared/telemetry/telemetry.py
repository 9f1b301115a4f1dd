"""OpenTelemetry tracing setup, driven by Settings.

The lifespan builds one TelemetryConfig from settings, starts it against the
app and the SQL engine, and shuts it down on exit. Nothing here runs unless
TELEMETRY_ENABLED is set.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine

    from taskflow.core.config import Settings

logger = logging.getLogger(__name__)

# Liveness probes would otherwise dominate the trace volume.
EXCLUDED_URLS = "/api/v1/health"


def build_exporter(kind: str, otlp_endpoint: str | None) -> SpanExporter | None:
    """Return the span exporter for kind ('console', 'otlp' or 'none')."""
    if kind == "none":
        return None
    if kind == "otlp":
        if not otlp_endpoint:
            raise ValueError("TELEMETRY_OTLP_ENDPOINT is required for the otlp exporter")
        return OTLPSpanExporter(
            endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
        )
    if kind != "console":
        logger.warning("Unknown telemetry exporter %r, falling back to console", kind)
    return ConsoleSpanExporter()


class TelemetryConfig:
    """Tracer provider plus FastAPI and SQLAlchemy instrumentation for one app."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        environment: str,
        exporter: SpanExporter | None,
        sample_rate: float = 1.0,
    ) -> None:
        self.provider = TracerProvider(
            resource=Resource(
                attributes={
                    SERVICE_NAME: service_name,
                    SERVICE_VERSION: service_version,
                    "deployment.environment": environment,
                }
            ),
            sampler=ParentBased(TraceIdRatioBased(sample_rate)),
        )
        if exporter is not None:
            self.provider.add_span_processor(BatchSpanProcessor(exporter))

    @classmethod
    def from_settings(cls, settings: Settings) -> TelemetryConfig:
        return cls(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
            exporter=build_exporter(
                settings.telemetry_exporter, settings.telemetry_otlp_endpoint
            ),
            sample_rate=settings.telemetry_sample_rate,
        )

    def start(self, app: FastAPI, engine: AsyncEngine | None) -> None:
        """Install the provider globally and instrument the app and the engine."""
        trace.set_tracer_provider(self.provider)
        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=self.provider, excluded_urls=EXCLUDED_URLS
        )
        if engine is not None:
            SQLAlchemyInstrumentor().instrument(
                engine=engine.sync_engine, tracer_provider=self.provider
            )
        logger.info("Tracing started (sql instrumented: %s)", engine is not None)

    def shutdown(self) -> None:
        """Flush pending spans and stop the provider."""
        self.provider.shutdown()
