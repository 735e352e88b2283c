"""
OpenTelemetry tracing: OTLP export plus FastAPI and SQLAlchemy auto-instrumentation
"""
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, DEPLOYMENT_ENVIRONMENT
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from typing import Optional
import logging

from marketplace.config import CommonSettings

logger = logging.getLogger(__name__)


def setup_tracing(settings: CommonSettings) -> Optional[TracerProvider]:
    """Install a global tracer provider exporting to the OTLP collector"""
    if not settings.otel_enabled:
        logger.info("OpenTelemetry disabled")
        return None
    
    service_name = settings.otel_service_name or settings.service_name
    resource = Resource(attributes={
        SERVICE_NAME: service_name,
        DEPLOYMENT_ENVIRONMENT: settings.environment
    })
    
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(
            endpoint=settings.otel_endpoint,
            insecure=True  # Use TLS in production
        ))
    )
    trace.set_tracer_provider(provider)
    
    logger.info(f"OpenTelemetry initialized for {service_name}, exporting to {settings.otel_endpoint}")
    return provider


def instrument_app(app) -> None:
    """Trace every request handled by the FastAPI app"""
    FastAPIInstrumentor.instrument_app(app)
    logger.info("FastAPI instrumented with OpenTelemetry")


def instrument_engine(engine) -> None:
    """Trace every statement issued through the engine"""
    SQLAlchemyInstrumentor().instrument(engine=engine)
    logger.info("SQLAlchemy instrumented with OpenTelemetry")
