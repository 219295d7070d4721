import logging

import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from storefront import __version__
from storefront.shared.config.settings import LOG_LEVEL, OTLP_ENDPOINT, TRACING_ENABLED

# Probes and scrapes stay out of traces and request metrics
UNOBSERVED_PATHS = ["/health", "/metrics"]


def add_trace_context(logger, method_name, event_dict):
    """Stamps the active span's ids on a log event so logs join up with traces."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(span_context.trace_id)
        event_dict["span_id"] = trace.format_span_id(span_context.span_id)
    return event_dict


def configure_logging(level: str = LOG_LEVEL):
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_trace_context,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_tracing(app: FastAPI, service_name: str):
    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name, SERVICE_VERSION: __version__})
    )
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=OTLP_ENDPOINT, insecure=True)))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls=",".join(p.lstrip("/") for p in UNOBSERVED_PATHS))
    # Gateway calls show up as child spans of the request that made them
    HTTPXClientInstrumentor().instrument()


def configure_metrics(app: FastAPI):
    instrumentator = Instrumentator(
        should_group_status_codes=False,
        excluded_handlers=UNOBSERVED_PATHS,
    )
    instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


def setup_observability(app: FastAPI, service_name: str):
    """
    Wires structured logging, request metrics and (unless TRACING_ENABLED is
    off) OTLP tracing into the app. Call once, when the app is built.
    """
    configure_logging()
    if TRACING_ENABLED:
        configure_tracing(app, service_name)
    configure_metrics(app)
