"""
OpenTelemetry tracing implementation

Provides spans around gateway requests, signal gathering and tool dispatch.
Until ``initialize_tracing`` runs, the no-op tracer is used.
"""

import functools
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Optional, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode

from ..config import TelemetryConfig

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Optional[trace.Tracer] = None

P = ParamSpec("P")
T = TypeVar("T")


def initialize_tracing(config: TelemetryConfig, version: str = "1.0.0") -> None:
    """Initialize OpenTelemetry tracing with the given configuration"""
    global _tracer

    if not config.enable_tracing:
        logger.info("Tracing is disabled")
        return

    resource = Resource.create(
        {
            "service.name": config.service_name,
            "service.version": version,
            "deployment.environment": config.environment,
        }
    )
    provider = TracerProvider(resource=resource)

    if config.otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )

        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=config.otlp_endpoint))
        )
        logger.info(f"OTLP trace exporter configured for {config.otlp_endpoint}")

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(
        instrumenting_module_name="uptimebolt_mcp",
        instrumenting_library_version=version,
    )
    logger.info("OpenTelemetry tracing initialized")


def get_tracer() -> trace.Tracer:
    """Get the configured tracer instance"""
    if _tracer is None:
        return trace.NoOpTracer()
    return _tracer


@contextmanager
def trace_operation(
    operation_name: str,
    attributes: Optional[dict[str, Any]] = None,
):
    """
    Context manager for tracing operations

    Args:
        operation_name: Name of the operation being traced
        attributes: Additional attributes to add to the span
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(operation_name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)

        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def trace_async(
    operation_name: Optional[str] = None,
    record_kwargs: bool = False,
):
    """
    Decorator for tracing async functions

    Args:
        operation_name: Custom operation name (defaults to function name)
        record_kwargs: Record simple keyword arguments as span attributes
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            name = operation_name or f"{func.__module__}.{func.__qualname__}"

            span_attributes = {}
            if record_kwargs:
                for key, value in kwargs.items():
                    # Never put credentials on spans
                    if key == "auth_token":
                        continue
                    if isinstance(value, (str, int, float, bool)):
                        span_attributes[f"kwarg.{key}"] = value

            with trace_operation(name, span_attributes) as span:
                start_time = time.time()
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    span.set_attribute("error.type", type(e).__name__)
                    raise
                finally:
                    duration = time.time() - start_time
                    span.set_attribute("operation.duration_ms", duration * 1000)

        return wrapper

    return decorator


def set_attribute(key: str, value: Any) -> None:
    """Set an attribute on the current span"""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)

