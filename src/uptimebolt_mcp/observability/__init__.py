"""
Observability module for uptimebolt-mcp

Provides logging setup, OpenTelemetry tracing and Prometheus metrics.
"""

from .init import (
    configure_logging,
    initialize_observability,
    is_observability_initialized,
    shutdown_observability,
)
from .metrics import MetricsCollector, get_metrics
from .tracer import get_tracer, trace_async, trace_operation

__all__ = [
    "MetricsCollector",
    "configure_logging",
    "get_metrics",
    "get_tracer",
    "initialize_observability",
    "is_observability_initialized",
    "shutdown_observability",
    "trace_async",
    "trace_operation",
]
