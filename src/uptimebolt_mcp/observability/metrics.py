"""
Prometheus metrics collection for uptimebolt-mcp

Counts tool calls, gateway requests and deploy verdicts. Metrics live in a
dedicated registry so several collectors can coexist in one process (tests).
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

DURATION_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0)


@dataclass
class MetricsCollector:
    """Central metrics collector for tool and gateway operations"""

    registry: CollectorRegistry = field(default_factory=CollectorRegistry)

    tool_calls_total: Counter = field(init=False)
    tool_duration: Histogram = field(init=False)
    gateway_requests_total: Counter = field(init=False)
    deploy_verdicts_total: Counter = field(init=False)

    def __post_init__(self):
        self.tool_calls_total = Counter(
            "uptimebolt_tool_calls_total",
            "Total number of tool calls",
            labelnames=["tool", "outcome"],
            registry=self.registry,
        )
        self.tool_duration = Histogram(
            "uptimebolt_tool_duration_seconds",
            "Duration of tool calls",
            labelnames=["tool"],
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.gateway_requests_total = Counter(
            "uptimebolt_gateway_requests_total",
            "Total number of backend API requests",
            labelnames=["method", "outcome"],
            registry=self.registry,
        )
        self.deploy_verdicts_total = Counter(
            "uptimebolt_deploy_verdicts_total",
            "Deploy safety verdicts by risk level",
            labelnames=["risk_level"],
            registry=self.registry,
        )

    def record_tool_call(self, tool: str, outcome: str, duration: float) -> None:
        """Record a finished tool call (outcome: ok, error, unknown)"""
        self.tool_calls_total.labels(tool=tool, outcome=outcome).inc()
        self.tool_duration.labels(tool=tool).observe(duration)

    def record_gateway_request(self, method: str, outcome: str) -> None:
        """Record a backend request (outcome: ok, timeout, http_error, network_error)"""
        self.gateway_requests_total.labels(method=method, outcome=outcome).inc()

    def record_deploy_verdict(self, risk_level: str) -> None:
        self.deploy_verdicts_total.labels(risk_level=risk_level).inc()

    def get_metrics_text(self) -> str:
        """Get metrics in Prometheus text format"""
        return generate_latest(self.registry).decode("utf-8")


# Global metrics instance
_metrics: Optional[MetricsCollector] = None


def initialize_metrics() -> MetricsCollector:
    """Initialize global metrics collector"""
    global _metrics
    _metrics = MetricsCollector()
    logger.info("Prometheus metrics initialized")
    return _metrics


def get_metrics() -> Optional[MetricsCollector]:
    """Get the global metrics collector, None while metrics are disabled"""
    return _metrics


def reset_metrics() -> None:
    global _metrics
    _metrics = None
