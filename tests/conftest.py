"""
Pytest configuration and shared fixtures for uptimebolt-mcp tests

Provides a path-keyed fake gateway, sample backend payloads, and resets the
process-wide configuration and metrics between tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

from uptimebolt_mcp.config import GatewayConfig, UptimeBoltConfig, set_config
from uptimebolt_mcp.errors import GatewayHttpError
from uptimebolt_mcp.observability.metrics import reset_metrics


class FakeGateway:
    """
    Gateway stand-in answering from a ``path -> payload`` map

    A payload that is an exception instance is raised instead of returned.
    Unknown paths fail with a 404 like the real backend.
    """

    def __init__(
        self,
        responses: Optional[dict[str, Any]] = None,
        post_responses: Optional[dict[str, Any]] = None,
    ):
        self.config = GatewayConfig(api_key="test-key")
        self.responses = responses or {}
        self.post_responses = post_responses or {}
        self.get = AsyncMock(side_effect=self._get)
        self.post = AsyncMock(side_effect=self._post)

    @staticmethod
    def _answer(table: dict[str, Any], path: str) -> Any:
        if path not in table:
            raise GatewayHttpError("Not found", status=404)
        answer = table[path]
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def _get(self, path, params=None, timeout_ms=None, auth_token=None):
        return self._answer(self.responses, path)

    async def _post(self, path, body=None, timeout_ms=None, auth_token=None):
        return self._answer(self.post_responses, path)

    def paths_requested(self) -> list[str]:
        return [call.args[0] for call in self.get.call_args_list]

    async def __aenter__(self) -> "FakeGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None


def iso_ago(**delta) -> str:
    """ISO timestamp ``delta`` in the past"""
    return (datetime.now(timezone.utc) - timedelta(**delta)).isoformat()


@pytest.fixture
def fake_gateway():
    """Factory for path-keyed fake gateways"""
    return FakeGateway


@pytest.fixture(autouse=True)
def isolated_config():
    """Keep tests away from .env files, YAML config and global metrics"""
    set_config(UptimeBoltConfig(gateway=GatewayConfig(api_key="test-key")))
    yield
    set_config(None)
    reset_metrics()


@pytest.fixture
def services_payload():
    return [
        {
            "id": "svc-1",
            "name": "Checkout API",
            "environment": "production",
            "criticality": "high",
            "currentHealthScore": 92.5,
            "serviceMonitors": [
                {"monitor": {"id": "mon-1", "name": "checkout-http", "type": "http",
                             "operationalStatus": "up"}},
            ],
        },
        {
            "id": "svc-2",
            "name": "Checkout Worker",
            "environment": "production",
            "criticality": "normal",
            "serviceMonitors": [],
        },
        {
            "id": "svc-3",
            "name": "Billing",
            "environment": "staging",
        },
    ]


@pytest.fixture
def monitors_payload():
    return [
        {"id": "mon-1", "name": "checkout-http", "type": "http", "status": "active",
         "operationalStatus": "up", "responseTime": 120.4, "uptimePercentage": 99.95},
        {"id": "mon-2", "name": "checkout-db", "type": "database", "status": "active",
         "operationalStatus": "down", "responseTime": None, "uptimePercentage": 97.1},
        {"id": "mon-3", "name": "billing-ping", "type": "ping", "status": "paused",
         "operationalStatus": "up"},
    ]


@pytest.fixture
def incident_payload():
    def build(**overrides) -> dict[str, Any]:
        incident = {
            "id": "inc-1",
            "title": "Checkout latency spike",
            "severity": "high",
            "status": "investigating",
            "serviceId": "svc-1",
            "monitorId": "mon-1",
            "startTime": iso_ago(hours=1),
        }
        incident.update(overrides)
        return incident

    return build


@pytest.fixture
def prediction_payload():
    def build(**overrides) -> dict[str, Any]:
        prediction = {
            "id": "pred-1",
            "predictionType": "latency_degradation",
            "confidence": 0.9,
            "status": "active",
            "serviceId": "svc-1",
            "monitorId": "mon-1",
            "monitor": {"id": "mon-1", "name": "checkout-http"},
            "timeWindow": "2h",
        }
        prediction.update(overrides)
        return prediction

    return build


def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line(
        "markers", "integration: Integration tests across multiple components"
    )


@pytest.fixture(name="iso_ago")
def iso_ago_fixture():
    return iso_ago
