"""
Test suite for the gateway client

Uses httpx.MockTransport so no network is touched.
"""

import json

import httpx
import pytest

from uptimebolt_mcp.config import GatewayConfig
from uptimebolt_mcp.errors import (
    GatewayHttpError,
    GatewayNetworkError,
    GatewayTimeout,
)
from uptimebolt_mcp.gateway import GatewayClient, _render_params
from uptimebolt_mcp.observability.metrics import initialize_metrics


def make_client(handler, **config) -> GatewayClient:
    config.setdefault("api_key", "service-key")
    return GatewayClient(
        GatewayConfig(base_url="https://api.example.test/", **config),
        transport=httpx.MockTransport(handler),
    )


class TestRequests:
    """Test request construction"""

    @pytest.mark.asyncio
    async def test_get_uses_prefix_and_service_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            return httpx.Response(200, json=[{"id": "svc-1"}])

        async with make_client(handler) as client:
            payload = await client.get("/services")

        assert payload == [{"id": "svc-1"}]
        assert seen["url"] == "https://api.example.test/api/v1/services"
        assert seen["headers"]["x-api-key"] == "service-key"
        assert "authorization" not in seen["headers"]

    @pytest.mark.asyncio
    async def test_caller_token_becomes_bearer(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            return httpx.Response(200, json={})

        async with make_client(handler) as client:
            await client.get("/monitors", auth_token="caller-key")

        assert seen["headers"]["authorization"] == "Bearer caller-key"
        assert "x-api-key" not in seen["headers"]

    @pytest.mark.asyncio
    async def test_query_params_rendering(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[])

        async with make_client(handler) as client:
            await client.get("/incidents", {"limit": 10, "status": None, "includeRca": True})

        assert seen["params"] == {"limit": "10", "includeRca": "true"}

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"data": {"id": "rca-1"}})

        async with make_client(handler) as client:
            payload = await client.post("/rca/analyze", {"incidentId": "inc-1"})

        assert seen["method"] == "POST"
        assert seen["body"] == {"incidentId": "inc-1"}
        assert payload == {"id": "rca-1"}

    @pytest.mark.asyncio
    async def test_data_envelope_is_unwrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [1, 2], "meta": {"total": 2}})

        async with make_client(handler) as client:
            assert await client.get("/deployments") == [1, 2]

    def test_render_params(self):
        assert _render_params({"a": False, "b": 1.5, "c": None}) == {"a": "false", "b": "1.5"}
        assert _render_params(None) == {}


class TestErrors:
    """Test failure mapping"""

    @pytest.mark.asyncio
    async def test_error_message_from_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"message": "Forbidden for this org"})

        async with make_client(handler) as client:
            with pytest.raises(GatewayHttpError) as exc_info:
                await client.get("/services")

        assert exc_info.value.status == 403
        assert str(exc_info.value) == "Forbidden for this org"
        assert exc_info.value.body == {"message": "Forbidden for this org"}

    @pytest.mark.asyncio
    async def test_error_field_fallback(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "Bad filter"})

        async with make_client(handler) as client:
            with pytest.raises(GatewayHttpError, match="Bad filter"):
                await client.get("/incidents")

    @pytest.mark.asyncio
    async def test_status_line_fallback(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>")

        async with make_client(handler) as client:
            with pytest.raises(GatewayHttpError) as exc_info:
                await client.get("/incidents")

        assert str(exc_info.value) == "HTTP 502 Bad Gateway"
        assert exc_info.value.body is None

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        async with make_client(handler) as client:
            with pytest.raises(GatewayTimeout) as exc_info:
                await client.get("/executive-summary", timeout_ms=60000)

        assert exc_info.value.status == 408
        assert str(exc_info.value) == "Request timed out after 60000ms"

    @pytest.mark.asyncio
    async def test_default_timeout_in_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("no route", request=request)

        async with make_client(handler, default_timeout_ms=1234) as client:
            with pytest.raises(GatewayTimeout, match="1234ms"):
                await client.get("/services")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(GatewayNetworkError) as exc_info:
                await client.get("/services")

        assert exc_info.value.status == 0
        assert "connection refused" in str(exc_info.value)


class TestMetrics:
    @pytest.mark.asyncio
    async def test_outcomes_are_counted(self):
        metrics = initialize_metrics()
        responses = iter([httpx.Response(200, json=[]), httpx.Response(500, json={})])

        def handler(request: httpx.Request) -> httpx.Response:
            return next(responses)

        async with make_client(handler) as client:
            await client.get("/services")
            with pytest.raises(GatewayHttpError):
                await client.get("/services")

        requests = metrics.registry.get_sample_value
        assert requests("uptimebolt_gateway_requests_total", {"method": "GET", "outcome": "ok"}) == 1.0
        assert requests(
            "uptimebolt_gateway_requests_total", {"method": "GET", "outcome": "http_error"}
        ) == 1.0
