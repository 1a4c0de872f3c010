"""
Gateway client for the UptimeBolt REST API

Issues authenticated, timeout-bounded requests and returns parsed payloads.
Every failure surfaces as a ``GatewayError`` subclass.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from .config import GatewayConfig
from .errors import GatewayError, GatewayHttpError, GatewayNetworkError, GatewayTimeout
from .observability.metrics import get_metrics
from .observability.tracer import set_attribute, trace_async

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, Any]


def _render_params(params: Optional[QueryParams]) -> dict[str, str]:
    """Drop unset values and render the rest the way the backend expects"""
    rendered = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            rendered[key] = "true" if value else "false"
        else:
            rendered[key] = str(value)
    return rendered


def _error_message(response: httpx.Response, body: Any) -> str:
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return f"HTTP {response.status_code} {response.reason_phrase}"


class GatewayClient:
    """
    Async client for the UptimeBolt API

    Requests carry a bearer token when the caller supplies one, otherwise the
    configured service-level API key. Use as an async context manager, or call
    ``aclose()`` when done.
    """

    def __init__(
        self,
        config: GatewayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/") + config.api_prefix,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth_headers(self, auth_token: Optional[str]) -> dict[str, str]:
        if auth_token:
            return {"Authorization": f"Bearer {auth_token}"}
        return {"x-api-key": self.config.api_key}

    async def get(
        self,
        path: str,
        params: Optional[QueryParams] = None,
        timeout_ms: Optional[int] = None,
        auth_token: Optional[str] = None,
    ) -> Any:
        """GET ``path`` and return the (unwrapped) JSON payload"""
        return await self.request(
            "GET", path, params=params, timeout_ms=timeout_ms, auth_token=auth_token
        )

    async def post(
        self,
        path: str,
        body: Optional[Any] = None,
        timeout_ms: Optional[int] = None,
        auth_token: Optional[str] = None,
    ) -> Any:
        """POST ``body`` as JSON to ``path`` and return the (unwrapped) payload"""
        return await self.request(
            "POST", path, body=body, timeout_ms=timeout_ms, auth_token=auth_token
        )

    @trace_async("gateway.request")
    async def request(
        self,
        method: str,
        path: str,
        params: Optional[QueryParams] = None,
        body: Optional[Any] = None,
        timeout_ms: Optional[int] = None,
        auth_token: Optional[str] = None,
    ) -> Any:
        timeout_ms = timeout_ms or self.config.default_timeout_ms
        set_attribute("http.method", method)
        set_attribute("gateway.path", path)

        try:
            response = await self._client.request(
                method,
                path,
                params=_render_params(params),
                json=body,
                headers=self._auth_headers(auth_token),
                timeout=timeout_ms / 1000,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out after {timeout_ms}ms")
            self._record(method, "timeout")
            raise GatewayTimeout(timeout_ms) from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            self._record(method, "network_error")
            raise GatewayNetworkError(str(e) or type(e).__name__) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        set_attribute("http.status_code", response.status_code)

        if not response.is_success:
            message = _error_message(response, payload)
            logger.info(f"{method} {path} -> {response.status_code}: {message}")
            self._record(method, "http_error")
            raise GatewayHttpError(message, status=response.status_code, body=payload)

        self._record(method, "ok")
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    @staticmethod
    def _record(method: str, outcome: str) -> None:
        metrics = get_metrics()
        if metrics:
            metrics.record_gateway_request(method, outcome)


__all__ = ["GatewayClient", "GatewayError"]
