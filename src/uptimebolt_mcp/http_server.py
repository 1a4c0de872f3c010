"""
Streamable HTTP front-end

Every POST /mcp is authenticated with the caller's ``x-api-key``, which is
checked against the backend and then forwarded as the bearer token for all
tool calls made in that request. The MCP session manager runs stateless, so
there are no sessions to resume or terminate.
"""

import contextlib
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from .config import UptimeBoltConfig, get_config, mask_key
from .context import AuthTokenContext
from .errors import GatewayError
from .gateway import GatewayClient
from .observability.metrics import get_metrics
from .server import build_server
from .tools import registry

logger = logging.getLogger(__name__)

SERVER_LABEL = "uptimebolt-mcp"
MAX_LOGGED_ARG_LENGTH = 100


def summarize_args(args: Mapping[str, Any]) -> dict[str, Any]:
    """Tool arguments safe to log: unset values dropped, long strings cut"""
    summary = {}
    for key, value in args.items():
        if value is None:
            continue
        if isinstance(value, str) and len(value) > MAX_LOGGED_ARG_LENGTH:
            summary[key] = f"{value[:50]}...({len(value)} chars)"
        else:
            summary[key] = value
    return summary


def describe_rpc(body: bytes) -> dict[str, Any]:
    """Pull the JSON-RPC method, and tool name and arguments for tool calls"""
    try:
        message = json.loads(body or b"null")
    except ValueError:
        return {}
    if not isinstance(message, dict):
        return {}
    info: dict[str, Any] = {"rpc_method": message.get("method")}
    params = message.get("params")
    if message.get("method") == "tools/call" and isinstance(params, dict):
        info["tool"] = params.get("name")
        info["tool_args"] = summarize_args(params.get("arguments") or {})
    return info


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class McpEndpoint:
    """ASGI endpoint for /mcp"""

    def __init__(
        self,
        session_manager: StreamableHTTPSessionManager,
        auth_gateway: GatewayClient,
        auth_check_timeout_ms: int,
    ):
        self.session_manager = session_manager
        self.auth_gateway = auth_gateway
        self.auth_check_timeout_ms = auth_check_timeout_ms

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        method = scope["method"]
        if method == "GET":
            response = JSONResponse(
                {"error": "SSE not supported in stateless mode. Use POST /mcp"},
                status_code=405,
            )
        elif method == "DELETE":
            response = JSONResponse(
                {"error": "Session termination not applicable in stateless mode"},
                status_code=405,
            )
        elif method == "POST":
            await self.handle_post(scope, receive, send)
            return
        else:
            response = JSONResponse({"error": "Method not allowed"}, status_code=405)
        await response(scope, receive, send)

    async def validate_key(self, api_key: str) -> Optional[str]:
        """None when the key is accepted, else the reason it was refused"""
        try:
            await self.auth_gateway.get(
                "/monitors",
                {"page": 1, "limit": 1},
                timeout_ms=self.auth_check_timeout_ms,
                auth_token=api_key,
            )
        except GatewayError as e:
            return str(e)
        return None

    async def handle_post(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        request_id = uuid.uuid4().hex[:8]
        log_fields = {
            "request_id": request_id,
            "client_ip": _client_ip(request),
            "user_agent": request.headers.get("user-agent", "unknown"),
        }

        body = await request.body()
        log_fields.update(describe_rpc(body))

        api_key = request.headers.get("x-api-key")
        if not api_key:
            logger.warning(f"[{request_id}] Request without API key", extra=log_fields)
            response = JSONResponse({"error": "x-api-key header required"}, status_code=401)
            await response(scope, receive, send)
            return

        log_fields["masked_key"] = mask_key(api_key)
        refusal = await self.validate_key(api_key)
        if refusal is not None:
            logger.warning(
                f"[{request_id}] API key validation failed: {refusal}",
                extra={**log_fields, "error": refusal},
            )
            response = JSONResponse({"error": "Invalid or expired API key"}, status_code=401)
            await response(scope, receive, send)
            return

        logger.info(f"[{request_id}] MCP request {log_fields.get('rpc_method')}", extra=log_fields)

        replayed = False

        async def replay_receive() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        response_size = 0

        async def counting_send(message: Message) -> None:
            nonlocal response_size
            if message["type"] == "http.response.body":
                response_size += len(message.get("body", b""))
            await send(message)

        start_time = time.time()
        with AuthTokenContext(api_key):
            await self.session_manager.handle_request(scope, replay_receive, counting_send)

        duration_ms = round((time.time() - start_time) * 1000)
        logger.info(
            f"[{request_id}] Completed in {duration_ms}ms ({response_size} bytes)",
            extra={**log_fields, "duration_ms": duration_ms, "response_size": response_size},
        )


async def health(request: Request) -> Response:
    return JSONResponse(
        {
            "status": "ok",
            "server": SERVER_LABEL,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


async def metrics(request: Request) -> Response:
    collector = get_metrics()
    if collector is None:
        return JSONResponse({"error": "Metrics are disabled"}, status_code=404)
    return PlainTextResponse(collector.get_metrics_text(), media_type=CONTENT_TYPE_LATEST)


def create_app(
    config: Optional[UptimeBoltConfig] = None,
    auth_gateway: Optional[GatewayClient] = None,
) -> Starlette:
    """
    Build the Starlette application

    Args:
        config: Configuration; the global one when omitted
        auth_gateway: Client used for API key checks; created from config when omitted
    """
    config = config or get_config()
    auth_gateway = auth_gateway or GatewayClient(config.gateway)

    session_manager = StreamableHTTPSessionManager(
        app=build_server(config),
        event_store=None,
        json_response=True,
        stateless=True,
    )
    endpoint = McpEndpoint(session_manager, auth_gateway, config.http.auth_check_timeout_ms)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        async with session_manager.run():
            logger.info(
                f"MCP HTTP server ready with {len(registry)} tools "
                f"(backend: {config.gateway.base_url})"
            )
            yield
        await auth_gateway.aclose()

    return Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/metrics", metrics, methods=["GET"]),
            Route("/mcp", endpoint),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
                allow_headers=["*"],
                expose_headers=["Mcp-Session-Id"],
            )
        ],
        lifespan=lifespan,
    )


def run_http(
    config: Optional[UptimeBoltConfig] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> None:
    """Serve the HTTP front-end with uvicorn until interrupted"""
    import uvicorn

    config = config or get_config()
    host = host or config.http.host
    port = port or config.http.port
    logger.info(f"Starting MCP HTTP server on http://{host}:{port}/mcp")
    # Logging is already configured; keep uvicorn from replacing it
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)
