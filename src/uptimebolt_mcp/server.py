"""
MCP server wiring

Builds an ``mcp`` low-level server exposing the tool registry and serves it
over stdio. The HTTP front-end reuses ``build_server``.
"""

import logging
from typing import Any, Callable, Optional

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .config import UptimeBoltConfig, get_config
from .context import ToolContext, get_auth_token
from .errors import ConfigurationError
from .gateway import GatewayClient
from .tools import call_tool, registry

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[], GatewayClient]

STDIO_USAGE = (
    "Error: UPTIMEBOLT_API_KEY environment variable is required (stdio mode).\n"
    "Set it to your UptimeBolt API key.\n\n"
    "Usage:\n"
    "  UPTIMEBOLT_API_KEY=your-key UPTIMEBOLT_API_URL=https://api.uptimebolt.io uptimebolt-mcp stdio\n"
)


class ToolCallFailed(Exception):
    """Raised inside the MCP handler so the SDK reports ``isError``"""


def list_tool_definitions() -> list[types.Tool]:
    return [
        types.Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema)
        for spec in registry.specs()
    ]


def _request_api_key(server: Server) -> Optional[str]:
    # Streamable HTTP requests carry the Starlette request on the MCP context
    try:
        request = getattr(server.request_context, "request", None)
    except LookupError:
        return None
    headers = getattr(request, "headers", None)
    return headers.get("x-api-key") if headers is not None else None


def build_server(
    config: Optional[UptimeBoltConfig] = None,
    gateway_factory: Optional[GatewayFactory] = None,
) -> Server:
    """
    Create an MCP server bound to the tool registry

    Args:
        config: Configuration; the global one when omitted
        gateway_factory: Creates a backend client per tool call

    Returns:
        Server with ``list_tools`` and ``call_tool`` handlers registered
    """
    config = config or get_config()
    if gateway_factory is None:

        def gateway_factory() -> GatewayClient:
            return GatewayClient(config.gateway)

    server: Server = Server(config.server_name, version=config.version)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return list_tool_definitions()

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: Optional[dict[str, Any]]) -> list[types.TextContent]:
        context = ToolContext(auth_token=get_auth_token() or _request_api_key(server))
        async with gateway_factory() as gateway:
            result = await call_tool(name, arguments or {}, context, gateway)
        if result.is_error:
            raise ToolCallFailed(result.text)
        return [types.TextContent(type="text", text=item.text) for item in result.content]

    return server


def require_api_key(config: UptimeBoltConfig) -> None:
    """stdio mode has no per-request credential, so a service key is mandatory"""
    if not config.gateway.api_key:
        raise ConfigurationError(STDIO_USAGE)


async def run_stdio(config: Optional[UptimeBoltConfig] = None) -> None:
    """Serve the tools over stdin/stdout until the client disconnects"""
    config = config or get_config()
    require_api_key(config)

    server = build_server(config)
    logger.info(
        f"Starting stdio server with {len(registry)} tools (backend: {config.gateway.base_url})"
    )
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
