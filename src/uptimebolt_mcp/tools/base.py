"""
Tool registry and dispatch

Tools are plain async handlers registered with a name, a description and a
JSON Schema for their arguments. ``call_tool`` is the single boundary between
the front-ends and the handlers: whatever a handler raises is turned into a
``ToolResult`` there.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

from ..config import get_config
from ..context import ToolContext
from ..errors import (
    GatewayError,
    MissingRequiredArgument,
    ResolutionAmbiguous,
    ResolutionError,
)
from ..formatters import format_ambiguous
from ..gateway import GatewayClient
from ..models import TextContent, ToolResult
from ..observability.metrics import get_metrics
from ..observability.tracer import set_attribute, trace_operation

logger = logging.getLogger(__name__)

Arguments = Mapping[str, Any]
Handler = Callable[[Arguments, ToolContext, GatewayClient], Awaitable[str]]


@dataclass(frozen=True)
class ToolSpec:
    """A registered tool: its public description plus the handler behind it"""

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: Handler

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    """
    Registry for the tools exposed to agents

    Keeps registration order, which is also the order tools are listed in.
    """

    def __init__(self):
        self._tools: dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool '{spec.name}' is already registered")
        self._tools[spec.name] = spec
        logger.debug(f"Registered tool: {spec.name}")

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


# Global registry instance
registry = ToolRegistry()


def register_tool(
    name: str, description: str, properties: Optional[dict[str, Any]] = None
) -> Callable[[Handler], Handler]:
    """Decorator for registering tool handlers"""

    def decorator(handler: Handler) -> Handler:
        schema = {"type": "object", "properties": properties or {}}
        registry.register(ToolSpec(name, description, schema, handler))
        return handler

    return decorator


# --- Argument helpers ---


def arg_str(args: Arguments, key: str, default: Optional[str] = None) -> Optional[str]:
    value = args.get(key)
    if value is None or value == "":
        return default
    return str(value)


def arg_number(args: Arguments, key: str, default: float) -> float:
    value = args.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got {value!r}") from None


def arg_bool(args: Arguments, key: str, default: bool) -> bool:
    value = args.get(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no", "")
    return bool(value)


# --- Dispatch ---


def _advisory(error: Exception) -> str:
    if isinstance(error, ResolutionAmbiguous):
        return format_ambiguous(error.kind, error.query, error.candidates)
    return str(error)


async def _dispatch(
    spec: ToolSpec, args: Arguments, context: ToolContext, gateway: GatewayClient
) -> tuple[ToolResult, str]:
    try:
        text = await spec.handler(args, context, gateway)
        return ToolResult.from_text(text), "ok"
    except (ResolutionError, MissingRequiredArgument) as e:
        # The agent can retry with better arguments, so this is not a failure
        logger.info(f"{spec.name}: {e}")
        return ToolResult.from_text(_advisory(e)), "advisory"
    except GatewayError as e:
        logger.warning(f"{spec.name} failed: {e}")
        return ToolResult.from_error(str(e)), "error"
    except Exception as e:
        logger.error(f"{spec.name} failed unexpectedly: {e}", exc_info=True)
        return ToolResult.from_error(str(e) or type(e).__name__), "error"


async def call_tool(
    name: str,
    arguments: Optional[Arguments] = None,
    context: Optional[ToolContext] = None,
    gateway: Optional[GatewayClient] = None,
) -> ToolResult:
    """
    Run a tool by name and always return a ``ToolResult``

    Args:
        name: Registered tool name
        arguments: Tool arguments as sent by the agent
        context: Caller context; defaults to the one bound to the current request
        gateway: Backend client; a short-lived one is created from the global
            configuration when omitted

    Returns:
        The handler's text, an advisory text for resolution problems, or an
        ``is_error`` result carrying the failure message
    """
    spec = registry.get(name)
    if spec is None:
        logger.warning(f"Unknown tool requested: {name}")
        metrics = get_metrics()
        if metrics:
            metrics.record_tool_call(name, "unknown", 0.0)
        return ToolResult(content=[TextContent(text=f"Unknown tool: {name}")], is_error=True)

    args = dict(arguments or {})
    context = context or ToolContext.current()

    start_time = time.time()
    with trace_operation(f"tool.{name}", {"tool.name": name}):
        if gateway is None:
            async with GatewayClient(get_config().gateway) as own_gateway:
                result, outcome = await _dispatch(spec, args, context, own_gateway)
        else:
            result, outcome = await _dispatch(spec, args, context, gateway)
        set_attribute("tool.outcome", outcome)

    duration = time.time() - start_time
    metrics = get_metrics()
    if metrics:
        metrics.record_tool_call(name, outcome, duration)
    logger.debug(f"{name} finished in {duration * 1000:.0f}ms ({outcome})")
    return result
