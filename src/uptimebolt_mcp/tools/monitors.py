"""Monitor listing, health and metrics tools"""

import asyncio
import logging
from typing import Optional

from ..aggregator import parse_list, soft_fail
from ..context import ToolContext
from ..errors import MissingRequiredArgument
from ..formatters import format_monitor_health, format_monitor_metrics, format_monitors
from ..gateway import GatewayClient
from ..models import Monitor, MonitorMetricsSummary, Prediction
from ..resolver import resolve_monitor, unwrap_list
from .base import Arguments, arg_str, register_tool

logger = logging.getLogger(__name__)

MONITOR_PAGE_SIZE = 100

# The backend's status parameter filters on administrative status only
ADMIN_STATUSES = ("paused", "maintenance", "active")
OPERATIONAL_STATUSES = ("up", "down", "degraded")

MONITOR_TYPES = ["http", "tcp", "dns", "database", "email", "synthetic", "push", "ping"]

_MONITOR_LOOKUP = {
    "monitor_id": {"type": "string", "description": "UUID of the monitor."},
    "monitor_name": {
        "type": "string",
        "description": "Name of the monitor (fuzzy match). Alternative to monitor_id.",
    },
}


async def monitor_id_from_args(
    args: Arguments, gateway: GatewayClient, auth_token: Optional[str]
) -> str:
    """Monitor id given directly or resolved from ``monitor_name``"""
    monitor_id = arg_str(args, "monitor_id")
    if monitor_id:
        return monitor_id
    monitor_name = arg_str(args, "monitor_name")
    if not monitor_name:
        raise MissingRequiredArgument("monitor_id", "monitor_name")
    monitor = await resolve_monitor(gateway, monitor_name, auth_token=auth_token)
    return monitor.id


@register_tool(
    "get_monitor_health",
    "Get detailed health information for a specific monitor including response "
    "time, uptime, and active predictions.",
    {
        **_MONITOR_LOOKUP,
        "period": {
            "type": "string",
            "enum": ["1h", "6h", "24h", "7d", "30d"],
            "description": "Time period for statistics. Default: 24h.",
        },
    },
)
async def get_monitor_health(
    args: Arguments, context: ToolContext, gateway: GatewayClient
) -> str:
    token = context.auth_token
    monitor_id = await monitor_id_from_args(args, gateway, token)

    payload, prediction_payload = await asyncio.gather(
        gateway.get(f"/monitors/{monitor_id}", auth_token=token),
        soft_fail(
            "monitor predictions",
            gateway.get(f"/monitors/{monitor_id}/predictions", auth_token=token),
            [],
        ),
    )
    monitor = Monitor.model_validate(payload or {})
    predictions = [
        p for p in parse_list(Prediction, prediction_payload) if p.status == "active"
    ]
    return format_monitor_health(monitor, predictions)


@register_tool(
    "get_monitors",
    "List all monitors with optional filtering by status or type. Returns name, "
    "URL, operational status, response time, and uptime for each monitor.",
    {
        "status": {
            "type": "string",
            "enum": ["all", *OPERATIONAL_STATUSES, "paused", "maintenance", "active"],
            "description": "Filter by status. 'up/down/degraded' filter by operational "
            "status, 'paused/maintenance/active' by admin status. Default: all.",
        },
        "type": {
            "type": "string",
            "enum": MONITOR_TYPES,
            "description": "Filter by monitor type.",
        },
    },
)
async def get_monitors(args: Arguments, context: ToolContext, gateway: GatewayClient) -> str:
    status = (arg_str(args, "status") or "all").lower()
    params = {"limit": MONITOR_PAGE_SIZE, "type": arg_str(args, "type")}
    if status in ADMIN_STATUSES:
        params["status"] = status

    payload = await gateway.get("/monitors", params, auth_token=context.auth_token)
    monitors = parse_list(Monitor, unwrap_list(payload, "monitors"))

    if status in OPERATIONAL_STATUSES:
        monitors = [
            m for m in monitors if (m.operational_status or m.status or "").lower() == status
        ]

    if not monitors:
        qualifier = f' with status "{status}"' if status != "all" else ""
        return f"No monitors found{qualifier}."
    return format_monitors(monitors)


@register_tool(
    "get_monitor_metrics",
    "Get detailed metrics summary for a specific monitor including response time "
    "stats, uptime percentage, and error breakdown.",
    dict(_MONITOR_LOOKUP),
)
async def get_monitor_metrics(
    args: Arguments, context: ToolContext, gateway: GatewayClient
) -> str:
    token = context.auth_token
    monitor_id = await monitor_id_from_args(args, gateway, token)
    payload = await gateway.get(f"/metric-query/monitor-summary/{monitor_id}", auth_token=token)
    return format_monitor_metrics(MonitorMetricsSummary.model_validate(payload or {}))
