"""Incident, prediction and deployment tools"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..aggregator import parse_list
from ..context import ToolContext
from ..formatters import format_deployments, format_incidents, format_predictions
from ..gateway import GatewayClient
from ..models import Deployment, Incident, IncidentStatus, Prediction, RootCauseAnalysis
from ..rca import find_existing_analysis
from .base import Arguments, arg_bool, arg_number, arg_str, register_tool

logger = logging.getLogger(__name__)

INCIDENT_PAGE_SIZE = 10
DEPLOYMENT_PAGE_SIZE = 20
RCA_ENRICHMENT_LIMIT = 5
DEFAULT_MIN_CONFIDENCE = 60
DEFAULT_HOURS = 24

# Statuses that are not real backend values
VIRTUAL_STATUSES = ("active", "all")


def _cutoff(hours: float, now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now(timezone.utc)) - timedelta(hours=hours)


@register_tool(
    "get_predictions",
    "Get active AI predictions for monitors or services. Shows predicted problems "
    "with confidence levels.",
    {
        "service_id": {"type": "string", "description": "Filter predictions by service UUID."},
        "monitor_id": {"type": "string", "description": "Filter predictions by monitor UUID."},
        "min_confidence": {
            "type": "number",
            "description": "Minimum confidence threshold (0-100). Default: 60.",
        },
    },
)
async def get_predictions(args: Arguments, context: ToolContext, gateway: GatewayClient) -> str:
    monitor_id = arg_str(args, "monitor_id")
    service_id = arg_str(args, "service_id")
    min_confidence = arg_number(args, "min_confidence", DEFAULT_MIN_CONFIDENCE)

    path = f"/monitors/{monitor_id}/predictions" if monitor_id else "/predictive/alerts"
    predictions = parse_list(Prediction, await gateway.get(path, auth_token=context.auth_token))

    predictions = [
        p
        for p in predictions
        if p.normalized_confidence >= min_confidence
        and (not service_id or p.service_id == service_id)
        and p.is_active
    ]
    return format_predictions(predictions)


async def _analyses_for(
    gateway: GatewayClient, incidents: list[Incident], auth_token: Optional[str]
) -> dict[str, RootCauseAnalysis]:
    found = await asyncio.gather(
        *(find_existing_analysis(gateway, inc.id, auth_token) for inc in incidents)
    )
    return {inc.id: rca for inc, rca in zip(incidents, found) if rca is not None}


@register_tool(
    "get_incidents",
    "Get incidents with optional filters. Includes root cause analysis if available.",
    {
        "service_id": {"type": "string", "description": "Filter incidents by service UUID."},
        "monitor_id": {"type": "string", "description": "Filter incidents by monitor UUID."},
        "status": {
            "type": "string",
            "enum": [
                "active",
                IncidentStatus.RESOLVED.value,
                IncidentStatus.DETECTING.value,
                IncidentStatus.INVESTIGATING.value,
                IncidentStatus.IDENTIFIED.value,
                IncidentStatus.RESOLVING.value,
                IncidentStatus.MONITORING.value,
                "all",
            ],
            "description": "Filter by status. 'active' = all non-resolved. Default: active.",
        },
        "hours": {"type": "number", "description": "Look back N hours. Default: 24."},
        "include_rca": {
            "type": "boolean",
            "description": "Include root cause analysis details. Default: true.",
        },
    },
)
async def get_incidents(args: Arguments, context: ToolContext, gateway: GatewayClient) -> str:
    token = context.auth_token
    status = (arg_str(args, "status") or "active").lower()
    service_id = arg_str(args, "service_id")
    hours = arg_number(args, "hours", DEFAULT_HOURS)

    params = {
        "limit": INCIDENT_PAGE_SIZE,
        "monitorId": arg_str(args, "monitor_id"),
        "status": status if status not in VIRTUAL_STATUSES else None,
    }
    incidents = parse_list(Incident, await gateway.get("/incidents", params, auth_token=token))
    if not incidents:
        return format_incidents([])

    cutoff = _cutoff(hours)
    incidents = [
        inc for inc in incidents if inc.started_at is not None and inc.started_at >= cutoff
    ]
    if status == "active":
        incidents = [inc for inc in incidents if inc.is_active]
    if service_id:
        incidents = [inc for inc in incidents if inc.belongs_to_service(service_id)]

    analyses: dict[str, RootCauseAnalysis] = {}
    if arg_bool(args, "include_rca", True) and incidents:
        analyses = await _analyses_for(gateway, incidents[:RCA_ENRICHMENT_LIMIT], token)

    return format_incidents(incidents, analyses)


@register_tool(
    "get_deployments",
    "Get recent deployments and their correlation with incidents. Shows which "
    "deploys potentially caused issues.",
    {
        "service_id": {"type": "string", "description": "Filter deployments by service UUID."},
        "hours": {"type": "number", "description": "Look back N hours. Default: 24."},
        "include_correlations": {
            "type": "boolean",
            "description": "Include incident correlations. Default: true.",
        },
    },
)
async def get_deployments(args: Arguments, context: ToolContext, gateway: GatewayClient) -> str:
    service_id = arg_str(args, "service_id")
    hours = arg_number(args, "hours", DEFAULT_HOURS)

    payload = await gateway.get(
        "/deployments", {"limit": DEPLOYMENT_PAGE_SIZE}, auth_token=context.auth_token
    )
    cutoff = _cutoff(hours)
    deployments = [
        d
        for d in parse_list(Deployment, payload)
        if d.deployed_at is not None
        and d.deployed_at >= cutoff
        and (not service_id or d.service_id == service_id)
    ]
    return format_deployments(
        deployments, include_correlations=arg_bool(args, "include_correlations", True)
    )
