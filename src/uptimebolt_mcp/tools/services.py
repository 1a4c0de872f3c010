"""Service status and deploy-safety tools"""

import asyncio
import logging
from typing import Optional

from ..aggregator import fetch_health_score, gather_signals, parse_list
from ..classifier import DEFAULT_TARGET_NAME, classify
from ..context import ToolContext
from ..formatters import format_safety_check, format_service, format_service_list
from ..gateway import GatewayClient
from ..models import Service
from ..observability.metrics import get_metrics
from ..resolver import resolve_service
from .base import Arguments, arg_str, register_tool

logger = logging.getLogger(__name__)


async def _service_with_health(
    gateway: GatewayClient, service_id: str, auth_token: Optional[str]
) -> Service:
    # Health is decoration here; a missing score never fails the call
    payload, health_score = await asyncio.gather(
        gateway.get(f"/services/{service_id}", auth_token=auth_token),
        fetch_health_score(gateway, service_id, auth_token),
    )
    service = Service.model_validate(payload or {})
    if health_score is not None:
        service.health_score = health_score
    return service


@register_tool(
    "get_service_status",
    "Get the current health status of a service or all services. Returns health "
    "score, monitor status, and active incidents.",
    {
        "service_id": {
            "type": "string",
            "description": "UUID of the service. Omit to get all services.",
        },
        "service_name": {
            "type": "string",
            "description": "Name of the service (fuzzy match). Alternative to service_id.",
        },
    },
)
async def get_service_status(
    args: Arguments, context: ToolContext, gateway: GatewayClient
) -> str:
    token = context.auth_token
    service_id = arg_str(args, "service_id")
    service_name = arg_str(args, "service_name")

    if service_id:
        return format_service(await _service_with_health(gateway, service_id, token))

    if service_name:
        match = await resolve_service(gateway, service_name, auth_token=token)
        health_score = await fetch_health_score(gateway, match.id, token)
        if health_score is not None:
            match.health_score = health_score
        return format_service(match)

    services = parse_list(Service, await gateway.get("/services", auth_token=token))
    return format_service_list(services)


@register_tool(
    "is_safe_to_deploy",
    "Check if it's safe to deploy right now based on current service health, "
    "active predictions, and recent incidents. Useful for CI/CD pipeline integration.",
    {
        "service_id": {"type": "string", "description": "UUID of the service to check."},
        "service_name": {
            "type": "string",
            "description": "Name of the service (fuzzy match).",
        },
    },
)
async def is_safe_to_deploy(
    args: Arguments, context: ToolContext, gateway: GatewayClient
) -> str:
    token = context.auth_token
    service_id = arg_str(args, "service_id")
    service_name = arg_str(args, "service_name")
    target_name = DEFAULT_TARGET_NAME

    if not service_id and service_name:
        service = await resolve_service(gateway, service_name, auth_token=token)
        service_id, target_name = service.id, service.name

    signals = await gather_signals(
        gateway, service_id=service_id, target_name=target_name, auth_token=token
    )
    assessment = classify(signals)
    logger.info(
        f"Deploy check for {target_name}: {assessment.risk_level.value} "
        f"({len(assessment.active_issues)} issues)"
    )

    metrics = get_metrics()
    if metrics:
        metrics.record_deploy_verdict(assessment.risk_level.value)

    return format_safety_check(assessment)
