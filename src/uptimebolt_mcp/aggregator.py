"""
Signal aggregation for deploy-safety checks

Fetches health score, predictions and incidents concurrently. Each branch
fails soft on its own: a broken data source yields an empty or unknown signal
instead of aborting the check.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import GatewayError
from .gateway import GatewayClient
from .models import AggregatedSignals, HealthSignal, Incident, Prediction
from .observability.tracer import set_attribute, trace_async

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

INCIDENT_PAGE_SIZE = 10


async def soft_fail(label: str, call: Awaitable[T], default: T) -> T:
    """Await ``call``, returning ``default`` if the gateway fails"""
    try:
        return await call
    except GatewayError as e:
        logger.warning(f"{label} unavailable, continuing without it: {e}")
        return default


def parse_list(model: type[M], payload: Any) -> list[M]:
    """Validate a list payload item by item, skipping malformed items"""
    if not isinstance(payload, list):
        return []
    items = []
    for raw in payload:
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {model.__name__}: {e.error_count()} errors")
    return items


async def fetch_health_score(
    gateway: GatewayClient, service_id: str, auth_token: Optional[str] = None
) -> Optional[float]:
    """Current health score of a service, None when unknown or unavailable"""
    payload = await soft_fail(
        "health score",
        gateway.get(f"/services/{service_id}/health", auth_token=auth_token),
        None,
    )
    if not isinstance(payload, dict):
        return None
    try:
        return HealthSignal.model_validate(payload).health_score
    except ValidationError:
        logger.warning(f"Malformed health payload for service {service_id}")
        return None


async def _unknown_health() -> Optional[float]:
    return None


@trace_async("signals.gather", record_kwargs=True)
async def gather_signals(
    gateway: GatewayClient,
    service_id: Optional[str] = None,
    monitor_id: Optional[str] = None,
    target_name: Optional[str] = None,
    auth_token: Optional[str] = None,
) -> AggregatedSignals:
    """
    Collect the inputs of the risk classifier

    Args:
        gateway: Backend client
        service_id: Restrict predictions and incidents to this service
        monitor_id: Restrict predictions and incidents to this monitor
        target_name: Display name of the checked target, if any
        auth_token: Caller credential forwarded to the backend

    Returns:
        Active predictions and incidents plus the health score. Without a
        service or monitor the check is site-wide.
    """
    # Every branch handles its own failure, so gather never short-circuits
    health_score, prediction_payload, incident_payload = await asyncio.gather(
        fetch_health_score(gateway, service_id, auth_token)
        if service_id
        else _unknown_health(),
        soft_fail(
            "predictions",
            gateway.get("/predictive/alerts", auth_token=auth_token),
            [],
        ),
        soft_fail(
            "incidents",
            gateway.get(
                "/incidents", {"limit": INCIDENT_PAGE_SIZE}, auth_token=auth_token
            ),
            [],
        ),
    )

    predictions = [p for p in parse_list(Prediction, prediction_payload) if p.is_active]
    incidents = [i for i in parse_list(Incident, incident_payload) if i.is_active]

    if service_id:
        predictions = [p for p in predictions if p.service_id == service_id]
        incidents = [i for i in incidents if i.belongs_to_service(service_id)]
    if monitor_id:
        predictions = [p for p in predictions if p.belongs_to_monitor(monitor_id)]
        incidents = [i for i in incidents if i.belongs_to_monitor(monitor_id)]

    set_attribute("signals.predictions", len(predictions))
    set_attribute("signals.incidents", len(incidents))

    return AggregatedSignals(
        health_score=health_score,
        predictions=predictions,
        incidents=incidents,
        target_name=target_name,
    )
