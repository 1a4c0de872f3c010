"""
Root cause analysis lookup and generation

Analyses are expensive and generated by the backend. Before triggering a new
one for an incident, ask whether one already exists; a failed lookup counts
as "no analysis" and never blocks generation.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from .errors import GatewayError, MissingRequiredArgument
from .gateway import GatewayClient
from .models import RootCauseAnalysis
from .observability.tracer import trace_async

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "es"
DEFAULT_TIER = "standard"


def _first_analysis(payload: Any) -> Optional[RootCauseAnalysis]:
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if not isinstance(payload, dict):
        return None
    try:
        analysis = RootCauseAnalysis.model_validate(payload)
    except ValidationError:
        logger.warning("Ignoring malformed stored analysis")
        return None
    # Without an id the backend has nothing stored
    return analysis if analysis.id else None


async def find_existing_analysis(
    gateway: GatewayClient, incident_id: str, auth_token: Optional[str] = None
) -> Optional[RootCauseAnalysis]:
    """Stored analysis for an incident, or None"""
    try:
        payload = await gateway.get(f"/rca/incident/{incident_id}", auth_token=auth_token)
    except GatewayError as e:
        logger.debug(f"No stored analysis for incident {incident_id}: {e}")
        return None
    return _first_analysis(payload)


@trace_async("rca.generate", record_kwargs=True)
async def generate_analysis(
    gateway: GatewayClient,
    incident_id: Optional[str] = None,
    service_id: Optional[str] = None,
    language: str = DEFAULT_LANGUAGE,
    tier: str = DEFAULT_TIER,
    auth_token: Optional[str] = None,
) -> RootCauseAnalysis:
    """
    Trigger a new analysis on the backend

    Uses the long analysis timeout. Gateway errors propagate to the caller.
    """
    if not incident_id and not service_id:
        raise MissingRequiredArgument("incident_id", "service_id")

    body: dict[str, Any] = {"language": language, "tier": tier}
    if incident_id:
        body["incidentId"] = incident_id
    if service_id:
        body["serviceId"] = service_id

    logger.info(f"Generating {tier} analysis (incident={incident_id}, service={service_id})")
    payload = await gateway.post(
        "/rca/analyze",
        body,
        timeout_ms=gateway.config.analysis_timeout_ms,
        auth_token=auth_token,
    )
    if isinstance(payload, list):
        payload = payload[0] if payload else {}
    return RootCauseAnalysis.model_validate(payload or {})


async def get_or_generate_analysis(
    gateway: GatewayClient,
    incident_id: Optional[str] = None,
    service_id: Optional[str] = None,
    language: str = DEFAULT_LANGUAGE,
    tier: str = DEFAULT_TIER,
    auth_token: Optional[str] = None,
) -> tuple[RootCauseAnalysis, bool]:
    """
    Return ``(analysis, cached)``

    Incident-scoped requests reuse a stored analysis when one exists.
    """
    if incident_id:
        existing = await find_existing_analysis(gateway, incident_id, auth_token)
        if existing is not None:
            logger.info(f"Reusing stored analysis {existing.id} for incident {incident_id}")
            return existing, True

    analysis = await generate_analysis(
        gateway,
        incident_id=incident_id,
        service_id=service_id,
        language=language,
        tier=tier,
        auth_token=auth_token,
    )
    return analysis, False
