"""
Entity resolution

Turns a fuzzy, human-supplied name into exactly one service or monitor.
``resolve`` is pure; ``resolve_service`` and ``resolve_monitor`` fetch the
candidate list from the backend first.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Sequence, TypeVar, Union

from .aggregator import parse_list
from .errors import MissingRequiredArgument, ResolutionAmbiguous, ResolutionNotFound
from .gateway import GatewayClient
from .models import Monitor, NamedEntity, Service

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=NamedEntity)


@dataclass(frozen=True)
class Resolved(Generic[E]):
    entity: E


@dataclass(frozen=True)
class NotFound:
    query: str


@dataclass(frozen=True)
class Ambiguous(Generic[E]):
    query: str
    candidates: list[E] = field(default_factory=list)


ResolutionResult = Union[Resolved[E], NotFound, Ambiguous[E]]


def resolve(entities: Sequence[E], query: str) -> ResolutionResult:
    """
    Select the entity a query refers to

    An exact case-insensitive name match wins outright, even when the name is
    also a substring of other names. Otherwise every entity whose name contains
    the query is a candidate: one candidate resolves, none is ``NotFound``,
    several are ``Ambiguous`` in their original order.

    An empty query is a substring of every name; callers that do not want
    that must reject it first.
    """
    needle = query.lower()

    for entity in entities:
        if entity.name.lower() == needle:
            return Resolved(entity)

    matches = [entity for entity in entities if needle in entity.name.lower()]
    if len(matches) == 1:
        return Resolved(matches[0])
    if not matches:
        return NotFound(query)
    return Ambiguous(query, matches)


def unwrap_list(payload: Any, key: str) -> list[Any]:
    # The monitors endpoint may answer with {"monitors": [...]}
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get(key), list):
        return payload[key]
    return []


async def _resolve_remote(
    kind: str,
    model: type[E],
    gateway: GatewayClient,
    path: str,
    query: Optional[str],
    auth_token: Optional[str],
) -> E:
    if query is None or not query.strip():
        raise MissingRequiredArgument(f"{kind}_id", f"{kind}_name")

    payload = await gateway.get(path, auth_token=auth_token)
    entities = parse_list(model, unwrap_list(payload, path.strip("/")))

    result = resolve(entities, query)
    if isinstance(result, Resolved):
        logger.debug(f"Resolved {kind} '{query}' to {result.entity.id}")
        return result.entity
    if isinstance(result, Ambiguous):
        logger.info(f"{kind} name '{query}' is ambiguous ({len(result.candidates)} matches)")
        raise ResolutionAmbiguous(kind, query, result.candidates)
    raise ResolutionNotFound(kind, query)


async def resolve_service(
    gateway: GatewayClient, name: Optional[str], auth_token: Optional[str] = None
) -> Service:
    """Resolve a service by name, raising ``ResolutionError`` unless exactly one matches"""
    return await _resolve_remote("service", Service, gateway, "/services", name, auth_token)


async def resolve_monitor(
    gateway: GatewayClient, name: Optional[str], auth_token: Optional[str] = None
) -> Monitor:
    """Resolve a monitor by name, raising ``ResolutionError`` unless exactly one matches"""
    return await _resolve_remote("monitor", Monitor, gateway, "/monitors", name, auth_token)
