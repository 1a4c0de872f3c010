"""
Error taxonomy for uptimebolt-mcp

Gateway errors describe backend failures, resolution errors describe fuzzy
name lookups that did not land on exactly one entity.
"""

from typing import Any, Optional, Sequence


class UptimeBoltError(Exception):
    """Base class for all uptimebolt-mcp errors"""


class GatewayError(UptimeBoltError):
    """A backend request failed"""

    def __init__(self, message: str, status: int = 0, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body

    def __str__(self) -> str:
        return self.message


class GatewayTimeout(GatewayError):
    """The request exceeded its deadline"""

    def __init__(self, timeout_ms: int):
        super().__init__(f"Request timed out after {timeout_ms}ms", status=408)
        self.timeout_ms = timeout_ms


class GatewayHttpError(GatewayError):
    """The backend answered with a non-2xx status"""


class GatewayNetworkError(GatewayError):
    """Transport-level failure, no response was received"""

    def __init__(self, message: str):
        super().__init__(message, status=0)


class ResolutionError(UptimeBoltError):
    """A name did not resolve to exactly one entity"""

    def __init__(self, kind: str, query: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.query = query


class ResolutionNotFound(ResolutionError):
    def __init__(self, kind: str, query: str):
        super().__init__(kind, query, f'No {kind} found matching "{query}".')


class ResolutionAmbiguous(ResolutionError):
    def __init__(self, kind: str, query: str, candidates: Sequence[Any]):
        super().__init__(
            kind, query, f'Multiple {kind}s match "{query}" ({len(candidates)} candidates).'
        )
        self.candidates = list(candidates)


class MissingRequiredArgument(UptimeBoltError):
    """None of the accepted arguments for an operation were supplied"""

    def __init__(self, *names: str, message: Optional[str] = None):
        self.names = names
        if message is None:
            message = f"Please provide either {' or '.join(names)}."
        super().__init__(message)


class ConfigurationError(UptimeBoltError):
    """The process cannot start with the current configuration"""
