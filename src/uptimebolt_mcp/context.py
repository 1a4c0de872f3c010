"""
Per-call context for tool handlers

The HTTP front-end authenticates each request with the caller's API key and
forwards it to the backend as a bearer token. The key travels in a context
variable so the MCP server, which knows nothing about HTTP, can pick it up.
"""

import contextvars
from dataclasses import dataclass
from typing import Optional

_auth_token_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "auth_token", default=None
)


@dataclass(frozen=True)
class ToolContext:
    """What a tool handler knows about its caller"""

    auth_token: Optional[str] = None

    @classmethod
    def current(cls) -> "ToolContext":
        """Context for the request being served, if any"""
        return cls(auth_token=_auth_token_context.get())


def set_auth_token(token: Optional[str]) -> contextvars.Token[Optional[str]]:
    """
    Set the caller credential for the current context

    Returns:
        Token that can be used to reset the context
    """
    return _auth_token_context.set(token)


def get_auth_token() -> Optional[str]:
    return _auth_token_context.get()


def reset_auth_token(token: contextvars.Token[Optional[str]]) -> None:
    _auth_token_context.reset(token)


class AuthTokenContext:
    """Context manager binding a caller credential for the duration of a request"""

    def __init__(self, token: Optional[str]):
        self.token = token
        self._reset: Optional[contextvars.Token[Optional[str]]] = None

    def __enter__(self) -> Optional[str]:
        self._reset = set_auth_token(self.token)
        return self.token

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._reset is not None:
            reset_auth_token(self._reset)
