"""
uptimebolt-mcp - UptimeBolt monitoring tools for LLM agents

Exposes services, monitors, incidents, predictions, deployments and root cause
analyses from the UptimeBolt API through the Model Context Protocol, and decides
deploy safety from live incident, prediction and health signals.
"""

__version__ = "1.0.0"

# Core API exports
from .aggregator import gather_signals
from .classifier import classify
from .config import UptimeBoltConfig
from .gateway import GatewayClient
from .resolver import resolve
from .tools import call_tool, registry

__all__ = [
    "GatewayClient",
    "UptimeBoltConfig",
    "call_tool",
    "classify",
    "gather_signals",
    "registry",
    "resolve",
    "__version__",
]
