"""
Agent-facing tools

Importing this package registers every tool with the global registry:
- services: service status and deploy safety
- monitors: monitor listing, health and metrics
- incidents: incidents, predictions and deployments
- analysis: root cause analysis and executive summary
"""

# Import tool modules to trigger registration
from . import analysis, incidents, monitors, services
from .base import ToolRegistry, ToolSpec, call_tool, register_tool, registry

__all__ = [
    "ToolRegistry",
    "ToolSpec",
    "analysis",
    "call_tool",
    "incidents",
    "monitors",
    "register_tool",
    "registry",
    "services",
]
