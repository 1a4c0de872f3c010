"""Root cause analysis and executive summary tools"""

from ..context import ToolContext
from ..formatters import format_executive_summary, format_rca
from ..gateway import GatewayClient
from ..models import ExecutiveSummary
from ..rca import DEFAULT_LANGUAGE, DEFAULT_TIER, get_or_generate_analysis
from .base import Arguments, arg_number, arg_str, register_tool

LANGUAGES = ["es", "en"]
TIERS = ["basic", "standard", "deep", "premium"]
DEFAULT_SUMMARY_HOURS = 12


@register_tool(
    "run_root_cause_analysis",
    "Run an AI-powered root cause analysis for an incident or service. Analyzes "
    "dependencies, cascading failures, and deployment correlations.",
    {
        "incident_id": {"type": "string", "description": "UUID of the incident to analyze."},
        "service_id": {
            "type": "string",
            "description": "UUID of the service to analyze (alternative to incident_id).",
        },
        "language": {
            "type": "string",
            "enum": LANGUAGES,
            "description": "Response language. Default: es.",
        },
        "tier": {
            "type": "string",
            "enum": TIERS,
            "description": "Analysis depth tier. Default: standard.",
        },
    },
)
async def run_root_cause_analysis(
    args: Arguments, context: ToolContext, gateway: GatewayClient
) -> str:
    analysis, cached = await get_or_generate_analysis(
        gateway,
        incident_id=arg_str(args, "incident_id"),
        service_id=arg_str(args, "service_id"),
        language=arg_str(args, "language", DEFAULT_LANGUAGE),
        tier=arg_str(args, "tier", DEFAULT_TIER),
        auth_token=context.auth_token,
    )
    header = "[CACHED] Existing RCA found:" if cached else "[NEW] RCA generated:"
    return f"{header}\n\n{format_rca(analysis)}"


@register_tool(
    "get_executive_summary",
    "Get an executive summary of infrastructure health for a time period. Ideal "
    "for daily standups, weekly reports, or status updates.",
    {
        "hours": {"type": "number", "description": "Period to summarize in hours. Default: 12."},
        "language": {
            "type": "string",
            "enum": LANGUAGES,
            "description": "Response language. Default: es.",
        },
    },
)
async def get_executive_summary(
    args: Arguments, context: ToolContext, gateway: GatewayClient
) -> str:
    hours = arg_number(args, "hours", DEFAULT_SUMMARY_HOURS)
    payload = await gateway.get(
        "/executive-summary",
        {
            "hours": int(hours) if hours == int(hours) else hours,
            "language": arg_str(args, "language", DEFAULT_LANGUAGE),
        },
        timeout_ms=gateway.config.summary_timeout_ms,
        auth_token=context.auth_token,
    )
    return format_executive_summary(ExecutiveSummary.model_validate(payload or {}))
