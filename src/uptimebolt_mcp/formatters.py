"""
Text rendering for tool results

Turns validated backend models into compact plain text for LLM consumption.
Long lists are truncated with an "... and N more" line.
"""

import math
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from .models import (
    Deployment,
    ExecutiveSummary,
    Incident,
    Monitor,
    MonitorMetricsSummary,
    NamedEntity,
    Prediction,
    RiskAssessment,
    RootCauseAnalysis,
    Service,
)

T = TypeVar("T")

_STATUS_ICONS = {
    "[UP]": ("up", "active", "healthy", "resolved"),
    "[DEGRADED]": ("degraded", "warning", "caution"),
    "[DOWN]": ("down", "critical", "detecting", "investigating"),
    "[PAUSED]": ("paused",),
    "[MAINTENANCE]": ("maintenance",),
}

# Monitors listing order: broken first, healthy last
_STATUS_ORDER = {
    "down": 0,
    "critical": 0,
    "degraded": 1,
    "warning": 1,
    "paused": 2,
    "maintenance": 3,
    "up": 4,
}


def status_icon(status: Optional[str]) -> str:
    normalized = (status or "").lower()
    for icon, statuses in _STATUS_ICONS.items():
        if normalized in statuses:
            return icon
    return f"[{(status or 'unknown').upper()}]"


def label(value: Optional[str]) -> str:
    return f"[{(value or 'unknown').upper()}]"


def pct(value: Optional[float]) -> str:
    return f"{value:.1f}%" if value is not None else "N/A"


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def ms(value: Optional[float]) -> str:
    return f"{round_half_up(value)}ms" if value is not None else "N/A"


def num(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{value:g}" if isinstance(value, float) else str(value)


def ago(moment: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Coarse relative time: minutes, then hours, then days"""
    if moment is None:
        return "N/A"
    now = now or datetime.now(timezone.utc)
    minutes = math.floor((now - moment).total_seconds() / 60)
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def truncate_list(items: Sequence[T], limit: int, render: Callable[[T], str]) -> str:
    shown = [render(item) for item in items[:limit]]
    if len(items) > limit:
        shown.append(f"... and {len(items) - limit} more")
    return "\n".join(shown)


def _bullets(lines: Iterable[str]) -> str:
    return "\n".join(f"  - {line}" for line in lines)


# --- Resolution advisories ---


def format_ambiguous(kind: str, query: str, candidates: Sequence[NamedEntity]) -> str:
    def render(entity: NamedEntity) -> str:
        extra = ""
        if isinstance(entity, Monitor) and entity.type:
            extra = f", type: {entity.type}"
        return f"  - {entity.name} (id: {entity.id}{extra})"

    names = "\n".join(render(entity) for entity in candidates)
    return (
        f'Multiple {kind}s match "{query}":\n{names}\n\n'
        f"Please use {kind}_id or a more specific name."
    )


# --- Tool formatters ---


def format_service_list(services: Sequence[Service]) -> str:
    if not services:
        return "No services found."

    total_monitors = sum(len(s.service_monitors) for s in services)

    def render(s: Service) -> str:
        health = (
            f" | Health: {pct(s.current_health_score)}"
            if s.current_health_score is not None
            else ""
        )
        monitors = s.service_monitors
        count = f" | {len(monitors)} monitors" if monitors else ""
        line = (
            f"- {s.name} ({s.environment or 'unknown'}){health}{count}"
            f" | {s.criticality or 'normal'} criticality\n  ID: {s.id}"
        )
        for m in monitors:
            line += f"\n    {status_icon(m.operational_status or m.status)} {m.name} ({m.type})"
        return line

    header = f"{len(services)} services ({total_monitors} monitors total):\n\n"
    return header + truncate_list(services, 20, render)


def format_service(service: Service) -> str:
    s = service
    text = f"Service: {s.name}\n"
    text += f"Environment: {s.environment or 'unknown'} | Criticality: {s.criticality or 'normal'}\n"
    if s.health_score is not None:
        text += f"Health Score: {pct(s.health_score)}\n"
    if s.description:
        text += f"Description: {s.description}\n"

    if s.service_monitors:
        text += f"\nMonitors ({len(s.service_monitors)}):\n"
        text += truncate_list(
            s.service_monitors,
            15,
            lambda m: (
                f"  {status_icon(m.operational_status or m.status)} {m.name} ({m.type})"
                f" | Response: {ms(m.response_time)} | Uptime: {pct(m.uptime_percentage)}"
            ),
        )
    return text


def _confidence(p: Prediction) -> str:
    return f"{p.rounded_confidence}%" if p.confidence is not None else "N/A"


def format_predictions(predictions: Sequence[Prediction]) -> str:
    if not predictions:
        return "No active predictions."

    def render(p: Prediction) -> str:
        return (
            f"- {label(p.severity or p.prediction_type)} {p.prediction_type}"
            f" | Monitor: {p.target_label} | Confidence: {_confidence(p)}"
            f" | Window: {p.time_window or 'N/A'}"
        )

    return f"{len(predictions)} active predictions:\n\n" + truncate_list(
        predictions, 10, render
    )


def format_incidents(
    incidents: Sequence[Incident],
    analyses: Optional[dict[str, RootCauseAnalysis]] = None,
    now: Optional[datetime] = None,
) -> str:
    if not incidents:
        return "No incidents found."
    analyses = analyses or {}

    def render(inc: Incident) -> str:
        duration = (
            f"{round_half_up(inc.downtime_duration / 60)}min"
            if inc.downtime_duration is not None
            else "ongoing"
        )
        monitor = (inc.monitor.name if inc.monitor else None) or inc.monitor_id or "unknown"
        text = f"- {status_icon(inc.status)} {label(inc.severity)} {inc.title or 'Untitled'}\n"
        text += (
            f"  ID: {inc.id} | Monitor: {monitor} | Duration: {duration}"
            f" | Started: {ago(inc.started_at, now)}"
        )
        if inc.error_code:
            text += f" | Error: {inc.error_code}"

        rca = analyses.get(inc.id)
        if rca is not None:
            text += (
                f"\n  RCA: {rca.root_cause_summary or 'N/A'}"
                f" ({rca.root_cause_type or 'unknown'}, confidence: {pct(rca.confidence_score)})"
            )
            if rca.cascade_detected:
                text += " [CASCADE]"
            if rca.correlated_deployment_id:
                text += " [DEPLOY-RELATED]"
        return text

    return f"{len(incidents)} incidents:\n\n" + truncate_list(incidents, 10, render)


def format_monitor_health(
    monitor: Monitor, predictions: Optional[Sequence[Prediction]] = None
) -> str:
    m = monitor
    status = m.operational_status or m.status
    text = f"Monitor: {m.name}\n"
    text += f"ID: {m.id}\n"
    text += f"Type: {m.type} | Status: {status_icon(status)} {status}\n"
    text += f"Response Time: {ms(m.response_time)} | Uptime: {pct(m.uptime_percentage)}\n"
    if m.target:
        text += f"Target: {m.target}\n"

    if predictions:
        text += f"\nActive Predictions ({len(predictions)}):\n"
        text += truncate_list(
            predictions,
            5,
            lambda p: (
                f"  - {p.prediction_type} | Confidence: {_confidence(p)}"
                f" | Window: {p.time_window or 'N/A'}"
            ),
        )
    return text


def format_deployments(
    deployments: Sequence[Deployment],
    include_correlations: bool = True,
    now: Optional[datetime] = None,
) -> str:
    if not deployments:
        return "No recent deployments."

    def render(d: Deployment) -> str:
        status = d.deployment_status or d.status or "unknown"
        message = (d.commit_message or "")[:80]
        text = f"- {status_icon(status)} {message} ({d.branch or 'N/A'})\n"
        text += (
            f"  Author: {d.commit_author or 'unknown'} | SHA: {(d.commit_sha or '')[:8]}"
            f" | {ago(d.deployed_at, now)}"
        )
        if d.files_changed:
            text += f" | {d.files_changed} files"
        if include_correlations and d.correlations:
            rendered = ", ".join(
                f"score={num(c.correlation_score)} ({c.confidence})" for c in d.correlations
            )
            text += f"\n  Correlations: {rendered}"
        return text

    return f"{len(deployments)} deployments:\n\n" + truncate_list(deployments, 15, render)


def format_rca(rca: RootCauseAnalysis) -> str:
    duration = (
        f"{round_half_up(rca.analysis_duration_ms / 1000)}s"
        if rca.analysis_duration_ms
        else "N/A"
    )
    text = "Root Cause Analysis\n"
    text += f"{'=' * 40}\n\n"
    text += f"RCA ID: {rca.id or 'N/A'}\n"
    text += f"Summary: {rca.root_cause_summary or 'N/A'}\n"
    text += f"Type: {rca.root_cause_type or 'unknown'} | Confidence: {pct(rca.confidence_score)}\n"
    text += f"Model: {rca.ai_model_used or 'unknown'} | Duration: {duration}\n"

    if rca.cascade_detected:
        text += f"\nCascade Detected: Yes | Origin: {rca.cascade_origin_monitor_id or 'unknown'}"
        text += (
            f" | Affected: {rca.affected_monitors_count or 0} monitors,"
            f" {rca.affected_services_count or 0} services\n"
        )

    if rca.correlated_deployment_id:
        score = num(rca.deploy_correlation_score) if rca.deploy_correlation_score else "N/A"
        text += f"\nDeploy Correlated: Yes | Score: {score}\n"

    analysis = rca.detailed_analysis
    if analysis is not None:
        if analysis.timeline:
            text += "\nTimeline:\n"
            text += truncate_list(analysis.timeline, 8, lambda t: f"  {t.time}: {t.event}")
        if analysis.deploy_analysis and analysis.deploy_analysis.suspected_lines:
            text += "\n\nSuspected Code Changes:\n"
            text += truncate_list(
                analysis.deploy_analysis.suspected_lines,
                5,
                lambda sl: (
                    f"  - {sl.filename}: {sl.change}\n    Why: {sl.explanation}"
                    f"\n    Fix: {sl.suggested_fix}"
                ),
            )

    if rca.suggested_actions:
        text += "\n\nSuggested Actions:\n"
        text += truncate_list(
            rca.suggested_actions, 5, lambda a: f"  [{a.urgency}] {a.action}"
        )

    if rca.prevention_recommendations:
        text += "\n\nPrevention:\n"
        text += truncate_list(
            rca.prevention_recommendations, 5, lambda r: f"  [{r.priority}] {r.action}"
        )

    return text


def format_safety_check(assessment: RiskAssessment) -> str:
    icon = "[SAFE]" if assessment.safe else "[UNSAFE]"
    text = f"{icon} Deploy Safety Check\n\n"
    text += f"Risk Level: {assessment.risk_level.value}\n"
    text += f"Recommendation: {assessment.recommendation.value}\n\n"
    text += f"{assessment.reason}\n"

    if assessment.active_issues:
        text += "\nActive Issues:\n"
        text += truncate_list(
            assessment.active_issues,
            10,
            lambda i: (
                f"  - [{i.type.value}] {i.message}"
                + (f" (confidence: {i.confidence}%)" if i.confidence else "")
            ),
        )
    return text


def format_executive_summary(summary: ExecutiveSummary) -> str:
    text = summary.summary or "No summary available."

    m = summary.metrics
    if m is not None:
        text += "\n\nMetrics:\n"
        text += f"  Overall Health: {pct(m.overall_health)}\n"
        text += (
            f"  Monitors: {m.total_monitors or 0} total ({m.monitors_up or 0} up,"
            f" {m.monitors_degraded or 0} degraded, {m.monitors_down or 0} down)\n"
        )
        text += (
            f"  Incidents: {m.incidents_in_period or 0}"
            f" | Predictions: {m.predictions_active or 0}"
            f" | Deployments: {m.deployments_in_period or 0}"
        )

    if summary.highlights:
        text += "\n\nHighlights:\n"
        text += truncate_list(summary.highlights, 5, lambda h: f"  - [{h.type}] {h.message}")

    if summary.suggested_questions:
        text += "\n\nSuggested Questions:\n"
        text += _bullets(summary.suggested_questions)

    return text


def format_monitors(monitors: Sequence[Monitor]) -> str:
    if not monitors:
        return "No monitors found."

    status_counts: dict[str, int] = {}
    type_counts: dict[str, int] = {}
    for m in monitors:
        status = m.effective_status
        status_counts[status] = status_counts.get(status, 0) + 1
        kind = (m.type or "unknown").lower()
        type_counts[kind] = type_counts.get(kind, 0) + 1

    status_parts = ", ".join(f"{count} {status}" for status, count in status_counts.items())
    type_parts = ", ".join(f"{count} {kind}" for kind, count in type_counts.items())

    ordered = sorted(monitors, key=lambda m: _STATUS_ORDER.get(m.effective_status, 5))

    def render(m: Monitor) -> str:
        status = m.effective_status
        icon = status_icon(
            status if status in ("paused", "maintenance") else (m.operational_status or "unknown")
        )
        return (
            f"- {icon} {m.name} ({m.type or 'unknown'}) | Response: {ms(m.response_time)}"
            f" | Uptime: {pct(m.uptime_percentage)}\n  ID: {m.id}"
        )

    text = f"{len(monitors)} monitors ({status_parts}):\n"
    text += f"By type: {type_parts}\n\n"
    text += truncate_list(ordered, 20, render)
    return text


def format_monitor_metrics(
    summary: MonitorMetricsSummary, now: Optional[datetime] = None
) -> str:
    m = summary.monitor
    cs = summary.current_status
    rt = summary.response_time
    up = summary.uptime
    checks = summary.checks
    ssl = summary.ssl_certificate

    status = cs.operational_status or m.operational_status or m.status or "unknown"
    text = f"Monitor: {m.name or 'Unknown'} ({m.type or 'unknown'})\n"
    text += f"Status: {status_icon(status)} | Target: {m.target or 'N/A'}\n"
    text += f"ID: {m.id or 'N/A'}\n"

    current = rt.current if rt.current is not None else cs.last_response_time
    text += "\nResponse Time:\n"
    text += (
        f"  Current: {ms(current)} | Day avg: {ms(rt.avg_day)} | Week avg: {ms(rt.avg_week)}"
        f" | Month avg: {ms(rt.avg_month)} | Year avg: {ms(rt.avg_year)}\n"
    )

    text += "\nUptime:\n"
    text += (
        f"  Day: {pct(up.day)} | Week: {pct(up.week)} | Month: {pct(up.month)}"
        f" | Year: {pct(up.year)}\n"
    )

    periods = (
        ("Last 24h", checks.day),
        ("Last 7d", checks.week),
        ("Last 30d", checks.month),
        ("Last 365d", checks.year),
    )
    if any(counts is not None for _, counts in periods):
        text += "\nChecks:\n"
        for period, counts in periods:
            if counts is not None:
                text += (
                    f"  {period}: {counts.total} total | {counts.up} up"
                    f" | {counts.down} down\n"
                )

    if ssl is not None:
        expires_at = ssl.expires_at or ssl.valid_until
        days_remaining = ssl.days_remaining
        if days_remaining is None and expires_at:
            expiry = _parse_expiry(expires_at)
            if expiry is not None:
                now = now or datetime.now(timezone.utc)
                days_remaining = math.floor((expiry - now).total_seconds() / 86400)
        text += "\nSSL Certificate:\n"
        text += f"  Status: {ssl.status or 'unknown'} | Issuer: {ssl.issuer or 'N/A'}"
        if expires_at:
            text += f" | Expires: {expires_at}"
        if days_remaining is not None:
            text += f" | Days remaining: {days_remaining}"

    return text


def _parse_expiry(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
