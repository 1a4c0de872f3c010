"""
Core data models for uptimebolt-mcp

Backend payloads are validated into Pydantic models at the gateway boundary.
Field names follow Python conventions and accept the backend's camelCase keys
as aliases; unknown keys are ignored and missing keys become explicit None.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class RiskLevel(str, Enum):
    """Deploy risk, ordered low < medium < high"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def raise_to(self, other: "RiskLevel") -> "RiskLevel":
        """Return the higher of the two levels, never a lower one"""
        return other if other.rank > self.rank else self


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


class Recommendation(str, Enum):
    PROCEED = "proceed"
    PROCEED_WITH_CAUTION = "proceed_with_caution"
    WAIT_AND_MONITOR = "wait_and_monitor"


class IncidentStatus(str, Enum):
    """Incident statuses known to the backend"""

    DETECTING = "detecting"
    INVESTIGATING = "investigating"
    IDENTIFIED = "identified"
    RESOLVING = "resolving"
    MONITORING = "monitoring"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false-positive"


INACTIVE_INCIDENT_STATUSES = frozenset(
    {IncidentStatus.RESOLVED.value, IncidentStatus.FALSE_POSITIVE.value}
)


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueType(str, Enum):
    INCIDENT = "incident"
    PREDICTION = "prediction"
    HEALTH = "health"


def normalize_confidence(value: Optional[float]) -> float:
    """
    Bring a prediction confidence onto the 0-100 scale.

    The backend reports confidence either as a fraction in [0, 1] or as a
    percentage. Values <= 1 are treated as fractions and multiplied by 100,
    anything above 1 is taken as a percentage already. A genuine 1% confidence
    sent as ``1`` is therefore read as 100%; the backend never emits that.
    Missing confidence counts as 0.
    """
    if value is None:
        return 0.0
    if value <= 1:
        return value * 100
    return float(value)


def _lower(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None for anything unparseable"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# Enum-like backend strings are compared lower-cased everywhere downstream
LowerStr = Annotated[Optional[str], BeforeValidator(_lower)]
Timestamp = Annotated[Optional[datetime], BeforeValidator(_parse_timestamp)]


class BackendModel(BaseModel):
    """Base for models parsed from backend JSON"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class NamedEntity(BackendModel):
    """Anything that can be looked up by name: a service or a monitor"""

    id: str = ""
    name: str = ""


class Monitor(NamedEntity):
    type: Optional[str] = None
    status: Optional[str] = None
    operational_status: Optional[str] = None
    response_time: Optional[float] = None
    uptime_percentage: Optional[float] = None
    target: Optional[str] = None
    service_id: Optional[str] = None

    @property
    def effective_status(self) -> str:
        """Administrative status when paused or in maintenance, else operational"""
        admin = (self.status or "active").lower()
        if admin in ("paused", "maintenance"):
            return admin
        return (self.operational_status or "up").lower()


class MonitorRef(BackendModel):
    """Monitor summary embedded in incidents and predictions"""

    id: Optional[str] = None
    name: Optional[str] = None
    service_id: Optional[str] = None


class Service(NamedEntity):
    environment: Optional[str] = None
    criticality: Optional[str] = None
    description: Optional[str] = None
    health_score: Optional[float] = None
    current_health_score: Optional[float] = None
    service_monitors: list[Monitor] = Field(default_factory=list)

    @field_validator("service_monitors", mode="before")
    @classmethod
    def _unwrap_monitor_links(cls, value: Any) -> Any:
        # Links come either as {"monitor": {...}} or as the monitor itself
        if not isinstance(value, list):
            return []
        return [
            (item.get("monitor") or item) if isinstance(item, dict) else item
            for item in value
        ]


class HealthSignal(BackendModel):
    health_score: Optional[float] = None


class Incident(BackendModel):
    id: str = ""
    title: Optional[str] = None
    severity: LowerStr = None
    priority: LowerStr = None
    status: LowerStr = None
    service_id: Optional[str] = None
    monitor_id: Optional[str] = None
    monitor: Optional[MonitorRef] = None
    start_time: Timestamp = None
    created_at: Timestamp = None
    downtime_duration: Optional[float] = None
    error_code: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_INCIDENT_STATUSES

    @property
    def is_critical(self) -> bool:
        return Severity.CRITICAL.value in (self.severity, self.priority)

    @property
    def started_at(self) -> Optional[datetime]:
        return self.start_time or self.created_at

    def belongs_to_service(self, service_id: str) -> bool:
        if self.service_id == service_id:
            return True
        return self.monitor is not None and self.monitor.service_id == service_id

    def belongs_to_monitor(self, monitor_id: str) -> bool:
        if self.monitor_id == monitor_id:
            return True
        return self.monitor is not None and self.monitor.id == monitor_id


class Prediction(BackendModel):
    id: str = ""
    prediction_type: Optional[str] = None
    confidence: Optional[float] = None
    status: LowerStr = None
    service_id: Optional[str] = None
    monitor_id: Optional[str] = None
    monitor: Optional[MonitorRef] = None
    severity: Optional[str] = None
    time_window: Optional[str] = None

    @property
    def normalized_confidence(self) -> float:
        return normalize_confidence(self.confidence)

    @property
    def rounded_confidence(self) -> int:
        """Normalized confidence rounded half up to a whole percent"""
        return math.floor(self.normalized_confidence + 0.5)

    @property
    def is_active(self) -> bool:
        return self.status is None or self.status in ("", "active")

    @property
    def target_label(self) -> str:
        if self.monitor is not None and self.monitor.name:
            return self.monitor.name
        return self.monitor_id or "unknown"

    def belongs_to_monitor(self, monitor_id: str) -> bool:
        if self.monitor_id == monitor_id:
            return True
        return self.monitor is not None and self.monitor.id == monitor_id


class DeploymentCorrelation(BackendModel):
    correlation_score: Optional[float] = None
    confidence: Optional[Any] = None


class Deployment(BackendModel):
    id: str = ""
    service_id: Optional[str] = None
    deployed_at: Timestamp = None
    deployment_status: Optional[str] = None
    status: Optional[str] = None
    commit_message: Optional[str] = None
    commit_author: Optional[str] = None
    commit_sha: Optional[str] = None
    branch: Optional[str] = None
    files_changed: Optional[int] = None
    correlations: list[DeploymentCorrelation] = Field(default_factory=list)


class TimelineEntry(BackendModel):
    time: Optional[str] = None
    event: Optional[str] = None


class SuspectedLine(BackendModel):
    filename: Optional[str] = None
    change: Optional[str] = None
    explanation: Optional[str] = None
    suggested_fix: Optional[str] = None


class DeployAnalysis(BackendModel):
    suspected_lines: list[SuspectedLine] = Field(default_factory=list)


class DetailedAnalysis(BackendModel):
    timeline: list[TimelineEntry] = Field(default_factory=list)
    deploy_analysis: Optional[DeployAnalysis] = None


class SuggestedAction(BackendModel):
    action: Optional[str] = None
    urgency: Optional[str] = None


class PreventionRecommendation(BackendModel):
    action: Optional[str] = None
    priority: Optional[str] = None


class RootCauseAnalysis(BackendModel):
    """Root cause analysis as generated and stored by the backend"""

    id: Optional[str] = None
    root_cause_summary: Optional[str] = None
    root_cause_type: Optional[str] = None
    confidence_score: Optional[float] = None
    ai_model_used: Optional[str] = None
    analysis_duration_ms: Optional[float] = None
    cascade_detected: bool = False
    cascade_origin_monitor_id: Optional[str] = None
    affected_monitors_count: Optional[int] = None
    affected_services_count: Optional[int] = None
    correlated_deployment_id: Optional[str] = None
    deploy_correlation_score: Optional[float] = None
    detailed_analysis: Optional[DetailedAnalysis] = None
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)
    prevention_recommendations: list[PreventionRecommendation] = Field(
        default_factory=list
    )


class SummaryMetrics(BackendModel):
    overall_health: Optional[float] = None
    total_monitors: Optional[int] = None
    monitors_up: Optional[int] = None
    monitors_degraded: Optional[int] = None
    monitors_down: Optional[int] = None
    incidents_in_period: Optional[int] = None
    predictions_active: Optional[int] = None
    deployments_in_period: Optional[int] = None


class Highlight(BackendModel):
    type: Optional[str] = None
    message: Optional[str] = None


class ExecutiveSummary(BackendModel):
    summary: Optional[str] = None
    metrics: Optional[SummaryMetrics] = None
    highlights: list[Highlight] = Field(default_factory=list)
    suggested_questions: list[str] = Field(default_factory=list)


class CurrentStatus(BackendModel):
    operational_status: Optional[str] = None
    last_response_time: Optional[float] = None


class ResponseTimeStats(BackendModel):
    current: Optional[float] = None
    avg_day: Optional[float] = None
    avg_week: Optional[float] = None
    avg_month: Optional[float] = None
    avg_year: Optional[float] = None


class UptimeStats(BackendModel):
    day: Optional[float] = None
    week: Optional[float] = None
    month: Optional[float] = None
    year: Optional[float] = None


class CheckCounts(BackendModel):
    total: int = 0
    up: int = 0
    down: int = 0


class ChecksSummary(BackendModel):
    day: Optional[CheckCounts] = None
    week: Optional[CheckCounts] = None
    month: Optional[CheckCounts] = None
    year: Optional[CheckCounts] = None


class SslCertificate(BackendModel):
    status: Optional[str] = None
    issuer: Optional[str] = None
    expires_at: Optional[str] = None
    valid_until: Optional[str] = None
    days_remaining: Optional[int] = None


_FLAT_MONITOR_KEYS = ("id", "name", "type", "target", "status", "operationalStatus")


class MonitorMetricsSummary(BackendModel):
    monitor: Monitor = Field(default_factory=Monitor)
    current_status: CurrentStatus = Field(default_factory=CurrentStatus)
    response_time: ResponseTimeStats = Field(default_factory=ResponseTimeStats)
    uptime: UptimeStats = Field(default_factory=UptimeStats)
    checks: ChecksSummary = Field(default_factory=ChecksSummary)
    ssl_certificate: Optional[SslCertificate] = None

    @model_validator(mode="before")
    @classmethod
    def _flat_monitor(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        # Older backends return the monitor fields at the top level
        if not data.get("monitor"):
            data = {
                **data,
                "monitor": {
                    key: data[key]
                    for key in _FLAT_MONITOR_KEYS
                    if data.get(key) is not None
                },
            }
        return {key: value for key, value in data.items() if value is not None}


class AggregatedSignals(BaseModel):
    """Everything the risk classifier looks at"""

    health_score: Optional[float] = None
    predictions: list[Prediction] = Field(default_factory=list)
    incidents: list[Incident] = Field(default_factory=list)
    target_name: Optional[str] = None


class ActiveIssue(BaseModel):
    type: IssueType
    message: str
    confidence: Optional[int] = None


class RiskAssessment(BaseModel):
    """Deploy-safety verdict, recomputed on every call"""

    safe: bool
    risk_level: RiskLevel
    reason: str
    recommendation: Recommendation
    active_issues: list[ActiveIssue] = Field(default_factory=list)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Envelope returned by every tool handler"""

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent]
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def from_text(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def from_error(cls, message: str) -> "ToolResult":
        return cls(content=[TextContent(text=f"Error: {message}")], is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(item.text for item in self.content)
