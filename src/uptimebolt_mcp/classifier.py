"""
Deploy-safety risk classifier

Pure function from aggregated signals to a risk verdict. Rules only ever
raise the risk level, so the verdict does not depend on rule order.
"""

from typing import Callable

from .models import (
    ActiveIssue,
    AggregatedSignals,
    IssueType,
    Prediction,
    Recommendation,
    RiskAssessment,
    RiskLevel,
)

DEFAULT_TARGET_NAME = "your infrastructure"

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 60
HEALTH_CRITICAL = 70
HEALTH_WARNING = 85

RECOMMENDATIONS = {
    RiskLevel.LOW: Recommendation.PROCEED,
    RiskLevel.MEDIUM: Recommendation.PROCEED_WITH_CAUTION,
    RiskLevel.HIGH: Recommendation.WAIT_AND_MONITOR,
}

REASONS = {
    RiskLevel.LOW: "{name} is stable with no active issues. Safe to deploy.",
    RiskLevel.MEDIUM: "{name} has minor issues. Deploy with caution and monitor closely.",
    RiskLevel.HIGH: "{name} has critical issues. Deploying now could worsen the situation.",
}

Rule = Callable[[AggregatedSignals], tuple[RiskLevel, list[ActiveIssue]]]


def critical_incidents(signals: AggregatedSignals) -> tuple[RiskLevel, list[ActiveIssue]]:
    issues = [
        ActiveIssue(
            type=IssueType.INCIDENT,
            message=f"Critical incident: {incident.title or 'Unknown'} ({incident.status})",
        )
        for incident in signals.incidents
        if incident.is_critical
    ]
    return (RiskLevel.HIGH if issues else RiskLevel.LOW), issues


def other_incidents(signals: AggregatedSignals) -> tuple[RiskLevel, list[ActiveIssue]]:
    issues = [
        ActiveIssue(
            type=IssueType.INCIDENT,
            message=f"Active incident: {incident.title or 'Unknown'} ({incident.severity})",
        )
        for incident in signals.incidents
        if not incident.is_critical
    ]
    return (RiskLevel.MEDIUM if issues else RiskLevel.LOW), issues


def _prediction_issue(prediction: Prediction) -> ActiveIssue:
    return ActiveIssue(
        type=IssueType.PREDICTION,
        message=f"{prediction.prediction_type}: {prediction.target_label}",
        confidence=prediction.rounded_confidence,
    )


def high_confidence_predictions(
    signals: AggregatedSignals,
) -> tuple[RiskLevel, list[ActiveIssue]]:
    issues = [
        _prediction_issue(p)
        for p in signals.predictions
        if p.normalized_confidence >= HIGH_CONFIDENCE
    ]
    return (RiskLevel.HIGH if issues else RiskLevel.LOW), issues


def medium_confidence_predictions(
    signals: AggregatedSignals,
) -> tuple[RiskLevel, list[ActiveIssue]]:
    issues = [
        _prediction_issue(p)
        for p in signals.predictions
        if MEDIUM_CONFIDENCE <= p.normalized_confidence < HIGH_CONFIDENCE
    ]
    return (RiskLevel.MEDIUM if issues else RiskLevel.LOW), issues


def health_score(signals: AggregatedSignals) -> tuple[RiskLevel, list[ActiveIssue]]:
    score = signals.health_score
    if score is None or score >= HEALTH_WARNING:
        return RiskLevel.LOW, []
    if score < HEALTH_CRITICAL:
        level, suffix = RiskLevel.HIGH, f"below {HEALTH_CRITICAL}% threshold"
    else:
        level, suffix = RiskLevel.MEDIUM, f"below {HEALTH_WARNING}%"
    issue = ActiveIssue(
        type=IssueType.HEALTH,
        message=f"Service health score is {score:.1f}% ({suffix})",
    )
    return level, [issue]


RULES: tuple[Rule, ...] = (
    critical_incidents,
    other_incidents,
    high_confidence_predictions,
    medium_confidence_predictions,
    health_score,
)


def classify(
    signals: AggregatedSignals, rules: tuple[Rule, ...] = RULES
) -> RiskAssessment:
    """
    Fold every rule into a single verdict

    Issues are listed in rule order. ``safe`` is False only for high risk;
    medium risk is cautionary and still allows a deploy.
    """
    risk_level = RiskLevel.LOW
    active_issues: list[ActiveIssue] = []

    for rule in rules:
        level, issues = rule(signals)
        risk_level = risk_level.raise_to(level)
        active_issues.extend(issues)

    name = signals.target_name or DEFAULT_TARGET_NAME
    return RiskAssessment(
        safe=risk_level is not RiskLevel.HIGH,
        risk_level=risk_level,
        reason=REASONS[risk_level].format(name=name),
        recommendation=RECOMMENDATIONS[risk_level],
        active_issues=active_issues,
    )
