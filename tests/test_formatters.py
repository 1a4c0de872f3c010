"""
Test suite for text rendering of tool results
"""

from datetime import datetime, timedelta, timezone

import pytest

from uptimebolt_mcp.classifier import classify
from uptimebolt_mcp.formatters import (
    ago,
    format_ambiguous,
    format_deployments,
    format_executive_summary,
    format_incidents,
    format_monitor_health,
    format_monitor_metrics,
    format_monitors,
    format_predictions,
    format_rca,
    format_safety_check,
    format_service,
    format_service_list,
    ms,
    pct,
    status_icon,
    truncate_list,
)
from uptimebolt_mcp.models import (
    AggregatedSignals,
    Deployment,
    ExecutiveSummary,
    Incident,
    Monitor,
    MonitorMetricsSummary,
    Prediction,
    RootCauseAnalysis,
    Service,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class TestHelpers:
    """Test the small rendering helpers"""

    @pytest.mark.parametrize(
        "status, icon",
        [("up", "[UP]"), ("Healthy", "[UP]"), ("degraded", "[DEGRADED]"),
         ("investigating", "[DOWN]"), ("paused", "[PAUSED]"),
         ("maintenance", "[MAINTENANCE]"), ("weird", "[WEIRD]"), (None, "[UNKNOWN]")],
    )
    def test_status_icon(self, status, icon):
        assert status_icon(status) == icon

    def test_pct_and_ms(self):
        assert pct(99.949) == "99.9%"
        assert pct(None) == "N/A"
        assert ms(120.5) == "121ms"
        assert ms(None) == "N/A"

    @pytest.mark.parametrize(
        "delta, text",
        [(timedelta(minutes=5), "5m ago"), (timedelta(hours=3, minutes=10), "3h ago"),
         (timedelta(days=2, hours=1), "2d ago")],
    )
    def test_ago(self, delta, text):
        assert ago(NOW - delta, NOW) == text

    def test_truncate_list(self):
        text = truncate_list(list(range(25)), 20, str)

        lines = text.split("\n")
        assert len(lines) == 21
        assert lines[-1] == "... and 5 more"

    def test_truncate_list_within_limit(self):
        assert truncate_list([1, 2], 5, str) == "1\n2"


class TestAmbiguous:
    def test_services(self):
        text = format_ambiguous(
            "service",
            "checkout",
            [Service(id="svc-1", name="Checkout API"), Service(id="svc-2", name="Checkout Worker")],
        )

        assert text == (
            'Multiple services match "checkout":\n'
            "  - Checkout API (id: svc-1)\n"
            "  - Checkout Worker (id: svc-2)\n\n"
            "Please use service_id or a more specific name."
        )

    def test_monitors_include_type(self):
        text = format_ambiguous("monitor", "api", [Monitor(id="m1", name="api-http", type="http")])

        assert "  - api-http (id: m1, type: http)" in text
        assert text.endswith("Please use monitor_id or a more specific name.")


class TestServices:
    def test_service_list(self, services_payload):
        services = [Service.model_validate(s) for s in services_payload]

        text = format_service_list(services)

        assert text.startswith("3 services (1 monitors total):\n\n")
        assert (
            "- Checkout API (production) | Health: 92.5% | 1 monitors | high criticality\n"
            "  ID: svc-1\n"
            "    [UP] checkout-http (http)"
        ) in text
        assert "- Billing (staging) | normal criticality\n  ID: svc-3" in text

    def test_empty_list(self):
        assert format_service_list([]) == "No services found."

    def test_single_service(self):
        service = Service.model_validate(
            {
                "id": "svc-1",
                "name": "Checkout API",
                "healthScore": 88.04,
                "description": "Handles payments",
                "serviceMonitors": [
                    {"monitor": {"id": "m1", "name": "checkout-http", "type": "http",
                                 "status": "active", "operationalStatus": "degraded",
                                 "responseTime": 340, "uptimePercentage": 99.5}}
                ],
            }
        )

        text = format_service(service)

        assert text.startswith("Service: Checkout API\n")
        assert "Environment: unknown | Criticality: normal\n" in text
        assert "Health Score: 88.0%\n" in text
        assert "Description: Handles payments\n" in text
        assert "Monitors (1):\n  [DEGRADED] checkout-http (http) | Response: 340ms | Uptime: 99.5%" in text


class TestPredictionsAndIncidents:
    def test_predictions(self, prediction_payload):
        predictions = [Prediction.model_validate(prediction_payload())]

        text = format_predictions(predictions)

        assert text == (
            "1 active predictions:\n\n"
            "- [LATENCY_DEGRADATION] latency_degradation | Monitor: checkout-http"
            " | Confidence: 90% | Window: 2h"
        )

    def test_no_predictions(self):
        assert format_predictions([]) == "No active predictions."

    def test_incident_with_analysis(self):
        incident = Incident.model_validate(
            {
                "id": "inc-1",
                "title": "Checkout down",
                "severity": "critical",
                "status": "investigating",
                "monitor": {"name": "checkout-http"},
                "startTime": (NOW - timedelta(minutes=42)).isoformat(),
                "downtimeDuration": 630,
                "errorCode": "ECONNREFUSED",
            }
        )
        rca = RootCauseAnalysis(
            id="rca-1",
            root_cause_summary="DB pool exhausted",
            root_cause_type="resource",
            confidence_score=87,
            cascade_detected=True,
            correlated_deployment_id="dep-1",
        )

        text = format_incidents([incident], {"inc-1": rca}, now=NOW)

        assert text.startswith("1 incidents:\n\n- [DOWN] [CRITICAL] Checkout down\n")
        assert (
            "  ID: inc-1 | Monitor: checkout-http | Duration: 11min | Started: 42m ago"
            " | Error: ECONNREFUSED"
        ) in text
        assert (
            "  RCA: DB pool exhausted (resource, confidence: 87.0%) [CASCADE] [DEPLOY-RELATED]"
        ) in text

    def test_ongoing_incident(self):
        incident = Incident(id="inc-2", status="detecting", start_time=NOW)

        text = format_incidents([incident], now=NOW)

        assert "[DOWN] [UNKNOWN] Untitled" in text
        assert "Monitor: unknown | Duration: ongoing | Started: 0m ago" in text

    def test_no_incidents(self):
        assert format_incidents([]) == "No incidents found."


class TestMonitors:
    def test_monitor_list_order_and_counts(self, monitors_payload):
        monitors = [Monitor.model_validate(m) for m in monitors_payload]

        text = format_monitors(monitors)

        assert text.startswith("3 monitors (1 up, 1 down, 1 paused):\n")
        assert "By type: 1 http, 1 database, 1 ping\n\n" in text
        body = text.split("\n\n", 1)[1]
        assert body.index("checkout-db") < body.index("billing-ping") < body.index("checkout-http")
        assert "- [PAUSED] billing-ping (ping) | Response: N/A | Uptime: N/A\n  ID: mon-3" in body
        assert "- [UP] checkout-http (http) | Response: 120ms | Uptime: 100.0%" in body

    def test_monitor_health_with_predictions(self, prediction_payload):
        monitor = Monitor(
            id="mon-1", name="checkout-http", type="http", operational_status="up",
            response_time=99.6, uptime_percentage=99.99, target="https://shop.test",
        )

        text = format_monitor_health(monitor, [Prediction.model_validate(prediction_payload())])

        assert text.startswith("Monitor: checkout-http\nID: mon-1\nType: http | Status: [UP] up\n")
        assert "Response Time: 100ms | Uptime: 100.0%\n" in text
        assert "Target: https://shop.test\n" in text
        assert "Active Predictions (1):\n  - latency_degradation | Confidence: 90% | Window: 2h" in text

    def test_monitor_metrics(self):
        summary = MonitorMetricsSummary.model_validate(
            {
                "monitor": {"id": "mon-1", "name": "api", "type": "http", "target": "https://a.test"},
                "currentStatus": {"operationalStatus": "up", "lastResponseTime": 88},
                "responseTime": {"avgDay": 100.2, "avgWeek": 110},
                "uptime": {"day": 100, "week": 99.5},
                "checks": {"day": {"total": 1440, "up": 1439, "down": 1}},
                "sslCertificate": {"status": "valid", "issuer": "R3",
                                   "expiresAt": "2026-11-18T12:00:00Z"},
            }
        )

        text = format_monitor_metrics(summary, now=NOW)

        assert text.startswith("Monitor: api (http)\nStatus: [UP] | Target: https://a.test\nID: mon-1\n")
        assert "  Current: 88ms | Day avg: 100ms | Week avg: 110ms | Month avg: N/A | Year avg: N/A\n" in text
        assert "  Day: 100.0% | Week: 99.5% | Month: N/A | Year: N/A\n" in text
        assert "Checks:\n  Last 24h: 1440 total | 1439 up | 1 down\n" in text
        assert "Last 7d" not in text
        assert text.endswith(
            "SSL Certificate:\n  Status: valid | Issuer: R3 | Expires: 2026-11-18T12:00:00Z"
            " | Days remaining: 30"
        )


class TestDeploymentsAndAnalysis:
    def deployment(self) -> Deployment:
        return Deployment.model_validate(
            {
                "id": "dep-1",
                "deployedAt": (NOW - timedelta(hours=2)).isoformat(),
                "deploymentStatus": "success",
                "commitMessage": "Bump connection pool",
                "commitAuthor": "dana",
                "commitSha": "abcdef1234567890",
                "branch": "main",
                "filesChanged": 3,
                "correlations": [{"correlationScore": 0.8, "confidence": "high"}],
            }
        )

    def test_deployments_with_correlations(self):
        text = format_deployments([self.deployment()], now=NOW)

        assert "- [SUCCESS] Bump connection pool (main)\n" in text
        assert "  Author: dana | SHA: abcdef12 | 2h ago | 3 files" in text
        assert "  Correlations: score=0.8 (high)" in text

    def test_deployments_without_correlations(self):
        text = format_deployments([self.deployment()], include_correlations=False, now=NOW)

        assert "Correlations" not in text

    def test_no_deployments(self):
        assert format_deployments([]) == "No recent deployments."

    def test_rca(self):
        rca = RootCauseAnalysis.model_validate(
            {
                "id": "rca-1",
                "rootCauseSummary": "Pool exhausted",
                "rootCauseType": "resource",
                "confidenceScore": 91,
                "aiModelUsed": "analysis-v2",
                "analysisDurationMs": 12400,
                "detailedAnalysis": {"timeline": [{"time": "10:00", "event": "Spike"}]},
                "suggestedActions": [{"action": "Raise pool size", "urgency": "high"}],
                "preventionRecommendations": [{"action": "Add alert", "priority": "medium"}],
            }
        )

        text = format_rca(rca)

        assert text.startswith("Root Cause Analysis\n" + "=" * 40 + "\n\nRCA ID: rca-1\n")
        assert "Type: resource | Confidence: 91.0%\n" in text
        assert "Model: analysis-v2 | Duration: 12s\n" in text
        assert "\nTimeline:\n  10:00: Spike" in text
        assert "\n\nSuggested Actions:\n  [high] Raise pool size" in text
        assert text.endswith("\n\nPrevention:\n  [medium] Add alert")
        assert "Cascade Detected" not in text


class TestSafetyAndSummary:
    def test_safe_verdict(self):
        text = format_safety_check(classify(AggregatedSignals()))

        assert text == (
            "[SAFE] Deploy Safety Check\n\n"
            "Risk Level: low\n"
            "Recommendation: proceed\n\n"
            "your infrastructure is stable with no active issues. Safe to deploy.\n"
        )

    def test_medium_verdict_is_still_safe(self):
        text = format_safety_check(classify(AggregatedSignals(health_score=78, target_name="API")))

        assert text.startswith(
            "[SAFE] Deploy Safety Check\n\nRisk Level: medium\nRecommendation: proceed_with_caution\n"
        )
        assert "\nActive Issues:\n  - [health] Service health score is 78.0% (below 85%)" in text

    def test_unsafe_verdict_lists_confidence(self, prediction_payload):
        prediction = Prediction.model_validate(prediction_payload(confidence=0.92))
        text = format_safety_check(classify(AggregatedSignals(predictions=[prediction])))

        assert text.startswith("[UNSAFE] Deploy Safety Check")
        assert "  - [prediction] latency_degradation: checkout-http (confidence: 92%)" in text

    def test_executive_summary(self):
        summary = ExecutiveSummary.model_validate(
            {
                "summary": "All good overall.",
                "metrics": {"overallHealth": 97.25, "totalMonitors": 12, "monitorsUp": 11,
                            "monitorsDown": 1, "incidentsInPeriod": 2},
                "highlights": [{"type": "warning", "message": "DB slow"}],
                "suggestedQuestions": ["What caused the DB slowdown?"],
            }
        )

        text = format_executive_summary(summary)

        assert text.startswith("All good overall.\n\nMetrics:\n")
        assert "  Monitors: 12 total (11 up, 0 degraded, 1 down)\n" in text
        assert "  Incidents: 2 | Predictions: 0 | Deployments: 0" in text
        assert "\n\nHighlights:\n  - [warning] DB slow" in text
        assert text.endswith("\n\nSuggested Questions:\n  - What caused the DB slowdown?")

    def test_empty_executive_summary(self):
        assert format_executive_summary(ExecutiveSummary()) == "No summary available."
