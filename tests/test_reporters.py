"""Unit tests for assessment reporters."""

import json
from datetime import datetime, timezone
from io import StringIO

from rich.console import Console

from agrisk.reporters.console_reporter import ConsoleReporter
from agrisk.reporters.json_reporter import JsonReporter
from agrisk.scoring.models import (
    AnalyzerResult,
    Assessment,
    AssessmentKind,
    LevelStatistics,
    RiskLevel,
)


def _make_assessment() -> Assessment:
    """Create a sample route assessment for testing."""
    return Assessment(
        assessment_id="65f0c0ffee",
        kind=AssessmentKind.ROUTE_ANOMALY,
        subject_id="tr_1",
        total_score=0.642,
        level=RiskLevel.HIGH,
        factors={
            "stall_detection": AnalyzerResult(
                score=0.375,
                reasons=["Prolonged stall detected: 45 minutes"],
                is_anomalous=True,
            ),
            "time_anomaly": AnalyzerResult(score=0.2, reasons=["Minor delay: 1.5 hours behind schedule"]),
        },
        recommendations=[
            "Immediate intervention recommended - contact driver directly",
            "Check for delivery delays - driver may need assistance",
        ],
        created_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        is_anomalous=True,
    )


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=160, color_system=None), buffer


class TestJsonReporter:
    def test_render_produces_valid_json(self):
        data = json.loads(JsonReporter().render(_make_assessment()))
        assert data["kind"] == "route_anomaly"
        assert data["level"] == "high"
        assert data["factors"]["stall_detection"]["is_anomalous"] is True
        assert data["created_at"].startswith("2026-03-01T12:00:00")

    def test_render_round_trips(self):
        assessment = _make_assessment()
        restored = Assessment.model_validate_json(JsonReporter().render(assessment))
        assert restored == assessment

    def test_render_many_and_statistics(self):
        many = json.loads(JsonReporter().render_many([_make_assessment()] * 2))
        stats = json.loads(JsonReporter().render_statistics([
            LevelStatistics(level=RiskLevel.HIGH, count=2, avg_score=0.7, failed=1),
        ]))
        assert len(many) == 2
        assert stats == [
            {"level": "high", "count": 2, "avg_score": 0.7, "successful": 0, "failed": 1},
        ]

    def test_write_to_file(self, tmp_path):
        output = tmp_path / "assessment.json"
        JsonReporter().write(_make_assessment(), output)
        assert json.loads(output.read_text())["subject_id"] == "tr_1"


class TestConsoleReporter:
    def test_render_shows_summary_factors_and_recommendations(self):
        console, buffer = _console()
        ConsoleReporter(console).render(_make_assessment())
        out = buffer.getvalue()
        assert "Route Anomaly" in out
        assert "Level: HIGH" in out
        assert "Stall Detection" in out
        assert "Prolonged stall detected: 45 minutes" in out
        assert "Anomalous behavior detected" in out
        assert "- Check for delivery delays - driver may need assistance" in out

    def test_render_fallback_assessment(self):
        console, buffer = _console()
        fallback = Assessment(
            kind=AssessmentKind.PAYMENT_RISK,
            subject_id="ord_1",
            total_score=0.5,
            level=RiskLevel.MEDIUM,
            recommendations=["Manual review recommended due to assessment error"],
            error=True,
        )
        ConsoleReporter(console).render(fallback)
        out = buffer.getvalue()
        assert "Assessment failed; fallback score used" in out
        assert "Factors" not in out

    def test_render_many_empty(self):
        console, buffer = _console()
        ConsoleReporter(console).render_many([])
        assert "No assessments found." in buffer.getvalue()

    def test_render_statistics(self):
        console, buffer = _console()
        ConsoleReporter(console).render_statistics(
            [LevelStatistics(level=RiskLevel.LOW, count=12, avg_score=0.118, successful=10)],
            window_days=30,
        )
        out = buffer.getvalue()
        assert "last 30 days" in out
        assert "0.118" in out
