"""Tests for the command-line interface."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from agrisk.cli import main, parse_args, parse_timestamp
from agrisk.scoring.models import AssessmentKind, Outcome
from agrisk.storage.memory import MemoryStorage
from agrisk.storage.recorder import AssessmentRecorder

FIXTURE = str(Path(__file__).parent / "fixtures" / "sample_history.json")
AS_OF = "2026-03-01T12:00:00+00:00"


class TestParseArgs:
    def test_payment_arguments(self):
        args = parse_args([
            "--fixture", FIXTURE, "payment",
            "--order-id", "ord_9", "--buyer-id", "buyer_1", "--amount", "1500",
        ])
        assert args.command == "payment"
        assert args.amount == 1500.0
        assert args.payment_method == "cod"
        assert args.format == "console"

    def test_naive_timestamp_is_utc(self):
        parsed = parse_timestamp("2026-03-01T12:00:00")
        assert parsed.utcoffset().total_seconds() == 0

    def test_bad_timestamp_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["route", "--transport-id", "tr_1", "--as-of", "yesterday"])


class TestMain:
    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit):
            main([])

    def test_payment_json(self, capsys):
        code = main([
            "--fixture", FIXTURE, "--format", "json", "payment",
            "--order-id", "ord_9", "--buyer-id", "buyer_1", "--amount", "1200",
            "--region", "Dhaka", "--farmer-region", "Dhaka", "--as-of", AS_OF,
        ])
        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["kind"] == "payment_risk"
        assert data["subject_id"] == "ord_9"
        assert data["level"] == "low"
        assert list(data["factors"]) == [
            "payment_history",
            "order_patterns",
            "geographic_risk",
            "account_age",
            "order_frequency",
            "amount_anomaly",
        ]

    def test_route_console(self, capsys):
        code = main([
            "--fixture", FIXTURE, "route", "--transport-id", "tr_1", "--as-of", AS_OF,
        ])
        out = capsys.readouterr().out
        assert code == 0
        assert "Route Anomaly" in out
        assert "Stall Detection" in out
        assert "Recommendations:" in out

    def test_route_unknown_transport_is_fallback(self, capsys):
        main([
            "--fixture", FIXTURE, "--format", "json", "route",
            "--transport-id", "tr_404", "--as-of", AS_OF,
        ])
        data = json.loads(capsys.readouterr().out)
        assert data["error"] is True
        assert data["recommendations"] == ["Manual review recommended due to assessment error"]

    def test_route_requires_both_coordinates(self, capsys):
        code = main(["--fixture", FIXTURE, "route", "--transport-id", "tr_1", "--lat", "23.7"])
        assert code == 1
        assert "--lat and --lng" in capsys.readouterr().err

    def test_store_flag_records_assessment(self, capsys):
        store = MemoryStorage()
        with patch("agrisk.cli.get_recorder", return_value=AssessmentRecorder(store)):
            main([
                "--fixture", FIXTURE, "--store", "--format", "json", "payment",
                "--order-id", "ord_9", "--buyer-id", "buyer_1", "--amount", "1200",
                "--as-of", AS_OF,
            ])
        data = json.loads(capsys.readouterr().out)
        assert len(store) == 1
        assert data["assessment_id"] is not None

    def test_outcome_recent_and_stats(self, capsys):
        store = MemoryStorage()
        recorder = AssessmentRecorder(store)
        with patch("agrisk.cli.get_recorder", return_value=recorder):
            main([
                "--fixture", FIXTURE, "--store", "route", "--transport-id", "tr_1",
            ])
            main(["outcome", "route_anomaly", "tr_1", "failure", "--reason", "spoiled"])
            capsys.readouterr()

            main(["--format", "json", "recent", "--kind", "route_anomaly"])
            recent = json.loads(capsys.readouterr().out)

            main(["--format", "json", "stats", "--days", "7"])
            stats = json.loads(capsys.readouterr().out)

        assert recent[0]["outcome"] == Outcome.FAILURE.value
        assert recent[0]["outcome_reason"] == "spoiled"
        assert sum(row["count"] for row in stats) == 1
        assert sum(row["failed"] for row in stats) == 1
        assert recorder.get_recent_assessments()[0].kind == AssessmentKind.ROUTE_ANOMALY

    def test_invalid_config_reports_error(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("payment_risk:\n  weights:\n    payment_history: 0.9\n")
        code = main([
            "--config", str(path), "--fixture", FIXTURE, "payment",
            "--order-id", "o", "--buyer-id", "b", "--amount", "1",
        ])
        assert code == 1
        assert "Configuration error" in capsys.readouterr().err
