"""Tests for assessment stores and the recorder."""

from __future__ import annotations

import logging
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from agrisk.scoring.models import (
    Assessment,
    AssessmentFilter,
    AssessmentKind,
    Outcome,
    RiskLevel,
    utcnow,
)
from agrisk.storage.memory import MemoryStorage
from agrisk.storage.mongo import MongoStorage
from agrisk.storage.recorder import AssessmentRecorder


def _make_assessment(
    subject_id: str = "ord_1",
    kind: AssessmentKind = AssessmentKind.PAYMENT_RISK,
    score: float = 0.2,
    level: RiskLevel = RiskLevel.LOW,
    minutes_ago: float = 10,
) -> Assessment:
    return Assessment(
        kind=kind,
        subject_id=subject_id,
        total_score=score,
        level=level,
        created_at=utcnow() - timedelta(minutes=minutes_ago),
    )


class TestMemoryStorage:
    def test_save_assigns_id(self):
        store = MemoryStorage()
        assessment_id = store.save(_make_assessment())
        assert assessment_id
        assert store.recent(AssessmentFilter(), 10)[0].assessment_id == assessment_id

    def test_recent_newest_first_with_limit(self):
        store = MemoryStorage()
        for i, minutes in enumerate([30, 10, 20]):
            store.save(_make_assessment(subject_id=f"ord_{i}", minutes_ago=minutes))
        recent = store.recent(AssessmentFilter(), 2)
        assert [a.subject_id for a in recent] == ["ord_1", "ord_2"]

    def test_recent_filters(self):
        store = MemoryStorage()
        store.save(_make_assessment(subject_id="ord_1"))
        store.save(_make_assessment(subject_id="tr_1", kind=AssessmentKind.ROUTE_ANOMALY))
        store.save(_make_assessment(subject_id="ord_2", score=0.9, level=RiskLevel.CRITICAL))

        routes = store.recent(AssessmentFilter(kind=AssessmentKind.ROUTE_ANOMALY), 10)
        critical = store.recent(AssessmentFilter(level=RiskLevel.CRITICAL), 10)
        assert [a.subject_id for a in routes] == ["tr_1"]
        assert [a.subject_id for a in critical] == ["ord_2"]

    def test_outcome_updates_every_assessment_of_subject(self):
        store = MemoryStorage()
        store.save(_make_assessment(minutes_ago=20))
        store.save(_make_assessment(minutes_ago=10))
        store.save(_make_assessment(subject_id="ord_2"))

        updated = store.set_outcome(
            AssessmentKind.PAYMENT_RISK, "ord_1", Outcome.FAILURE, "refused at door", utcnow(),
        )
        assert updated == 2
        labelled = store.recent(AssessmentFilter(has_outcome=True), 10)
        assert {a.subject_id for a in labelled} == {"ord_1"}
        assert labelled[0].outcome_reason == "refused at door"

    def test_outcome_last_write_wins(self):
        store = MemoryStorage()
        store.save(_make_assessment())
        store.set_outcome(AssessmentKind.PAYMENT_RISK, "ord_1", Outcome.FAILURE, None, utcnow())
        store.set_outcome(AssessmentKind.PAYMENT_RISK, "ord_1", Outcome.SUCCESS, None, utcnow())
        assert store.recent(AssessmentFilter(), 1)[0].outcome == Outcome.SUCCESS

    def test_outcome_scoped_by_kind(self):
        store = MemoryStorage()
        store.save(_make_assessment(subject_id="x", kind=AssessmentKind.ROUTE_ANOMALY))
        updated = store.set_outcome(
            AssessmentKind.PAYMENT_RISK, "x", Outcome.SUCCESS, None, utcnow(),
        )
        assert updated == 0

    def test_statistics_per_level(self):
        store = MemoryStorage()
        store.save(_make_assessment(subject_id="a", score=0.1))
        store.save(_make_assessment(subject_id="b", score=0.3))
        store.save(_make_assessment(subject_id="c", score=0.9, level=RiskLevel.CRITICAL))
        store.save(_make_assessment(subject_id="old", minutes_ago=60 * 24 * 40))
        store.set_outcome(AssessmentKind.PAYMENT_RISK, "a", Outcome.SUCCESS, None, utcnow())
        store.set_outcome(AssessmentKind.PAYMENT_RISK, "c", Outcome.FAILURE, None, utcnow())

        rows = store.statistics(utcnow() - timedelta(days=30))

        assert [r.level for r in rows] == [RiskLevel.LOW, RiskLevel.CRITICAL]
        low, critical = rows
        assert low.count == 2
        assert low.avg_score == pytest.approx(0.2)
        assert low.successful == 1
        assert critical.failed == 1

    def test_stored_copy_is_isolated(self):
        store = MemoryStorage()
        assessment = _make_assessment()
        store.save(assessment)
        assert assessment.assessment_id is None


class TestAssessmentRecorder:
    def test_round_trip(self):
        recorder = AssessmentRecorder(MemoryStorage())
        assessment_id = recorder.record(_make_assessment())
        recorder.record_outcome(AssessmentKind.PAYMENT_RISK, "ord_1", Outcome.SUCCESS)

        recent = recorder.get_recent_assessments()
        assert recent[0].assessment_id == assessment_id
        assert recent[0].outcome == Outcome.SUCCESS

        stats = recorder.get_statistics(window_days=30)
        assert stats[0].successful == 1

    def test_outcome_for_unknown_subject_logs_warning(self, caplog):
        recorder = AssessmentRecorder(MemoryStorage())
        with caplog.at_level(logging.WARNING, logger="agrisk.storage"):
            recorder.record_outcome(AssessmentKind.ROUTE_ANOMALY, "tr_9", Outcome.FAILURE)
        assert "No route_anomaly assessment found for tr_9" in caplog.text

    def test_store_errors_are_swallowed(self, caplog):
        store = MagicMock()
        store.save.side_effect = RuntimeError("disk full")
        store.set_outcome.side_effect = RuntimeError("disk full")
        store.recent.side_effect = RuntimeError("disk full")
        store.statistics.side_effect = RuntimeError("disk full")
        recorder = AssessmentRecorder(store)

        with caplog.at_level(logging.ERROR, logger="agrisk.storage"):
            assert recorder.record(_make_assessment()) is None
            assert recorder.record_outcome(
                AssessmentKind.PAYMENT_RISK, "ord_1", Outcome.SUCCESS,
            ) is None
            assert recorder.get_recent_assessments() == []
            assert recorder.get_statistics() == []

        assert caplog.text.count("Failed to") == 4


class TestMongoStorage:
    def _storage(self) -> tuple[MongoStorage, MagicMock]:
        db = MagicMock()
        return MongoStorage(database=db), db

    def test_save_inserts_document(self):
        storage, db = self._storage()
        db.assessments.insert_one.return_value.inserted_id = "65f0c0ffee"
        assessment = _make_assessment()

        assert storage.save(assessment) == "65f0c0ffee"

        doc = db.assessments.insert_one.call_args[0][0]
        assert doc["kind"] == "payment_risk"
        assert doc["level"] == "low"
        assert doc["created_at"] == assessment.created_at
        assert "assessment_id" not in doc

    def test_indexes_created_once(self):
        storage, db = self._storage()
        storage.save(_make_assessment())
        storage.save(_make_assessment())
        assert db.assessments.create_index.call_count == 2

    def test_set_outcome_updates_all_matching(self):
        storage, db = self._storage()
        db.assessments.update_many.return_value.modified_count = 3
        at = utcnow()

        updated = storage.set_outcome(
            AssessmentKind.ROUTE_ANOMALY, "tr_1", Outcome.FAILURE, "cargo spoiled", at,
        )

        assert updated == 3
        query, update = db.assessments.update_many.call_args[0]
        assert query == {"kind": "route_anomaly", "subject_id": "tr_1"}
        assert update == {"$set": {
            "outcome": "failure",
            "outcome_reason": "cargo spoiled",
            "outcome_at": at,
        }}

    def test_recent_builds_query(self):
        storage, db = self._storage()
        stored = _make_assessment().model_dump(mode="json", exclude={"assessment_id"})
        stored["_id"] = "abc123"
        cursor = db.assessments.find.return_value.sort.return_value.limit.return_value
        cursor.__iter__.return_value = iter([stored])

        results = storage.recent(
            AssessmentFilter(kind=AssessmentKind.PAYMENT_RISK, has_outcome=False), 5,
        )

        assert db.assessments.find.call_args[0][0] == {
            "kind": "payment_risk",
            "outcome": None,
        }
        db.assessments.find.return_value.sort.assert_called_once_with("created_at", -1)
        assert results[0].assessment_id == "abc123"
        assert results[0].level == RiskLevel.LOW

    def test_statistics_from_aggregation(self):
        storage, db = self._storage()
        db.assessments.aggregate.return_value = [
            {"_id": "high", "count": 2, "avg_score": 0.7, "successful": 0, "failed": 2},
            {"_id": "low", "count": 5, "avg_score": 0.12345, "successful": 4, "failed": 0},
        ]

        rows = storage.statistics(utcnow() - timedelta(days=7))

        assert [r.level for r in rows] == [RiskLevel.LOW, RiskLevel.HIGH]
        assert rows[0].avg_score == 0.123
        pipeline = db.assessments.aggregate.call_args[0][0]
        assert "$gte" in pipeline[0]["$match"]["created_at"]
