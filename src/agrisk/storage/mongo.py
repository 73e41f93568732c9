"""MongoDB storage backend for assessments and their outcomes."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any

from agrisk.scoring.models import (
    Assessment,
    AssessmentFilter,
    AssessmentKind,
    LevelStatistics,
    Outcome,
    RiskLevel,
)
from agrisk.storage.base import AssessmentStore

logger = logging.getLogger("agrisk.storage")


class MongoStorage(AssessmentStore):
    """Persistent assessment store using MongoDB.

    One document per assessment in the ``assessments`` collection, kept
    indefinitely as the audit trail for later calibration. Outcome labels
    are applied with ``update_many`` on (kind, subject_id), so a later label
    for the same subject overwrites an earlier one.
    """

    def __init__(self, config: dict[str, Any] | None = None, database: Any = None):
        config = config or {}
        self._uri = config.get("uri") or os.environ.get(
            "AGRISK_MONGO_URI", "mongodb://localhost:27017"
        )
        self._db_name = config.get("database") or os.environ.get(
            "AGRISK_MONGO_DB", "agrisk"
        )
        self._client: Any = None
        self._db: Any = database
        self._indexed = False

    def _connect(self) -> None:
        """Establish MongoDB connection and create indexes."""
        if self._db is None:
            from pymongo import MongoClient

            self._client = MongoClient(
                self._uri, serverSelectionTimeoutMS=5000, tz_aware=True,
            )
            self._db = self._client[self._db_name]

        if not self._indexed:
            self._ensure_indexes()
            self._indexed = True

    def _ensure_indexes(self) -> None:
        """Create query indexes."""
        self._db.assessments.create_index([("kind", 1), ("subject_id", 1)])
        self._db.assessments.create_index([("created_at", -1)])

    def save(self, assessment: Assessment) -> str:
        """Store a full Assessment document. Returns the inserted _id."""
        self._connect()
        doc = assessment.model_dump(mode="json", exclude={"assessment_id"})
        # Keep timestamps as BSON dates so window queries work
        doc["created_at"] = assessment.created_at
        doc["outcome_at"] = assessment.outcome_at
        result = self._db.assessments.insert_one(doc)
        logger.info("Assessment saved to MongoDB (id: %s)", result.inserted_id)
        return str(result.inserted_id)

    def set_outcome(
        self,
        kind: AssessmentKind,
        subject_id: str,
        outcome: Outcome,
        reason: str | None,
        at: datetime,
    ) -> int:
        self._connect()
        result = self._db.assessments.update_many(
            {"kind": kind.value, "subject_id": subject_id},
            {"$set": {
                "outcome": outcome.value,
                "outcome_reason": reason,
                "outcome_at": at,
            }},
        )
        return result.modified_count

    def recent(self, criteria: AssessmentFilter, limit: int) -> list[Assessment]:
        """Fetch the newest assessments matching ``criteria``."""
        self._connect()
        cursor = (
            self._db.assessments.find(self._query(criteria))
            .sort("created_at", -1)
            .limit(limit)
        )
        return [self._to_assessment(doc) for doc in cursor]

    def statistics(
        self, since: datetime, kind: AssessmentKind | None = None
    ) -> list[LevelStatistics]:
        """Count, average score and outcomes per level since ``since``."""
        self._connect()
        pipeline = [
            {"$match": self._query(AssessmentFilter(kind=kind, since=since))},
            {"$group": {
                "_id": "$level",
                "count": {"$sum": 1},
                "avg_score": {"$avg": "$total_score"},
                "successful": {"$sum": {
                    "$cond": [{"$eq": ["$outcome", Outcome.SUCCESS.value]}, 1, 0],
                }},
                "failed": {"$sum": {
                    "$cond": [{"$eq": ["$outcome", Outcome.FAILURE.value]}, 1, 0],
                }},
            }},
        ]
        rows = [
            LevelStatistics(
                level=RiskLevel(doc["_id"]),
                count=doc["count"],
                avg_score=round(doc["avg_score"] or 0.0, 3),
                successful=doc["successful"],
                failed=doc["failed"],
            )
            for doc in self._db.assessments.aggregate(pipeline)
        ]
        return sorted(rows, key=lambda row: row.level.rank)

    @staticmethod
    def _query(criteria: AssessmentFilter) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if criteria.kind is not None:
            query["kind"] = criteria.kind.value
        if criteria.subject_id is not None:
            query["subject_id"] = criteria.subject_id
        if criteria.level is not None:
            query["level"] = criteria.level.value
        if criteria.since is not None:
            query["created_at"] = {"$gte": criteria.since}
        if criteria.has_outcome is not None:
            query["outcome"] = {"$ne": None} if criteria.has_outcome else None
        return query

    @staticmethod
    def _to_assessment(doc: dict[str, Any]) -> Assessment:
        doc = dict(doc)
        doc["assessment_id"] = str(doc.pop("_id"))
        return Assessment.model_validate(doc)
