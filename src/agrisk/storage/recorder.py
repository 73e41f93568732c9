"""Assessment recorder: best-effort persistence between the engine and a store."""

from __future__ import annotations

import logging
from datetime import timedelta

from agrisk.scoring.models import (
    Assessment,
    AssessmentFilter,
    AssessmentKind,
    LevelStatistics,
    Outcome,
    utcnow,
)
from agrisk.storage.base import AssessmentStore

logger = logging.getLogger("agrisk.storage")


class AssessmentRecorder:
    """Persists assessments and outcome feedback without ever failing the caller.

    Every store failure is logged and swallowed: ``record`` returns ``None``,
    ``record_outcome`` returns quietly, and the reporting queries return
    empty lists. The Assessment already handed back to the caller is never
    affected.
    """

    def __init__(self, store: AssessmentStore):
        self.store = store

    def record(self, assessment: Assessment) -> str | None:
        try:
            return self.store.save(assessment)
        except Exception:
            logger.exception(
                "Failed to record %s assessment for %s",
                assessment.kind.value, assessment.subject_id,
            )
            return None

    def record_outcome(
        self,
        kind: AssessmentKind,
        subject_id: str,
        outcome: Outcome,
        reason: str | None = None,
    ) -> None:
        """Attach ground truth (payment settled/failed, delivery normal/abnormal)."""
        try:
            updated = self.store.set_outcome(kind, subject_id, outcome, reason, utcnow())
        except Exception:
            logger.exception(
                "Failed to record %s outcome for %s %s",
                outcome.value, kind.value, subject_id,
            )
            return

        if updated:
            logger.info(
                "Recorded %s outcome for %s %s (%d assessments)",
                outcome.value, kind.value, subject_id, updated,
            )
        else:
            logger.warning("No %s assessment found for %s", kind.value, subject_id)

    def get_recent_assessments(
        self, criteria: AssessmentFilter | None = None, limit: int = 50
    ) -> list[Assessment]:
        try:
            return self.store.recent(criteria or AssessmentFilter(), limit)
        except Exception:
            logger.exception("Failed to fetch recent assessments")
            return []

    def get_statistics(
        self, window_days: int = 30, kind: AssessmentKind | None = None
    ) -> list[LevelStatistics]:
        since = utcnow() - timedelta(days=window_days)
        try:
            return self.store.statistics(since, kind)
        except Exception:
            logger.exception("Failed to compute assessment statistics")
            return []
