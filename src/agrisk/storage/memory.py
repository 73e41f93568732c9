"""In-process assessment store for tests, demos, and single-run CLI use."""

from __future__ import annotations

import threading
import uuid
from datetime import datetime

from agrisk.scoring.models import (
    Assessment,
    AssessmentFilter,
    AssessmentKind,
    LevelStatistics,
    Outcome,
)
from agrisk.storage.base import AssessmentStore, summarize


class MemoryStorage(AssessmentStore):
    """Keeps assessments in a list guarded by a lock."""

    def __init__(self) -> None:
        self._rows: list[Assessment] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rows)

    def save(self, assessment: Assessment) -> str:
        assessment_id = uuid.uuid4().hex
        row = assessment.model_copy(update={"assessment_id": assessment_id}, deep=True)
        with self._lock:
            self._rows.append(row)
        return assessment_id

    def set_outcome(
        self,
        kind: AssessmentKind,
        subject_id: str,
        outcome: Outcome,
        reason: str | None,
        at: datetime,
    ) -> int:
        updated = 0
        with self._lock:
            for i, row in enumerate(self._rows):
                if row.kind == kind and row.subject_id == subject_id:
                    self._rows[i] = row.model_copy(update={
                        "outcome": outcome,
                        "outcome_reason": reason,
                        "outcome_at": at,
                    })
                    updated += 1
        return updated

    def recent(self, criteria: AssessmentFilter, limit: int) -> list[Assessment]:
        with self._lock:
            matching = [row for row in self._rows if criteria.matches(row)]
        matching.sort(key=lambda a: a.created_at, reverse=True)
        return [row.model_copy(deep=True) for row in matching[:limit]]

    def statistics(
        self, since: datetime, kind: AssessmentKind | None = None
    ) -> list[LevelStatistics]:
        criteria = AssessmentFilter(kind=kind, since=since)
        with self._lock:
            matching = [row for row in self._rows if criteria.matches(row)]
        return summarize(matching)
