"""Abstract base class for durable assessment stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from agrisk.scoring.models import (
    Assessment,
    AssessmentFilter,
    AssessmentKind,
    LevelStatistics,
    Outcome,
    RiskLevel,
)


class AssessmentStore(ABC):
    """Append-only store of assessments.

    Rows are inserted once per assessment and only their outcome fields are
    updated afterwards. Concurrent outcome updates for the same subject are
    last-write-wins.
    """

    @abstractmethod
    def save(self, assessment: Assessment) -> str:
        """Persist an assessment and return its id."""
        ...

    @abstractmethod
    def set_outcome(
        self,
        kind: AssessmentKind,
        subject_id: str,
        outcome: Outcome,
        reason: str | None,
        at: datetime,
    ) -> int:
        """Label every assessment of a subject; returns the number updated."""
        ...

    @abstractmethod
    def recent(self, criteria: AssessmentFilter, limit: int) -> list[Assessment]:
        """Most recent matching assessments, newest first."""
        ...

    @abstractmethod
    def statistics(
        self, since: datetime, kind: AssessmentKind | None = None
    ) -> list[LevelStatistics]:
        """Per-level aggregates for assessments created since ``since``."""
        ...


def summarize(assessments: list[Assessment]) -> list[LevelStatistics]:
    """Per-level statistics in level order, skipping levels with no rows."""
    rows: list[LevelStatistics] = []
    for level in RiskLevel:
        matching = [a for a in assessments if a.level == level]
        if not matching:
            continue
        rows.append(LevelStatistics(
            level=level,
            count=len(matching),
            avg_score=round(sum(a.total_score for a in matching) / len(matching), 3),
            successful=sum(1 for a in matching if a.outcome == Outcome.SUCCESS),
            failed=sum(1 for a in matching if a.outcome == Outcome.FAILURE),
        ))
    return rows
