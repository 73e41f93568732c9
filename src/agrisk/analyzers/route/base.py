"""Shared plumbing for analyzers that read a shipment's tracking series."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer
from agrisk.providers.records import TrackingPoint
from agrisk.scoring.models import GeoPoint

# Speed at or below which a vehicle counts as stationary (km/h)
STATIONARY_SPEED_KMH = 2.0


@dataclass
class LowSpeedRun:
    """A contiguous interval of near-zero speed in a tracking series."""

    start: datetime
    end: datetime
    location: GeoPoint | None
    points: int

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_time": self.start.isoformat(),
            "end_time": self.end.isoformat(),
            "duration_minutes": round(self.minutes, 1),
            "location": self.location.model_dump() if self.location else None,
        }


def low_speed_runs(
    points: list[TrackingPoint],
    as_of: datetime,
    max_speed: float = STATIONARY_SPEED_KMH,
) -> list[LowSpeedRun]:
    """Split a time-ordered series into runs of speed <= ``max_speed``.

    A run ends at the first faster point; a run still open at the end of the
    series is closed at ``as_of``. Missing speeds count as stationary.
    """
    runs: list[LowSpeedRun] = []
    current: LowSpeedRun | None = None

    for point in points:
        speed = point.speed or 0.0
        if speed <= max_speed:
            if current is None:
                current = LowSpeedRun(
                    start=point.timestamp,
                    end=point.timestamp,
                    location=point.location,
                    points=0,
                )
            current.points += 1
        elif current is not None:
            current.end = point.timestamp
            runs.append(current)
            current = None

    if current is not None:
        current.end = max(as_of, current.start)
        runs.append(current)

    return runs


class RouteAnalyzer(BaseAnalyzer):
    """Base for route analyzers: reads the lookback window of tracking points."""

    fallback_score = 0.2

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.lookback_minutes = self.config.get("lookback_minutes", 60)

    def tracking_history(self, context: AnalysisContext) -> list[TrackingPoint]:
        return context.provider.tracking_history(
            context.subject.transport_id, context.as_of, self.lookback_minutes,
        )
