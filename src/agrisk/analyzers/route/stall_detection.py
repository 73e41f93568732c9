"""Stall detection analyzer: prolonged or repeated stationary periods."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.route.base import RouteAnalyzer, low_speed_runs
from agrisk.scoring.models import AnalyzerResult


class StallDetectionAnalyzer(RouteAnalyzer):
    """Finds stalls: runs of speed <= 2 km/h lasting at least 5 minutes.

    Any stall of 30 minutes or more is anomalous, scoring more the longer it
    lasts; more than three short stalls (5-15 minutes) is also anomalous.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._min_stall_minutes = self.config.get("min_stall_minutes", 5)
        self._long_stall_minutes = self.config.get("long_stall_minutes", 30)
        self._short_stall_max_minutes = self.config.get("short_stall_max_minutes", 15)
        self._max_short_stalls = self.config.get("max_short_stalls", 3)

    @property
    def name(self) -> str:
        return "stall_detection"

    @property
    def title(self) -> str:
        return "Stall"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        history = self.tracking_history(context)
        stalls = [
            run for run in low_speed_runs(history, context.as_of)
            if run.minutes >= self._min_stall_minutes
        ]

        score = 0.0
        reasons: list[str] = []

        for stall in stalls:
            if stall.minutes >= self._long_stall_minutes:
                score += min(0.5, stall.minutes / 120)
                reasons.append(f"Prolonged stall detected: {stall.minutes:.0f} minutes")

        short_stalls = [s for s in stalls if s.minutes < self._short_stall_max_minutes]
        if len(short_stalls) > self._max_short_stalls:
            score += 0.3
            reasons.append(f"Frequent short stops: {len(short_stalls)} stops")

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            is_anomalous=bool(reasons),
            data={
                "total_stalls": len(stalls),
                "longest_stall_minutes": round(max((s.minutes for s in stalls), default=0.0), 1),
                "total_stall_time_minutes": round(sum(s.minutes for s in stalls), 1),
                "stalls": [s.to_dict() for s in stalls],
            },
        )
