"""Acceleration anomaly analyzer: hard braking and aggressive acceleration."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.route.base import RouteAnalyzer
from agrisk.scoring.models import AnalyzerResult


class AccelerationAnomalyAnalyzer(RouteAnalyzer):
    """Derives acceleration between consecutive samples, in km/h².

    Every interval above the extreme magnitude adds up to 0.3; more than
    three intervals above the moderate magnitude add 0.2.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._extreme = self.config.get("extreme_acceleration", 10.0)
        self._moderate = self.config.get("moderate_acceleration", 5.0)
        self._max_moderate_events = self.config.get("max_moderate_events", 3)

    @property
    def name(self) -> str:
        return "acceleration_anomaly"

    @property
    def title(self) -> str:
        return "Acceleration"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        history = self.tracking_history(context)
        if len(history) < 2:
            return AnalyzerResult(score=0.0, reasons=["Not enough tracking points"])

        accelerations: list[float] = []
        for prev, curr in zip(history, history[1:]):
            seconds = (curr.timestamp - prev.timestamp).total_seconds()
            if seconds > 0:
                speed_diff = (curr.speed or 0.0) - (prev.speed or 0.0)
                accelerations.append(speed_diff / (seconds / 3600))

        score = 0.0
        reasons: list[str] = []

        for value in accelerations:
            magnitude = abs(value)
            if magnitude > self._extreme:
                kind = "acceleration" if value > 0 else "deceleration"
                score += min(0.3, magnitude / 50)
                reasons.append(f"Extreme {kind}: {magnitude:.1f} km/h²")

        moderate_events = sum(1 for a in accelerations if abs(a) > self._moderate)
        if moderate_events > self._max_moderate_events:
            score += 0.2
            reasons.append(f"Frequent extreme acceleration events: {moderate_events}")

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            is_anomalous=bool(reasons),
            data={
                "total_events": len(accelerations),
                "extreme_events": moderate_events,
                "max_acceleration": round(max(accelerations, default=0.0), 2),
                "max_deceleration": round(min(accelerations, default=0.0), 2),
            },
        )
