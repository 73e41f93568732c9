"""Speed anomaly analyzer: speeding, crawling, and erratic speed profiles."""

from __future__ import annotations

import statistics
from typing import Any

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.route.base import RouteAnalyzer
from agrisk.scoring.models import AnalyzerResult

# Expected speed envelope per vehicle type (km/h)
DEFAULT_SPEED_ENVELOPES: dict[str, dict[str, float]] = {
    "truck": {"min": 20, "max": 70, "avg": 40},
    "van": {"min": 25, "max": 80, "avg": 45},
    "pickup": {"min": 25, "max": 80, "avg": 45},
    "motorbike": {"min": 20, "max": 60, "avg": 35},
}


class SpeedAnomalyAnalyzer(RouteAnalyzer):
    """Compares observed speeds with the envelope for the vehicle type.

    Flags a top speed 20% over the envelope maximum, a mean 20% under the
    envelope minimum, a coefficient of variation above 0.5, and more than
    five jumps of over 20 km/h between consecutive samples.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._envelopes = self.config.get("speed_envelopes", DEFAULT_SPEED_ENVELOPES)
        self._default_type = self.config.get("default_vehicle_type", "truck")
        self._max_cv = self.config.get("max_coefficient_of_variation", 0.5)
        self._jump_kmh = self.config.get("rapid_change_kmh", 20)
        self._max_jumps = self.config.get("max_rapid_changes", 5)

    @property
    def name(self) -> str:
        return "speed_anomaly"

    @property
    def title(self) -> str:
        return "Speed"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        speeds = [p.speed for p in self.tracking_history(context) if p.speed is not None]
        if not speeds:
            return AnalyzerResult(score=0.0, reasons=["No speed samples in window"])

        vehicle_type = context.subject.vehicle_type or context.transport.transport_type
        expected = self._envelopes.get(vehicle_type) or self._envelopes[self._default_type]

        avg_speed = statistics.fmean(speeds)
        max_speed = max(speeds)
        variance = statistics.pvariance(speeds)
        cv = variance ** 0.5 / max(1.0, avg_speed)
        rapid_changes = sum(
            1 for a, b in zip(speeds, speeds[1:]) if abs(b - a) > self._jump_kmh
        )

        score = 0.0
        reasons: list[str] = []

        if max_speed > expected["max"] * 1.2:
            score += 0.4
            reasons.append(f"Excessive speed detected: {max_speed:.0f} km/h")

        if avg_speed < expected["min"] * 0.8:
            score += 0.3
            reasons.append(f"Abnormally low average speed: {avg_speed:.1f} km/h")

        if cv > self._max_cv:
            score += 0.3
            reasons.append("Erratic speed patterns detected (high variability)")

        if rapid_changes > self._max_jumps:
            score += 0.2
            reasons.append(f"Frequent rapid speed changes: {rapid_changes} instances")

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            is_anomalous=bool(reasons),
            data={
                "vehicle_type": vehicle_type,
                "avg_speed": round(avg_speed, 2),
                "max_speed": max_speed,
                "min_speed": min(speeds),
                "speed_variance": round(variance, 2),
                "coefficient_of_variation": round(cv, 3),
                "rapid_changes": rapid_changes,
                "expected_range": expected,
            },
        )
