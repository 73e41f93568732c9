"""Route deviation analyzer: lateral offset from the planned path and detour ratio."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.route.base import RouteAnalyzer
from agrisk.geo import locate_on_path, path_length_km
from agrisk.scoring.models import AnalyzerResult


def classify_deviation(distance_km: float, ratio: float) -> str:
    """Name the kind of deviation from lateral distance and detour ratio."""
    if distance_km > 1.0 or ratio > 2.0:
        return "completely_off_route"
    if distance_km > 0.5 or ratio > 1.5:
        return "major_detour"
    if distance_km > 0.2 or ratio > 1.2:
        return "minor_detour"
    return "normal_variation"


class RouteDeviationAnalyzer(RouteAnalyzer):
    """Measures how far a shipment has strayed from its planned route.

    Two metrics, each capped before summing:
    - lateral distance of the current location from the planned path
      (over 0.5 km adds up to 0.5)
    - distance travelled in the window divided by the progress made along
      the planned path over the same window (over 1.3 adds up to 0.4)

    Without a usable path the ratio falls back to the route's total length,
    and the denominator never drops below 1 km.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._max_deviation_km = self.config.get("max_deviation_km", 0.5)
        self._detour_ratio = self.config.get("detour_ratio", 1.3)
        self._min_expected_km = self.config.get("min_expected_km", 1.0)

    @property
    def name(self) -> str:
        return "route_deviation"

    @property
    def title(self) -> str:
        return "Route deviation"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        route = context.provider.expected_route(context.transport)
        history = self.tracking_history(context)
        located = [p.location for p in history if p.location is not None]

        current = context.subject.current_location or (located[-1] if located else None)
        if current is None:
            return AnalyzerResult(
                score=0.0,
                reasons=["No current location reported"],
                data={"expected_route_length": route.total_distance_km},
            )

        deviation_km = 0.0
        if route.path:
            deviation_km, _ = locate_on_path(current, route.path)

        actual_km = path_length_km(located)
        if route.path and len(route.path) >= 2 and len(located) >= 2:
            _, start_along = locate_on_path(located[0], route.path)
            _, end_along = locate_on_path(located[-1], route.path)
            expected_km = abs(end_along - start_along)
        else:
            expected_km = route.total_distance_km
        ratio = actual_km / max(self._min_expected_km, expected_km)

        score = 0.0
        reasons: list[str] = []
        is_anomalous = False

        if deviation_km > self._max_deviation_km:
            is_anomalous = True
            score += min(0.5, deviation_km / 2)
            reasons.append(f"Vehicle is {deviation_km:.2f}km off expected route")

        if ratio > self._detour_ratio:
            is_anomalous = True
            score += min(0.4, (ratio - 1) / 2)
            reasons.append(f"Route is {(ratio - 1) * 100:.0f}% longer than expected")

        return AnalyzerResult(
            score=score,
            reasons=reasons,
            is_anomalous=is_anomalous,
            data={
                "deviation_distance_km": round(deviation_km, 3),
                "route_length_ratio": round(ratio, 3),
                "deviation_type": classify_deviation(deviation_km, ratio),
                "actual_route_length": round(actual_km, 3),
                "expected_route_length": round(expected_km, 3),
            },
        )
