"""Stop pattern analyzer: stop frequency, off-route stops, and zigzag movement."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.route.base import STATIONARY_SPEED_KMH, RouteAnalyzer, low_speed_runs
from agrisk.geo import bearing_deg, haversine_km, heading_change_deg
from agrisk.providers.records import TrackingPoint
from agrisk.scoring.models import AnalyzerResult, GeoPoint


class StopPatternAnalyzer(RouteAnalyzer):
    """Looks at where and how often a shipment stops, and how it moves between stops.

    Stops are runs of near-zero speed. The pattern is anomalous when there
    are more than 5 stops per hour, when stops happen away from every known
    waypoint, or when the moving track keeps reversing direction.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._max_stops_per_hour = self.config.get("max_stops_per_hour", 5)
        self._waypoint_radius_km = self.config.get("waypoint_radius_km", 0.5)
        self._reversal_degrees = self.config.get("reversal_degrees", 150)
        self._min_reversals = self.config.get("min_reversals", 3)
        self._min_segment_km = self.config.get("min_segment_km", 0.05)

    @property
    def name(self) -> str:
        return "stop_patterns"

    @property
    def title(self) -> str:
        return "Stop pattern"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        history = self.tracking_history(context)
        if not history:
            return AnalyzerResult(score=0.0, reasons=["No tracking points in window"])

        stops = low_speed_runs(history, context.as_of)
        span_hours = (history[-1].timestamp - history[0].timestamp).total_seconds() / 3600
        stops_per_hour = len(stops) / max(1.0, span_hours)

        waypoints = context.provider.expected_route(context.transport).waypoints
        unusual = [
            stop for stop in stops
            if stop.location is not None
            and waypoints
            and self._nearest_km(stop.location, waypoints) > self._waypoint_radius_km
        ]

        reversals = self._count_reversals(history)

        score = 0.0
        reasons: list[str] = []

        if stops_per_hour > self._max_stops_per_hour:
            score += 0.4
            reasons.append(f"High stop frequency: {stops_per_hour:.1f} stops per hour")

        if unusual:
            score += 0.3
            reasons.append(f"Stops at unusual locations: {len(unusual)}")

        zigzag = reversals >= self._min_reversals
        if zigzag:
            score += 0.3
            reasons.append("Zigzag movement pattern detected")

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            is_anomalous=bool(reasons),
            data={
                "total_stops": len(stops),
                "stops_per_hour": round(stops_per_hour, 2),
                "unusual_stops": len(unusual),
                "direction_reversals": reversals,
                "zigzag_detected": zigzag,
                "time_span_hours": round(span_hours, 2),
            },
        )

    @staticmethod
    def _nearest_km(location: GeoPoint, waypoints: list[GeoPoint]) -> float:
        return min(haversine_km(location, w) for w in waypoints)

    def _count_reversals(self, history: list[TrackingPoint]) -> int:
        """Count near-opposite heading changes between consecutive moving segments."""
        moving = [
            p.location for p in history
            if p.location is not None and (p.speed or 0.0) > STATIONARY_SPEED_KMH
        ]

        headings: list[float] = []
        anchor = moving[0] if moving else None
        for location in moving[1:]:
            if haversine_km(anchor, location) < self._min_segment_km:
                continue
            headings.append(bearing_deg(anchor, location))
            anchor = location

        return sum(
            1 for a, b in zip(headings, headings[1:])
            if heading_change_deg(a, b) > self._reversal_degrees
        )
