"""Route anomaly analyzers over a shipment's recent tracking series."""

from agrisk.analyzers.base import BaseAnalyzer
from agrisk.analyzers.route.acceleration_anomaly import AccelerationAnomalyAnalyzer
from agrisk.analyzers.route.base import RouteAnalyzer
from agrisk.analyzers.route.route_deviation import RouteDeviationAnalyzer
from agrisk.analyzers.route.speed_anomaly import SpeedAnomalyAnalyzer
from agrisk.analyzers.route.stall_detection import StallDetectionAnalyzer
from agrisk.analyzers.route.stop_patterns import StopPatternAnalyzer
from agrisk.analyzers.route.time_anomaly import TimeAnomalyAnalyzer

# Registry key -> analyzer class, in evaluation order
ROUTE_ANALYZERS: dict[str, type[BaseAnalyzer]] = {
    "route_deviation": RouteDeviationAnalyzer,
    "speed_anomaly": SpeedAnomalyAnalyzer,
    "stall_detection": StallDetectionAnalyzer,
    "stop_patterns": StopPatternAnalyzer,
    "time_anomaly": TimeAnomalyAnalyzer,
    "acceleration_anomaly": AccelerationAnomalyAnalyzer,
}

__all__ = [
    "RouteAnalyzer",
    "RouteDeviationAnalyzer",
    "SpeedAnomalyAnalyzer",
    "StallDetectionAnalyzer",
    "StopPatternAnalyzer",
    "TimeAnomalyAnalyzer",
    "AccelerationAnomalyAnalyzer",
    "ROUTE_ANALYZERS",
]
