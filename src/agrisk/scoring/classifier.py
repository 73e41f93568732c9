"""Threshold classifier mapping an aggregate score to a risk level."""

from __future__ import annotations

from agrisk.scoring.models import RiskLevel, Thresholds

# low <= 0.3 < medium <= 0.6 < high <= 0.8 < critical
PAYMENT_THRESHOLDS = Thresholds(
    bands=(
        (RiskLevel.LOW, 0.3),
        (RiskLevel.MEDIUM, 0.6),
        (RiskLevel.HIGH, 0.8),
    ),
    top_level=RiskLevel.CRITICAL,
    inclusive_upper=True,
)

# low < 0.3 <= medium < 0.6 <= high < 0.8 <= critical
ROUTE_THRESHOLDS = Thresholds(
    bands=(
        (RiskLevel.LOW, 0.3),
        (RiskLevel.MEDIUM, 0.6),
        (RiskLevel.HIGH, 0.8),
    ),
    top_level=RiskLevel.CRITICAL,
    inclusive_upper=False,
)


class Classifier:
    """Deterministic, monotonic lookup of a score in ordered threshold bands."""

    def __init__(self, thresholds: Thresholds):
        self.thresholds = thresholds

    def classify(self, total_score: float) -> RiskLevel:
        for level, bound in self.thresholds.bands:
            if self.thresholds.inclusive_upper:
                if total_score <= bound:
                    return level
            elif total_score < bound:
                return level
        return self.thresholds.top_level
