"""Time anomaly analyzer: lateness or suspicious earliness against the predicted arrival."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.route.base import RouteAnalyzer
from agrisk.scoring.models import AnalyzerResult


class TimeAnomalyAnalyzer(RouteAnalyzer):
    """Compares the assessment time with the latest arrival prediction.

    More than 2 hours past the prediction scores up to 0.5, more than half
    an hour past it scores 0.2. More than an hour before the prediction
    (possible shortcut or unsafe speed) adds the early-arrival penalty. A
    live ETA on the subject is reported as drift from the prediction and
    does not move the score.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._major_delay_hours = self.config.get("major_delay_hours", 2.0)
        self._minor_delay_hours = self.config.get("minor_delay_hours", 0.5)
        self._early_hours = self.config.get("early_arrival_hours", 1.0)
        self._early_penalty = self.config.get("early_arrival_penalty", 0.3)

    @property
    def name(self) -> str:
        return "time_anomaly"

    @property
    def title(self) -> str:
        return "Time"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        prediction = context.provider.latest_prediction(context.subject.transport_id)
        if prediction is None:
            return AnalyzerResult(score=0.0, reasons=["No arrival prediction available"])

        expected = prediction.predicted_arrival
        hours = (context.as_of - expected).total_seconds() / 3600

        score = 0.0
        reasons: list[str] = []

        if hours > self._major_delay_hours:
            score += min(0.5, hours / 8)
            reasons.append(f"Significant delay: {hours:.1f} hours behind schedule")
        elif hours > self._minor_delay_hours:
            score += 0.2
            reasons.append(f"Minor delay: {hours:.1f} hours behind schedule")

        if hours < -self._early_hours:
            score += self._early_penalty
            reasons.append(f"Unexpectedly early: {abs(hours):.1f} hours ahead of schedule")

        if hours > 0:
            status = "delayed"
        elif hours < -0.5:
            status = "early"
        else:
            status = "on_time"

        data: dict[str, Any] = {
            "time_difference_hours": round(hours, 2),
            "expected_arrival": expected.isoformat(),
            "current_time": context.as_of.isoformat(),
            "status": status,
        }
        live_eta = context.subject.estimated_arrival
        if live_eta is not None:
            data["live_eta"] = live_eta.isoformat()
            data["eta_drift_hours"] = round((live_eta - expected).total_seconds() / 3600, 2)

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            is_anomalous=bool(reasons),
            data=data,
        )
