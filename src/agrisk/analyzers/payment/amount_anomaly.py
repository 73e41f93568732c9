"""Amount anomaly analyzer: z-score of the order amount against the buyer's history."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer
from agrisk.scoring.models import AnalyzerResult

# (minimum z-score, score), checked in order
DEFAULT_Z_BANDS: list[tuple[float, float]] = [
    (3.0, 0.8),
    (2.0, 0.5),
    (1.5, 0.2),
]

# Reason per band, same order as the bands; z-score is interpolated
Z_BAND_REASONS: list[str] = [
    "Order amount highly unusual (z-score: {z:.2f})",
    "Order amount unusual (z-score: {z:.2f})",
    "Order amount slightly above normal",
]


class AmountAnomalyAnalyzer(BaseAnalyzer):
    """Compares the order amount with the buyer's 90-day mean and stddev.

    With fewer than two past orders there is nothing to compare against and
    the score defaults to 0.2. When every past order had the same amount
    (stddev 0), any different amount scores 0.3. Orders above the large-order
    threshold always add 0.3.
    """

    fallback_score = 0.3

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._window_days = self.config.get("window_days", 90)
        self._min_orders = self.config.get("min_orders", 2)
        self._insufficient_score = self.config.get("insufficient_data_score", 0.2)
        self._z_bands = [tuple(b) for b in self.config.get("z_bands", DEFAULT_Z_BANDS)]
        self._pattern_break_score = self.config.get("pattern_break_score", 0.3)
        self._large_order_threshold = self.config.get("large_order_threshold", 50000.0)
        self._large_order_penalty = self.config.get("large_order_penalty", 0.3)

    @property
    def name(self) -> str:
        return "amount_anomaly"

    @property
    def title(self) -> str:
        return "Amount anomaly"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        amount = context.subject.total_amount
        stats = context.provider.amount_stats(
            context.subject.buyer_id, context.as_of, self._window_days,
        )
        data: dict[str, Any] = {
            "current_amount": amount,
            "avg_amount": round(stats.avg_amount, 2),
            "stddev_amount": round(stats.stddev_amount, 2),
            "max_amount": stats.max_amount,
            "order_count": stats.order_count,
        }

        if stats.order_count < self._min_orders:
            return AnalyzerResult(
                score=self._insufficient_score,
                reasons=["Insufficient order history for amount analysis"],
                data=data,
            )

        score = 0.0
        reasons: list[str] = []

        if stats.stddev_amount > 0:
            z_score = abs(amount - stats.avg_amount) / stats.stddev_amount
            data["z_score"] = round(z_score, 2)
            band = next(
                (i for i, (minimum, _) in enumerate(self._z_bands) if z_score > minimum),
                None,
            )
            if band is None:
                reasons.append("Order amount within normal range")
            else:
                score = self._z_bands[band][1]
                template = Z_BAND_REASONS[min(band, len(Z_BAND_REASONS) - 1)]
                reasons.append(template.format(z=z_score))
        elif amount != stats.avg_amount:
            score = self._pattern_break_score
            reasons.append("Amount differs from consistent pattern")
        else:
            reasons.append("Amount matches consistent pattern")

        if amount > self._large_order_threshold:
            score += self._large_order_penalty
            reasons.append(f"Large order amount ({amount:,.0f})")

        return AnalyzerResult(score=min(1.0, score), reasons=reasons, data=data)
