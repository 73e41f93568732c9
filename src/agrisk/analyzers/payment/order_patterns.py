"""Order pattern analyzer: cancellations, outsized orders, supplier spread, delivery rate."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer
from agrisk.scoring.models import AnalyzerResult


class OrderPatternAnalyzer(BaseAnalyzer):
    """Looks for suspicious shapes in a buyer's last 30 days of orders.

    Each signal adds a fixed penalty:
    - cancellation rate above 30%
    - current order worth more than 3x the buyer's mean order
    - more than 10 distinct farmers making up over 80% of orders
    - fewer than half of the orders delivered
    """

    fallback_score = 0.3

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._window_days = self.config.get("window_days", 30)
        self._new_payer_score = self.config.get("new_payer_score", 0.4)
        self._cancellation_threshold = self.config.get("cancellation_rate_threshold", 0.3)
        self._value_multiplier = self.config.get("order_value_multiplier", 3.0)
        self._default_mean_value = self.config.get("default_mean_order_value", 1000.0)
        self._min_farmers = self.config.get("min_unique_farmers", 10)
        self._farmer_ratio = self.config.get("farmer_diversity_ratio", 0.8)
        self._min_delivery_rate = self.config.get("min_delivery_rate", 0.5)

    @property
    def name(self) -> str:
        return "order_patterns"

    @property
    def title(self) -> str:
        return "Order pattern"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        subject = context.subject
        patterns = context.provider.order_pattern_stats(
            subject.buyer_id, context.as_of, self._window_days,
        )

        if patterns.total_orders == 0:
            return AnalyzerResult(
                score=self._new_payer_score,
                reasons=["No recent order history"],
                data=patterns.model_dump(),
            )

        score = 0.0
        reasons: list[str] = []
        total = patterns.total_orders

        cancellation_rate = patterns.cancelled_orders / total
        if cancellation_rate > self._cancellation_threshold:
            score += 0.4
            reasons.append(f"High cancellation rate: {cancellation_rate:.1%}")

        mean_value = patterns.avg_order_value or self._default_mean_value
        if subject.total_amount > mean_value * self._value_multiplier:
            score += 0.3
            reasons.append("Order value significantly higher than average")

        farmer_ratio = patterns.unique_farmers / total
        if patterns.unique_farmers > self._min_farmers and farmer_ratio > self._farmer_ratio:
            score += 0.2
            reasons.append("High farmer diversity ratio")

        delivery_rate = patterns.delivered_orders / total
        if delivery_rate < self._min_delivery_rate:
            score += 0.3
            reasons.append(f"Low delivery completion rate: {delivery_rate:.1%}")

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            data={
                **patterns.model_dump(),
                "cancellation_rate": round(cancellation_rate, 3),
                "farmer_ratio": round(farmer_ratio, 3),
                "delivery_rate": round(delivery_rate, 3),
            },
        )
