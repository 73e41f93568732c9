"""Order frequency analyzer: bursts of orders in the last day or week."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer
from agrisk.scoring.models import AnalyzerResult


class OrderFrequencyAnalyzer(BaseAnalyzer):
    """Flags unusually high order velocity, and a lone order after a quiet month."""

    fallback_score = 0.2

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._daily_high = self.config.get("daily_high", 5)
        self._daily_moderate = self.config.get("daily_moderate", 3)
        self._weekly_high = self.config.get("weekly_high", 15)

    @property
    def name(self) -> str:
        return "order_frequency"

    @property
    def title(self) -> str:
        return "Order frequency"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        frequency = context.provider.order_frequency(context.subject.buyer_id, context.as_of)

        score = 0.0
        reasons: list[str] = []

        if frequency.orders_last_24h > self._daily_high:
            score += 0.5
            reasons.append(
                f"High order frequency: {frequency.orders_last_24h} orders in 24h"
            )
        elif frequency.orders_last_24h > self._daily_moderate:
            score += 0.3
            reasons.append(
                f"Moderate order frequency: {frequency.orders_last_24h} orders in 24h"
            )

        if frequency.orders_last_7d > self._weekly_high:
            score += 0.3
            reasons.append(
                f"High weekly frequency: {frequency.orders_last_7d} orders in 7 days"
            )

        if frequency.orders_last_30d == 1:
            score += 0.1
            reasons.append("First order in 30 days")

        if not reasons:
            reasons.append("Normal order frequency")

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            data=frequency.model_dump(),
        )
