"""Payment history analyzer: success-rate banding with a COD failure penalty."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer
from agrisk.scoring.models import AnalyzerResult

# (minimum success rate, score), checked in order
DEFAULT_SUCCESS_BANDS: list[tuple[float, float]] = [
    (0.9, 0.1),
    (0.7, 0.3),
    (0.5, 0.6),
]


class PaymentHistoryAnalyzer(BaseAnalyzer):
    """Scores a buyer by how reliably they have paid in the last 90 days.

    A buyer with no payments at all is scored as an unknown (0.5). Otherwise
    the completed-payment rate falls into a band, and for a COD order the
    buyer's COD failure rate adds a proportional penalty.
    """

    fallback_score = 0.5

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._window_days = self.config.get("window_days", 90)
        self._new_payer_score = self.config.get("new_payer_score", 0.5)
        self._bands = [tuple(b) for b in self.config.get("success_bands", DEFAULT_SUCCESS_BANDS)]
        self._floor_score = self.config.get("floor_score", 0.9)
        self._cod_penalty = self.config.get("cod_failure_penalty", 0.3)

    @property
    def name(self) -> str:
        return "payment_history"

    @property
    def title(self) -> str:
        return "Payment history"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        subject = context.subject
        history = context.provider.payment_history_stats(
            subject.buyer_id, context.as_of, self._window_days,
        )

        if history.total_payments == 0:
            return AnalyzerResult(
                score=self._new_payer_score,
                reasons=["No payment history (new customer)"],
                data=history.model_dump(),
            )

        success_rate = history.success_rate
        score = self._floor_score
        for minimum, band_score in self._bands:
            if success_rate >= minimum:
                score = band_score
                break

        reasons: list[str] = []
        cod_failure_rate = 0.0
        if subject.is_cod and history.cod_failures > 0:
            cod_failure_rate = history.cod_failures / history.total_payments
            score += cod_failure_rate * self._cod_penalty
            reasons.append(f"COD failure rate: {cod_failure_rate:.1%}")

        reasons.append(f"Payment success rate: {success_rate:.1%}")
        reasons.append(f"Total payments: {history.total_payments}")

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            data={
                **history.model_dump(),
                "success_rate": round(success_rate, 3),
                "cod_failure_rate": round(cod_failure_rate, 3),
            },
        )
