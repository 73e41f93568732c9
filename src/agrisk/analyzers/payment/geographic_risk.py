"""Geographic risk analyzer: regional base risk, cross-region orders, regional COD failures."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer
from agrisk.scoring.models import AnalyzerResult

# Regional base risk from historical delivery and payment outcomes
DEFAULT_REGION_SCORES: dict[str, float] = {
    "Dhaka": 0.2,
    "Chittagong": 0.3,
    "Sylhet": 0.2,
    "Rajshahi": 0.4,
    "Khulna": 0.3,
    "Barisal": 0.5,
    "Rangpur": 0.4,
    "Mymensingh": 0.3,
}


class GeographicRiskAnalyzer(BaseAnalyzer):
    """Scores the buyer's region.

    Starts from a static per-region table, then adds penalties when the
    farmer ships from another region and when the region's recent COD
    failure rate is high. The regional rate is only trusted above a minimum
    number of COD orders, to keep small samples from dominating.
    """

    fallback_score = 0.4

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._region_scores = self.config.get("region_scores", DEFAULT_REGION_SCORES)
        self._default_region_score = self.config.get("default_region_score", 0.5)
        self._cross_region_penalty = self.config.get("cross_region_penalty", 0.2)
        self._cod_failure_threshold = self.config.get("cod_failure_rate_threshold", 0.3)
        self._cod_failure_penalty = self.config.get("cod_failure_penalty", 0.2)
        self._min_cod_orders = self.config.get("min_cod_orders", 10)
        self._window_days = self.config.get("window_days", 90)

    @property
    def name(self) -> str:
        return "geographic_risk"

    @property
    def title(self) -> str:
        return "Geographic risk"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        subject = context.subject
        region = subject.region

        score = self._region_scores.get(region, self._default_region_score)
        reasons = [f"Regional risk for {region or 'unknown region'}"]

        cross_region = bool(subject.farmer_region) and subject.farmer_region != region
        if cross_region:
            score += self._cross_region_penalty
            reasons.append(
                f"Cross-regional order (buyer: {region}, farmer: {subject.farmer_region})"
            )

        regional_stats = None
        regional_failure_rate = None
        if region:
            regional_stats = context.provider.regional_cod_stats(
                region, context.as_of, self._window_days,
            )
            if regional_stats.total_cod_orders > self._min_cod_orders:
                regional_failure_rate = (
                    regional_stats.failed_cod_orders / regional_stats.total_cod_orders
                )
                if regional_failure_rate > self._cod_failure_threshold:
                    score += self._cod_failure_penalty
                    reasons.append(
                        f"High regional COD failure rate: {regional_failure_rate:.1%}"
                    )

        return AnalyzerResult(
            score=min(1.0, score),
            reasons=reasons,
            data={
                "buyer_region": region,
                "farmer_region": subject.farmer_region,
                "cross_region": cross_region,
                "regional_cod_stats": regional_stats.model_dump() if regional_stats else None,
                "regional_cod_failure_rate": (
                    round(regional_failure_rate, 3)
                    if regional_failure_rate is not None else None
                ),
            },
        )
