"""Payment risk instantiation: scores a placed order before it is paid for."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.payment import PAYMENT_ANALYZERS
from agrisk.config import DEFAULT_CONFIG, EngineSettings
from agrisk.providers.base import HistoryProvider
from agrisk.scoring.classifier import Classifier
from agrisk.scoring.engine import AssessmentEngine, build_specs
from agrisk.scoring.models import AssessmentKind, PaymentSubject, RiskLevel
from agrisk.scoring.recommendations import LevelRule, RecommendationGenerator, RuleTable
from agrisk.storage.recorder import AssessmentRecorder


def _is_cod(context: dict[str, Any]) -> bool:
    return context.get("payment_method") == "cod"


PAYMENT_LEVEL_RULES: dict[RiskLevel, list[LevelRule]] = {
    RiskLevel.LOW: [
        LevelRule("Low risk - proceed with normal processing"),
    ],
    RiskLevel.MEDIUM: [
        LevelRule("Medium risk - consider additional verification"),
        LevelRule("For COD: Consider requiring phone verification", when=_is_cod),
    ],
    RiskLevel.HIGH: [
        LevelRule("High risk - manual review recommended"),
        LevelRule("COD not recommended - suggest prepaid payment", when=_is_cod),
        LevelRule("Consider requiring ID verification"),
    ],
    RiskLevel.CRITICAL: [
        LevelRule("Critical risk - block or require extensive verification"),
        LevelRule("COD should be blocked"),
        LevelRule("Require manual approval from admin"),
    ],
}

PAYMENT_FACTOR_RULES: dict[str, str] = {
    "payment_history": "Poor payment history - consider credit limit",
    "order_patterns": "Unusual order patterns - review order details",
    "geographic_risk": "High geographic risk - verify delivery address",
    "account_age": "New account - require additional verification",
    "order_frequency": "Unusual frequency - check for automation/fraud",
    "amount_anomaly": "Unusual amount - verify buyer's purchase intent",
}


class PaymentRiskEngine(AssessmentEngine):
    """Assesses the payment risk of an order (COD failures, fraud patterns).

    The order arrives denormalized (buyer, farmer, amount, regions), so
    resolving it needs no lookup beyond a sanity check.
    """

    def __init__(self, provider: HistoryProvider, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.provider = provider

    @property
    def kind(self) -> AssessmentKind:
        return AssessmentKind.PAYMENT_RISK

    def resolve(self, subject: PaymentSubject) -> AnalysisContext:
        if not subject.buyer_id:
            raise ValueError(f"Order {subject.order_id} has no buyer")
        return AnalysisContext(subject=subject, provider=self.provider)

    def recommendation_context(self, context: AnalysisContext) -> dict[str, Any]:
        return {"payment_method": context.subject.payment_method.lower()}


def build_payment_engine(
    provider: HistoryProvider,
    settings: EngineSettings | None = None,
    recorder: AssessmentRecorder | None = None,
) -> PaymentRiskEngine:
    """Wire the six payment analyzers, their weights and rule table into an engine."""
    settings = settings or EngineSettings.from_config(
        DEFAULT_CONFIG, AssessmentKind.PAYMENT_RISK,
    )
    return PaymentRiskEngine(
        provider,
        build_specs(PAYMENT_ANALYZERS, settings.weights, settings.analyzers),
        Classifier(settings.thresholds),
        RecommendationGenerator(RuleTable(
            level_rules=PAYMENT_LEVEL_RULES,
            factor_rules=PAYMENT_FACTOR_RULES,
            factor_trigger=settings.factor_trigger,
            trigger_on_anomaly=settings.trigger_on_anomaly,
        )),
        recorder=recorder,
        parallel=settings.parallel,
        max_workers=settings.max_workers,
        analyzer_timeout=settings.analyzer_timeout_seconds,
    )
