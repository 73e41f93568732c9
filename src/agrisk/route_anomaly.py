"""Route anomaly instantiation: scores an in-transit shipment from its tracking series."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.route import ROUTE_ANALYZERS
from agrisk.config import DEFAULT_CONFIG, EngineSettings
from agrisk.exceptions import SubjectNotFound
from agrisk.providers.base import HistoryProvider
from agrisk.scoring.classifier import Classifier
from agrisk.scoring.engine import AssessmentEngine, build_specs
from agrisk.scoring.models import AssessmentKind, RiskLevel, ShipmentSubject
from agrisk.scoring.recommendations import LevelRule, RecommendationGenerator, RuleTable
from agrisk.storage.recorder import AssessmentRecorder

ROUTE_LEVEL_RULES: dict[RiskLevel, list[LevelRule]] = {
    RiskLevel.LOW: [
        LevelRule("No intervention needed - continue standard tracking"),
    ],
    RiskLevel.MEDIUM: [
        LevelRule("Monitor shipment closely - increase tracking frequency"),
    ],
    RiskLevel.HIGH: [
        LevelRule("Immediate intervention recommended - contact driver directly"),
        LevelRule("Consider alternative routing or backup transport"),
    ],
    RiskLevel.CRITICAL: [
        LevelRule("Immediate intervention recommended - contact driver directly"),
        LevelRule("Consider alternative routing or backup transport"),
        LevelRule("Escalate to logistics supervisor and notify buyer"),
    ],
}

ROUTE_FACTOR_RULES: dict[str, str] = {
    "route_deviation": "Contact driver to verify route - possible detour or navigation issue",
    "speed_anomaly": "Monitor driver behavior - check for traffic conditions or safety issues",
    "stall_detection": "Check for delivery delays - driver may need assistance",
    "stop_patterns": "Review unscheduled stops - verify cargo integrity at delivery",
    "time_anomaly": "Update delivery estimates and notify customer of delays",
    "acceleration_anomaly": "Review driving behavior - frequent harsh braking or acceleration",
}


class RouteAnomalyEngine(AssessmentEngine):
    """Assesses whether an in-transit shipment is behaving abnormally.

    Resolving the subject loads its transport record; an unknown transport
    is an orchestration failure and yields the fallback assessment.
    """

    def __init__(self, provider: HistoryProvider, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.provider = provider

    @property
    def kind(self) -> AssessmentKind:
        return AssessmentKind.ROUTE_ANOMALY

    def resolve(self, subject: ShipmentSubject) -> AnalysisContext:
        transport = self.provider.get_transport(subject.transport_id)
        if transport is None:
            raise SubjectNotFound("transport", subject.transport_id)
        return AnalysisContext(subject=subject, provider=self.provider, transport=transport)

    def recommendation_context(self, context: AnalysisContext) -> dict[str, Any]:
        return {"transport_type": context.transport.transport_type}


def build_route_engine(
    provider: HistoryProvider,
    settings: EngineSettings | None = None,
    recorder: AssessmentRecorder | None = None,
) -> RouteAnomalyEngine:
    """Wire the six route analyzers, their weights and rule table into an engine."""
    settings = settings or EngineSettings.from_config(
        DEFAULT_CONFIG, AssessmentKind.ROUTE_ANOMALY,
    )
    return RouteAnomalyEngine(
        provider,
        build_specs(ROUTE_ANALYZERS, settings.weights, settings.analyzers),
        Classifier(settings.thresholds),
        RecommendationGenerator(RuleTable(
            level_rules=ROUTE_LEVEL_RULES,
            factor_rules=ROUTE_FACTOR_RULES,
            factor_trigger=settings.factor_trigger,
            trigger_on_anomaly=settings.trigger_on_anomaly,
        )),
        recorder=recorder,
        parallel=settings.parallel,
        max_workers=settings.max_workers,
        analyzer_timeout=settings.analyzer_timeout_seconds,
    )
