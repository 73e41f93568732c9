"""Aggregation engine that runs registered analyzers and composes an Assessment."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any, NamedTuple

from agrisk.exceptions import ConfigError
from agrisk.scoring.classifier import Classifier
from agrisk.scoring.models import (
    AnalyzerOutcome,
    Assessment,
    AssessmentKind,
    PaymentSubject,
    ShipmentSubject,
    clamp_score,
)
from agrisk.scoring.recommendations import RecommendationGenerator

if TYPE_CHECKING:
    from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer
    from agrisk.storage.recorder import AssessmentRecorder

logger = logging.getLogger("agrisk.engine")

FALLBACK_SCORE = 0.5
FALLBACK_RECOMMENDATION = "Manual review recommended due to assessment error"
WEIGHT_TOLERANCE = 1e-6


class AnalyzerSpec(NamedTuple):
    """Registry entry: an analyzer and the weight of its score in the total."""

    name: str
    weight: float
    analyzer: BaseAnalyzer


def validate_weights(weights: Mapping[str, float]) -> None:
    """Check that factor weights are non-negative and sum to 1.0.

    Raises:
        ConfigError: if any weight is negative or the sum is off by more
            than the tolerance.
    """
    negative = {name: w for name, w in weights.items() if w < 0}
    if negative:
        raise ConfigError(f"Factor weights must be non-negative: {negative}")
    total = math.fsum(weights.values())
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ConfigError(f"Factor weights must sum to 1.0, got {total:.6f}")


def build_specs(
    registry: Mapping[str, type[BaseAnalyzer]],
    weights: Mapping[str, float],
    configs: Mapping[str, dict[str, Any]] | None = None,
) -> list[AnalyzerSpec]:
    """Instantiate every registered analyzer with its weight and config.

    Raises:
        ConfigError: if the weighted names and the registry disagree.
    """
    configs = configs or {}
    if set(weights) != set(registry):
        raise ConfigError(
            f"Weights {sorted(weights)} do not match analyzers {sorted(registry)}"
        )
    return [
        AnalyzerSpec(name, weights[name], analyzer_cls(configs.get(name, {})))
        for name, analyzer_cls in registry.items()
    ]


class AssessmentEngine(ABC):
    """Weighted score aggregation engine.

    Runs every registered analyzer for a subject, sums ``score * weight``,
    clamps the total to [0, 1], classifies it, derives recommendations and
    hands the Assessment to the recorder.

    The engine never raises past ``aggregate``: an analyzer failure becomes
    that analyzer's fallback score, and a failure of the orchestration itself
    (for example an unknown subject) yields the fallback Assessment with
    ``error`` set.

    Analyzers run sequentially by default. With ``parallel`` they run on a
    thread pool and each one gets ``analyzer_timeout`` seconds before its
    fallback is used instead.
    """

    def __init__(
        self,
        analyzers: Sequence[AnalyzerSpec],
        classifier: Classifier,
        recommender: RecommendationGenerator,
        recorder: AssessmentRecorder | None = None,
        parallel: bool = False,
        max_workers: int | None = None,
        analyzer_timeout: float | None = None,
    ):
        names = [spec.name for spec in analyzers]
        if not names:
            raise ConfigError("At least one analyzer must be registered")
        if len(set(names)) != len(names):
            raise ConfigError(f"Duplicate analyzer names: {names}")
        validate_weights({spec.name: spec.weight for spec in analyzers})

        self._analyzers = list(analyzers)
        self.classifier = classifier
        self.recommender = recommender
        self.recorder = recorder
        self._parallel = parallel
        self._max_workers = max_workers or len(self._analyzers)
        self._analyzer_timeout = analyzer_timeout

    @property
    @abstractmethod
    def kind(self) -> AssessmentKind:
        """Which instantiation this engine implements."""
        ...

    @abstractmethod
    def resolve(self, subject: Any) -> AnalysisContext:
        """Build the analysis context for a subject.

        Raises:
            SubjectNotFound: if the subject cannot be resolved.
        """
        ...

    def recommendation_context(self, context: AnalysisContext) -> dict[str, Any]:
        """Extra facts the recommendation rules may condition on."""
        return {}

    @property
    def weights(self) -> dict[str, float]:
        return {spec.name: spec.weight for spec in self._analyzers}

    def aggregate(self, subject: PaymentSubject | ShipmentSubject) -> Assessment:
        """Assess one subject and return the composed, recorded Assessment."""
        try:
            assessment = self._assess(subject)
        except Exception:
            logger.exception(
                "%s assessment failed for %s; returning fallback",
                self.kind.value, subject.subject_id,
            )
            assessment = self.fallback_assessment(subject)

        if self.recorder is not None:
            assessment_id = self.recorder.record(assessment)
            if assessment_id is not None:
                assessment = assessment.model_copy(update={"assessment_id": assessment_id})

        return assessment

    def fallback_assessment(self, subject: PaymentSubject | ShipmentSubject) -> Assessment:
        """Fixed mid-level Assessment returned when orchestration fails."""
        return Assessment(
            kind=self.kind,
            subject_id=subject.subject_id,
            total_score=FALLBACK_SCORE,
            level=self.classifier.classify(FALLBACK_SCORE),
            recommendations=[FALLBACK_RECOMMENDATION],
            created_at=subject.as_of,
            error=True,
        )

    def _assess(self, subject: PaymentSubject | ShipmentSubject) -> Assessment:
        context = self.resolve(subject)
        outcomes = self._run_analyzers(context)

        factors = {
            spec.name: outcome.result for spec, outcome in zip(self._analyzers, outcomes)
        }
        total = clamp_score(
            math.fsum(spec.weight * factors[spec.name].score for spec in self._analyzers)
        )
        total = round(total, 3)
        level = self.classifier.classify(total)
        recommendations = self.recommender.recommend(
            level, factors, self.recommendation_context(context),
        )

        failed = [o.name for o in outcomes if not o.ok]
        logger.info(
            "%s %s: score=%.3f level=%s failed_analyzers=%s",
            self.kind.value, subject.subject_id, total, level.value, failed or "none",
        )

        return Assessment(
            kind=self.kind,
            subject_id=subject.subject_id,
            total_score=total,
            level=level,
            factors=factors,
            recommendations=recommendations,
            created_at=subject.as_of,
            is_anomalous=any(result.is_anomalous for result in factors.values()),
        )

    def _run_analyzers(self, context: AnalysisContext) -> list[AnalyzerOutcome]:
        if not self._parallel:
            return [spec.analyzer.run(context) for spec in self._analyzers]

        executor = ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="agrisk-analyzer",
        )
        try:
            futures = [executor.submit(spec.analyzer.run, context) for spec in self._analyzers]
            wait(futures, timeout=self._analyzer_timeout)

            outcomes: list[AnalyzerOutcome] = []
            for spec, future in zip(self._analyzers, futures):
                if future.done():
                    outcomes.append(future.result())
                else:
                    logger.warning(
                        "%s analyzer timed out after %ss for %s",
                        spec.name, self._analyzer_timeout, context.subject.subject_id,
                    )
                    outcomes.append(
                        spec.analyzer.fallback(f"timed out after {self._analyzer_timeout}s")
                    )
            return outcomes
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
