"""Abstract base class for signal analyzers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agrisk.providers.base import HistoryProvider
from agrisk.providers.records import TransportRecord
from agrisk.scoring.models import (
    AnalyzerOutcome,
    AnalyzerResult,
    PaymentSubject,
    ShipmentSubject,
)

logger = logging.getLogger("agrisk.analyzers")


@dataclass(frozen=True)
class AnalysisContext:
    """Everything an analyzer may read for one assessment.

    ``transport`` is resolved once by the route engine; payment analyzers
    leave it unset.
    """

    subject: PaymentSubject | ShipmentSubject
    provider: HistoryProvider
    transport: TransportRecord | None = None

    @property
    def as_of(self) -> datetime:
        return self.subject.as_of


class BaseAnalyzer(ABC):
    """Abstract analyzer interface for one risk/anomaly dimension.

    Each analyzer turns the history of one subject into an AnalyzerResult.
    ``analyze`` may raise; ``run`` never does: it converts any failure into
    the analyzer's fallback score with a reason naming the failure.
    """

    fallback_score: float = 0.5

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}
        self.fallback_score = float(self.config.get("fallback_score", self.fallback_score))

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, also used for weights (e.g., 'payment_history')."""
        ...

    @property
    @abstractmethod
    def title(self) -> str:
        """Human-readable name used in reasons (e.g., 'Payment history')."""
        ...

    @abstractmethod
    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        """Score the subject in ``context``.

        Returns:
            AnalyzerResult with a score in [0, 1], reasons and metrics.
        """
        ...

    def fallback(self, error: str) -> AnalyzerOutcome:
        """Outcome used when the analyzer fails or times out."""
        return AnalyzerOutcome(
            name=self.name,
            result=AnalyzerResult(
                score=self.fallback_score,
                reasons=[f"{self.title} analysis failed: {error}"],
                data={"error": error},
            ),
            error=error,
        )

    def run(self, context: AnalysisContext) -> AnalyzerOutcome:
        """Run ``analyze`` and capture any failure as a fallback outcome."""
        try:
            result = self.analyze(context)
        except Exception as e:
            logger.warning(
                "%s analyzer failed for %s: %s",
                self.name, context.subject.subject_id, e,
            )
            return self.fallback(str(e) or type(e).__name__)
        return AnalyzerOutcome(name=self.name, result=result)
