"""Pydantic data models for assessment subjects, analyzer results, and assessments."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp_score(value: float) -> float:
    """Clamp a raw score into [0, 1].

    Infinities saturate to the nearest bound; NaN maps to the neutral 0.5.
    """
    value = float(value)
    if math.isnan(value):
        return 0.5
    return max(0.0, min(1.0, value))


class AssessmentKind(str, Enum):
    """The two instantiations of the scoring engine."""

    PAYMENT_RISK = "payment_risk"
    ROUTE_ANOMALY = "route_anomaly"


class RiskLevel(str, Enum):
    """Ordered severity levels derived from the aggregate score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


class Outcome(str, Enum):
    """Ground-truth label attached to an assessment after the fact."""

    SUCCESS = "success"
    FAILURE = "failure"


class GeoPoint(BaseModel):
    """A WGS84 coordinate."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class PaymentSubject(BaseModel):
    """Snapshot of a placed order, taken when its payment risk is assessed."""

    model_config = ConfigDict(frozen=True)

    order_id: str
    buyer_id: str
    farmer_id: str | None = None
    product_id: str | None = None
    total_amount: float = Field(ge=0.0)
    payment_method: str = "cod"
    region: str | None = None
    farmer_region: str | None = None
    as_of: datetime = Field(default_factory=utcnow)

    @property
    def subject_id(self) -> str:
        return self.order_id

    @property
    def is_cod(self) -> bool:
        return self.payment_method.lower() == "cod"


class ShipmentSubject(BaseModel):
    """Snapshot of an in-transit shipment at a tracking update."""

    model_config = ConfigDict(frozen=True)

    transport_id: str
    current_location: GeoPoint | None = None
    vehicle_type: str | None = None
    estimated_arrival: datetime | None = None
    as_of: datetime = Field(default_factory=utcnow)

    @property
    def subject_id(self) -> str:
        return self.transport_id


class AnalyzerResult(BaseModel):
    """Normalized output of a single signal analyzer.

    The score is always clamped into [0, 1], whatever arithmetic produced it.
    """

    score: float
    reasons: list[str] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)
    is_anomalous: bool = False

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return clamp_score(value)


class AnalyzerOutcome(BaseModel):
    """Typed per-analyzer result: either the analyzer's value or its fallback.

    ``result`` is always populated, so the aggregator never has to branch on
    failure; ``error`` explains why the fallback was used.
    """

    name: str
    result: AnalyzerResult
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Thresholds(BaseModel):
    """Ordered (level, upper bound) bands with a catch-all top level.

    With ``inclusive_upper`` a score equal to a bound stays in the lower band
    (``low <= 0.3 < medium``); without it the bound belongs to the next band
    (``low < 0.3 <= medium``).
    """

    model_config = ConfigDict(frozen=True)

    bands: tuple[tuple[RiskLevel, float], ...]
    top_level: RiskLevel = RiskLevel.CRITICAL
    inclusive_upper: bool = True

    @model_validator(mode="after")
    def _check_bands(self) -> Thresholds:
        bounds = [bound for _, bound in self.bands]
        if any(b <= a for a, b in zip(bounds, bounds[1:])):
            raise ValueError(f"threshold bounds must be strictly increasing: {bounds}")
        levels = [level for level, _ in self.bands] + [self.top_level]
        if any(b.rank <= a.rank for a, b in zip(levels, levels[1:])):
            raise ValueError(f"threshold levels must be in ascending order: {levels}")
        return self


class Assessment(BaseModel):
    """Composed result of one scoring request.

    Created once per request and stored append-only; only the outcome fields
    change afterwards, when ground truth becomes known.
    """

    assessment_id: str | None = None
    kind: AssessmentKind
    subject_id: str
    total_score: float = Field(ge=0.0, le=1.0)
    level: RiskLevel
    factors: dict[str, AnalyzerResult] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    is_anomalous: bool = False
    error: bool = False
    outcome: Outcome | None = None
    outcome_reason: str | None = None
    outcome_at: datetime | None = None


class AssessmentFilter(BaseModel):
    """Selection criteria for ``get_recent_assessments``."""

    kind: AssessmentKind | None = None
    subject_id: str | None = None
    level: RiskLevel | None = None
    since: datetime | None = None
    has_outcome: bool | None = None

    def matches(self, assessment: Assessment) -> bool:
        if self.kind is not None and assessment.kind != self.kind:
            return False
        if self.subject_id is not None and assessment.subject_id != self.subject_id:
            return False
        if self.level is not None and assessment.level != self.level:
            return False
        if self.since is not None and assessment.created_at < self.since:
            return False
        if self.has_outcome is not None and (assessment.outcome is not None) != self.has_outcome:
            return False
        return True


class LevelStatistics(BaseModel):
    """Per-level aggregate over a reporting window."""

    level: RiskLevel
    count: int = 0
    avg_score: float = 0.0
    successful: int = 0
    failed: int = 0
