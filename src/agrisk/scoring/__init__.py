"""Scoring engine, classifier, recommendations, and data models."""

from agrisk.scoring.classifier import Classifier
from agrisk.scoring.engine import AnalyzerSpec, AssessmentEngine
from agrisk.scoring.models import (
    AnalyzerOutcome,
    AnalyzerResult,
    Assessment,
    AssessmentKind,
    Outcome,
    PaymentSubject,
    RiskLevel,
    ShipmentSubject,
)
from agrisk.scoring.recommendations import RecommendationGenerator

__all__ = [
    "AssessmentEngine",
    "AnalyzerSpec",
    "Classifier",
    "RecommendationGenerator",
    "AnalyzerOutcome",
    "AnalyzerResult",
    "Assessment",
    "AssessmentKind",
    "Outcome",
    "PaymentSubject",
    "RiskLevel",
    "ShipmentSubject",
]
