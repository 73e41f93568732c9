"""Signal analyzers: one self-contained scorer per risk or anomaly dimension."""

from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer

__all__ = ["AnalysisContext", "BaseAnalyzer"]
