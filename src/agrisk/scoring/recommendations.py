"""Rule-table recommendation generator shared by both instantiations."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from agrisk.scoring.models import AnalyzerResult, RiskLevel

# A predicate over the caller-supplied context (e.g., "payment is COD")
ContextPredicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class LevelRule:
    """Recommendation emitted for a level, optionally only when a condition holds."""

    text: str
    when: ContextPredicate | None = None

    def applies(self, context: Mapping[str, Any]) -> bool:
        return self.when is None or self.when(context)


@dataclass(frozen=True)
class RuleTable:
    """Base recommendations per level plus one line per high-scoring factor."""

    level_rules: Mapping[RiskLevel, list[LevelRule]]
    factor_rules: Mapping[str, str] = field(default_factory=dict)
    factor_trigger: float = 0.7
    trigger_on_anomaly: bool = False


def dedupe(items: list[str]) -> list[str]:
    """Drop repeated strings, keeping first-seen order."""
    return list(dict.fromkeys(items))


class RecommendationGenerator:
    """Turns a level and its factor breakdown into deduplicated actions.

    Base lines come from the level; then, in factor order, every factor
    scoring above the trigger (or, when the table says so, flagged as
    anomalous) contributes its factor line.
    """

    def __init__(self, table: RuleTable):
        self.table = table

    def recommend(
        self,
        level: RiskLevel,
        factors: Mapping[str, AnalyzerResult],
        context: Mapping[str, Any] | None = None,
    ) -> list[str]:
        context = context or {}
        recommendations = [
            rule.text
            for rule in self.table.level_rules.get(level, [])
            if rule.applies(context)
        ]

        for name, result in factors.items():
            text = self.table.factor_rules.get(name)
            if text is None:
                continue
            triggered = result.score > self.table.factor_trigger or (
                self.table.trigger_on_anomaly and result.is_anomalous
            )
            if triggered:
                recommendations.append(text)

        return dedupe(recommendations)
