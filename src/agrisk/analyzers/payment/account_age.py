"""Account age analyzer: younger buyer accounts carry more risk."""

from __future__ import annotations

from typing import Any

from agrisk.analyzers.base import AnalysisContext, BaseAnalyzer
from agrisk.exceptions import SubjectNotFound
from agrisk.scoring.models import AnalyzerResult

# (maximum age in days, score, reason), checked in order
DEFAULT_AGE_STEPS: list[tuple[float, float, str]] = [
    (1, 0.8, "Account created today"),
    (7, 0.6, "Account less than 1 week old"),
    (30, 0.4, "Account less than 1 month old"),
    (90, 0.2, "Account less than 3 months old"),
]


class AccountAgeAnalyzer(BaseAnalyzer):
    """Monotonic step function of the buyer account's age."""

    fallback_score = 0.5

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self._steps = [tuple(s) for s in self.config.get("age_steps", DEFAULT_AGE_STEPS)]
        self._established_score = self.config.get("established_score", 0.1)

    @property
    def name(self) -> str:
        return "account_age"

    @property
    def title(self) -> str:
        return "Account age"

    def analyze(self, context: AnalysisContext) -> AnalyzerResult:
        buyer_id = context.subject.buyer_id
        user = context.provider.get_user(buyer_id)
        if user is None:
            raise SubjectNotFound("buyer", buyer_id)

        age_days = max(0.0, (context.as_of - user.created_at).total_seconds() / 86400)

        for max_days, score, reason in self._steps:
            if age_days < max_days:
                break
        else:
            score = self._established_score
            reason = f"Established account ({age_days:.0f} days old)"

        return AnalyzerResult(
            score=score,
            reasons=[reason],
            data={
                "account_age_days": round(age_days, 1),
                "created_at": user.created_at.isoformat(),
            },
        )
