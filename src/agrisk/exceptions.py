"""Exception hierarchy for agrisk."""

from __future__ import annotations


class AgriskError(Exception):
    """Base class for all agrisk errors."""


class ConfigError(AgriskError):
    """Invalid weights, thresholds or analyzer parameters.

    Raised at construction time; the only error that reaches callers.
    """


class SubjectNotFound(AgriskError):
    """The subject of an assessment cannot be resolved."""

    def __init__(self, kind: str, subject_id: str):
        super().__init__(f"{kind} subject not found: {subject_id}")
        self.kind = kind
        self.subject_id = subject_id


class ProviderError(AgriskError):
    """A historical data read failed or timed out."""
