"""Durable assessment stores and the best-effort recorder in front of them."""

from agrisk.storage.base import AssessmentStore
from agrisk.storage.memory import MemoryStorage
from agrisk.storage.recorder import AssessmentRecorder

__all__ = ["AssessmentStore", "MemoryStorage", "AssessmentRecorder"]
