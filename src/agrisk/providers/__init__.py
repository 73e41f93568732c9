"""Historical data providers consumed by the signal analyzers."""

from agrisk.providers.base import HistoryProvider
from agrisk.providers.memory import MemoryHistoryProvider

__all__ = ["HistoryProvider", "MemoryHistoryProvider"]
