"""In-process history provider backed by record lists or a JSON fixture."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from agrisk.providers.base import HistoryProvider
from agrisk.providers.records import (
    ArrivalPrediction,
    OrderRecord,
    PaymentRecord,
    TrackingPoint,
    TransportRecord,
    UserRecord,
)

logger = logging.getLogger("agrisk.providers")

# Fixture section name -> record model
_SECTIONS: dict[str, type[BaseModel]] = {
    "users": UserRecord,
    "orders": OrderRecord,
    "payments": PaymentRecord,
    "transports": TransportRecord,
    "tracking": TrackingPoint,
    "predictions": ArrivalPrediction,
}


class MemoryHistoryProvider(HistoryProvider):
    """History provider holding every record in memory.

    Useful for demos, tests, and replaying a captured snapshot without a
    database. Records are never mutated after loading, so one instance can
    serve concurrent assessments.
    """

    def __init__(
        self,
        users: Iterable[UserRecord] = (),
        orders: Iterable[OrderRecord] = (),
        payments: Iterable[PaymentRecord] = (),
        transports: Iterable[TransportRecord] = (),
        tracking: Iterable[TrackingPoint] = (),
        predictions: Iterable[ArrivalPrediction] = (),
        config: dict[str, Any] | None = None,
    ):
        super().__init__(config)
        self._users = {u.user_id: u for u in users}
        self._orders = list(orders)
        self._payments = list(payments)
        self._transports = {t.transport_id: t for t in transports}
        self._tracking = sorted(tracking, key=lambda p: p.timestamp)
        self._predictions = list(predictions)

    @classmethod
    def from_fixture(
        cls, path: str | Path, config: dict[str, Any] | None = None
    ) -> MemoryHistoryProvider:
        """Load records from a JSON fixture with one list per record type."""
        filepath = Path(path)
        with open(filepath) as f:
            raw = json.load(f)

        sections: dict[str, list[BaseModel]] = {}
        for section, model in _SECTIONS.items():
            records = []
            for item in raw.get(section, []):
                try:
                    records.append(model.model_validate(item))
                except ValidationError as e:
                    # Skip malformed records but don't crash
                    logger.warning(
                        "Skipping malformed %s record in %s: %s",
                        section, filepath.name, e.errors()[0]["msg"],
                    )
            sections[section] = records

        return cls(config=config, **sections)

    @property
    def source_name(self) -> str:
        return "memory"

    def orders_for_buyer(self, buyer_id: str, since: datetime, until: datetime) -> list[OrderRecord]:
        return [
            o for o in self._orders
            if o.buyer_id == buyer_id and since <= o.created_at <= until
        ]

    def payments_for_buyer(
        self, buyer_id: str, since: datetime, until: datetime
    ) -> list[PaymentRecord]:
        return [
            p for p in self._payments
            if p.buyer_id == buyer_id and since <= p.created_at <= until
        ]

    def cod_payments_for_region(
        self, region: str, since: datetime, until: datetime
    ) -> list[PaymentRecord]:
        buyers = {uid for uid, user in self._users.items() if user.region == region}
        return [
            p for p in self._payments
            if p.buyer_id in buyers
            and p.payment_method == "cod"
            and since <= p.created_at <= until
        ]

    def get_user(self, user_id: str) -> UserRecord | None:
        return self._users.get(user_id)

    def get_transport(self, transport_id: str) -> TransportRecord | None:
        return self._transports.get(transport_id)

    def tracking_points(
        self, transport_id: str, since: datetime, until: datetime
    ) -> list[TrackingPoint]:
        return [
            p for p in self._tracking
            if p.transport_id == transport_id and since <= p.timestamp <= until
        ]

    def latest_prediction(self, transport_id: str) -> ArrivalPrediction | None:
        candidates = [p for p in self._predictions if p.transport_id == transport_id]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.created_at)
