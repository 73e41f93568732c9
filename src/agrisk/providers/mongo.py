"""MongoDB history provider reading the marketplace's operational collections."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from agrisk.exceptions import ProviderError
from agrisk.providers.base import HistoryProvider
from agrisk.providers.records import (
    ArrivalPrediction,
    OrderRecord,
    PaymentRecord,
    TrackingPoint,
    TransportRecord,
    UserRecord,
)


def _as_utc(doc: dict[str, Any]) -> dict[str, Any]:
    """Mark naive datetimes (pymongo's default decoding) as UTC."""
    return {
        key: value.replace(tzinfo=timezone.utc)
        if isinstance(value, datetime) and value.tzinfo is None
        else value
        for key, value in doc.items()
    }


class MongoHistoryProvider(HistoryProvider):
    """History provider over MongoDB collections.

    Every read carries ``maxTimeMS`` (``query_timeout_ms``, default 2000), so
    a slow store surfaces as a ``ProviderError`` in the analyzer that issued
    the read instead of blocking the assessment.

    Collections: users, orders, payments, transports, tracking, predictions.
    Documents use the field names of the record models.
    """

    def __init__(self, config: dict[str, Any] | None = None, database: Any = None):
        super().__init__(config)
        self._uri = self.config.get("uri") or os.environ.get(
            "AGRISK_MONGO_URI", "mongodb://localhost:27017"
        )
        self._db_name = self.config.get("database") or os.environ.get(
            "AGRISK_MONGO_DB", "marketplace"
        )
        self._timeout_ms = int(self.config.get("query_timeout_ms", 2000))
        self._client: Any = None
        self._db: Any = database

    @property
    def source_name(self) -> str:
        return "mongodb"

    def _connect(self) -> None:
        if self._db is not None:
            return

        from pymongo import MongoClient

        self._client = MongoClient(self._uri, serverSelectionTimeoutMS=5000, tz_aware=True)
        self._db = self._client[self._db_name]

    def _find(
        self,
        collection: str,
        query: dict[str, Any],
        model: type[BaseModel],
        sort: list[tuple[str, int]] | None = None,
        limit: int = 0,
    ) -> list[Any]:
        from pymongo.errors import PyMongoError

        self._connect()
        try:
            cursor = self._db[collection].find(
                query, {"_id": 0}, max_time_ms=self._timeout_ms,
            )
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            return [model.model_validate(_as_utc(doc)) for doc in cursor]
        except PyMongoError as e:
            raise ProviderError(f"{collection} query failed: {e}") from e

    def orders_for_buyer(self, buyer_id: str, since: datetime, until: datetime) -> list[OrderRecord]:
        return self._find(
            "orders",
            {"buyer_id": buyer_id, "created_at": {"$gte": since, "$lte": until}},
            OrderRecord,
        )

    def payments_for_buyer(
        self, buyer_id: str, since: datetime, until: datetime
    ) -> list[PaymentRecord]:
        return self._find(
            "payments",
            {"buyer_id": buyer_id, "created_at": {"$gte": since, "$lte": until}},
            PaymentRecord,
        )

    def cod_payments_for_region(
        self, region: str, since: datetime, until: datetime
    ) -> list[PaymentRecord]:
        buyers = [u.user_id for u in self._find("users", {"region": region}, UserRecord)]
        if not buyers:
            return []
        return self._find(
            "payments",
            {
                "buyer_id": {"$in": buyers},
                "payment_method": "cod",
                "created_at": {"$gte": since, "$lte": until},
            },
            PaymentRecord,
        )

    def get_user(self, user_id: str) -> UserRecord | None:
        found = self._find("users", {"user_id": user_id}, UserRecord, limit=1)
        return found[0] if found else None

    def get_transport(self, transport_id: str) -> TransportRecord | None:
        found = self._find("transports", {"transport_id": transport_id}, TransportRecord, limit=1)
        return found[0] if found else None

    def tracking_points(
        self, transport_id: str, since: datetime, until: datetime
    ) -> list[TrackingPoint]:
        return self._find(
            "tracking",
            {"transport_id": transport_id, "timestamp": {"$gte": since, "$lte": until}},
            TrackingPoint,
            sort=[("timestamp", 1)],
        )

    def latest_prediction(self, transport_id: str) -> ArrivalPrediction | None:
        found = self._find(
            "predictions",
            {"transport_id": transport_id},
            ArrivalPrediction,
            sort=[("created_at", -1)],
            limit=1,
        )
        return found[0] if found else None
