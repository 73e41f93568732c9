"""Abstract base class for historical data providers."""

from __future__ import annotations

import statistics
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any

from agrisk.geo import path_length_km
from agrisk.providers.records import (
    AmountStats,
    ArrivalPrediction,
    ExpectedRoute,
    OrderFrequency,
    OrderPatternStats,
    OrderRecord,
    PaymentHistoryStats,
    PaymentRecord,
    RegionalCodStats,
    TrackingPoint,
    TransportRecord,
    UserRecord,
)

DEFAULT_ROUTE_DISTANCE_KM = 100.0


def _stddev(values: list[float]) -> float:
    # Sample standard deviation; undefined (reported as 0) below two values.
    return statistics.stdev(values) if len(values) >= 2 else 0.0


class HistoryProvider(ABC):
    """Read-only access to marketplace history, scoped by entity and window.

    Backends implement the raw reads (``orders_for_buyer``, ``get_user``,
    ``tracking_points`` ...). The windowed aggregate queries the analyzers
    consume are built on top of those reads here, so every backend answers
    them identically.

    Raw reads may raise ``ProviderError``; analyzers treat that as a local
    failure and fall back to their default score.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}
        self._default_route_km = float(
            self.config.get("default_route_distance_km", DEFAULT_ROUTE_DISTANCE_KM)
        )

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Name of the backing store (e.g., 'memory', 'mongodb')."""
        ...

    # -- raw reads ---------------------------------------------------------

    @abstractmethod
    def orders_for_buyer(self, buyer_id: str, since: datetime, until: datetime) -> list[OrderRecord]:
        ...

    @abstractmethod
    def payments_for_buyer(
        self, buyer_id: str, since: datetime, until: datetime
    ) -> list[PaymentRecord]:
        ...

    @abstractmethod
    def cod_payments_for_region(
        self, region: str, since: datetime, until: datetime
    ) -> list[PaymentRecord]:
        """COD payments made by buyers registered in ``region``."""
        ...

    @abstractmethod
    def get_user(self, user_id: str) -> UserRecord | None:
        ...

    @abstractmethod
    def get_transport(self, transport_id: str) -> TransportRecord | None:
        ...

    @abstractmethod
    def tracking_points(
        self, transport_id: str, since: datetime, until: datetime
    ) -> list[TrackingPoint]:
        """Tracking points in the window, oldest first."""
        ...

    @abstractmethod
    def latest_prediction(self, transport_id: str) -> ArrivalPrediction | None:
        ...

    # -- windowed aggregates ----------------------------------------------

    def payment_history_stats(
        self, buyer_id: str, as_of: datetime, days: int = 90
    ) -> PaymentHistoryStats:
        payments = self.payments_for_buyer(buyer_id, as_of - timedelta(days=days), as_of)
        return PaymentHistoryStats(
            total_payments=len(payments),
            successful_payments=sum(1 for p in payments if p.status == "completed"),
            failed_payments=sum(1 for p in payments if p.status == "failed"),
            cod_failures=sum(
                1 for p in payments
                if p.payment_method == "cod" and p.status == "failed"
            ),
        )

    def order_pattern_stats(
        self, buyer_id: str, as_of: datetime, days: int = 30
    ) -> OrderPatternStats:
        orders = self.orders_for_buyer(buyer_id, as_of - timedelta(days=days), as_of)
        if not orders:
            return OrderPatternStats()
        amounts = [o.total_amount for o in orders]
        return OrderPatternStats(
            total_orders=len(orders),
            cancelled_orders=sum(1 for o in orders if o.status == "cancelled"),
            delivered_orders=sum(1 for o in orders if o.status == "delivered"),
            avg_order_value=statistics.fmean(amounts),
            order_value_stddev=_stddev(amounts),
            max_order_value=max(amounts),
            unique_farmers=len({o.farmer_id for o in orders if o.farmer_id}),
        )

    def regional_cod_stats(
        self, region: str, as_of: datetime, days: int = 90
    ) -> RegionalCodStats:
        payments = self.cod_payments_for_region(region, as_of - timedelta(days=days), as_of)
        return RegionalCodStats(
            total_cod_orders=len(payments),
            failed_cod_orders=sum(1 for p in payments if p.status == "failed"),
        )

    def order_frequency(self, buyer_id: str, as_of: datetime) -> OrderFrequency:
        orders = self.orders_for_buyer(buyer_id, as_of - timedelta(days=30), as_of)
        day_ago = as_of - timedelta(hours=24)
        week_ago = as_of - timedelta(days=7)
        return OrderFrequency(
            orders_last_24h=sum(1 for o in orders if o.created_at >= day_ago),
            orders_last_7d=sum(1 for o in orders if o.created_at >= week_ago),
            orders_last_30d=len(orders),
        )

    def amount_stats(self, buyer_id: str, as_of: datetime, days: int = 90) -> AmountStats:
        orders = self.orders_for_buyer(buyer_id, as_of - timedelta(days=days), as_of)
        if not orders:
            return AmountStats()
        amounts = [o.total_amount for o in orders]
        return AmountStats(
            order_count=len(amounts),
            avg_amount=statistics.fmean(amounts),
            stddev_amount=_stddev(amounts),
            max_amount=max(amounts),
        )

    def tracking_history(
        self, transport_id: str, as_of: datetime, minutes: int = 60
    ) -> list[TrackingPoint]:
        points = self.tracking_points(transport_id, as_of - timedelta(minutes=minutes), as_of)
        return sorted(points, key=lambda p: p.timestamp)

    def expected_route(self, transport: TransportRecord) -> ExpectedRoute:
        """Planned path for a shipment.

        Uses the planned route when it has at least two points, otherwise the
        straight pickup-to-delivery leg. The total distance prefers the
        planned figure, then the path length, then the configured default.
        """
        if len(transport.planned_route) >= 2:
            path = list(transport.planned_route)
        elif transport.pickup_location and transport.delivery_location:
            path = [transport.pickup_location, transport.delivery_location]
        else:
            path = []

        total = transport.planned_distance_km or path_length_km(path) or self._default_route_km

        waypoints = list(path)
        for endpoint in (transport.pickup_location, transport.delivery_location):
            if endpoint is not None and endpoint not in waypoints:
                waypoints.append(endpoint)

        return ExpectedRoute(path=path, total_distance_km=total, waypoints=waypoints)
