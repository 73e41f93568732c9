"""Historical records and windowed aggregates served by history providers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from agrisk.scoring.models import GeoPoint


class OrderRecord(BaseModel):
    order_id: str
    buyer_id: str
    farmer_id: str | None = None
    total_amount: float = 0.0
    status: str = "pending"
    created_at: datetime


class PaymentRecord(BaseModel):
    payment_id: str
    order_id: str
    buyer_id: str
    payment_method: str = "cod"
    status: str = "pending"
    created_at: datetime


class UserRecord(BaseModel):
    user_id: str
    role: str = "buyer"
    region: str | None = None
    created_at: datetime


class TransportRecord(BaseModel):
    """A shipment as known to the logistics side of the marketplace."""

    transport_id: str
    order_id: str | None = None
    transport_type: str = "truck"
    status: str = "in_transit"
    pickup_location: GeoPoint | None = None
    delivery_location: GeoPoint | None = None
    planned_route: list[GeoPoint] = Field(default_factory=list)
    planned_distance_km: float | None = None


class TrackingPoint(BaseModel):
    transport_id: str
    timestamp: datetime
    location: GeoPoint | None = None
    speed: float | None = None  # km/h


class ArrivalPrediction(BaseModel):
    transport_id: str
    predicted_arrival: datetime
    created_at: datetime


class PaymentHistoryStats(BaseModel):
    total_payments: int = 0
    successful_payments: int = 0
    failed_payments: int = 0
    cod_failures: int = 0

    @property
    def success_rate(self) -> float:
        if not self.total_payments:
            return 0.0
        return self.successful_payments / self.total_payments


class OrderPatternStats(BaseModel):
    total_orders: int = 0
    cancelled_orders: int = 0
    delivered_orders: int = 0
    avg_order_value: float = 0.0
    order_value_stddev: float = 0.0
    max_order_value: float = 0.0
    unique_farmers: int = 0


class RegionalCodStats(BaseModel):
    total_cod_orders: int = 0
    failed_cod_orders: int = 0


class OrderFrequency(BaseModel):
    orders_last_24h: int = 0
    orders_last_7d: int = 0
    orders_last_30d: int = 0


class AmountStats(BaseModel):
    order_count: int = 0
    avg_amount: float = 0.0
    stddev_amount: float = 0.0
    max_amount: float = 0.0


class ExpectedRoute(BaseModel):
    """Planned path of a shipment and the locations where stops are expected."""

    path: list[GeoPoint] = Field(default_factory=list)
    total_distance_km: float = 0.0
    waypoints: list[GeoPoint] = Field(default_factory=list)
