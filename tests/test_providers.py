"""Tests for history providers and their windowed aggregates."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import ExecutionTimeout

from agrisk.analyzers.base import AnalysisContext
from agrisk.analyzers.payment.account_age import AccountAgeAnalyzer
from agrisk.exceptions import ProviderError
from agrisk.providers.memory import MemoryHistoryProvider
from agrisk.providers.mongo import MongoHistoryProvider
from agrisk.providers.records import OrderRecord, TransportRecord
from agrisk.scoring.models import GeoPoint, PaymentSubject

FIXTURE = Path(__file__).parent / "fixtures" / "sample_history.json"
AS_OF = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def provider() -> MemoryHistoryProvider:
    return MemoryHistoryProvider.from_fixture(FIXTURE)


class TestMemoryHistoryProvider:
    def test_fixture_loads_records(self, provider):
        assert provider.source_name == "memory"
        assert provider.get_user("buyer_1").region == "Dhaka"
        assert provider.get_transport("tr_1").transport_type == "truck"
        assert provider.get_user("nobody") is None

    def test_malformed_records_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="agrisk.providers"):
            loaded = MemoryHistoryProvider.from_fixture(FIXTURE)
        orders = loaded.orders_for_buyer("buyer_2", AS_OF - timedelta(days=30), AS_OF)
        assert [o.order_id for o in orders] == ["ord_201"]
        assert "Skipping malformed orders record" in caplog.text

    def test_payment_history_stats(self, provider):
        stats = provider.payment_history_stats("buyer_1", AS_OF)
        assert stats.total_payments == 5
        assert stats.successful_payments == 5
        assert stats.success_rate == 1.0
        assert stats.cod_failures == 0

    def test_order_pattern_stats(self, provider):
        stats = provider.order_pattern_stats("buyer_1", AS_OF, days=30)
        assert stats.total_orders == 5
        assert stats.delivered_orders == 5
        assert stats.avg_order_value == pytest.approx(1200.0)
        assert stats.unique_farmers == 1

    def test_windows_exclude_future_records(self, provider):
        before = datetime(2026, 2, 10, 0, 0, tzinfo=timezone.utc)
        stats = provider.order_pattern_stats("buyer_1", before, days=30)
        assert stats.total_orders == 2

    def test_amount_stats_sample_stddev(self, provider):
        stats = provider.amount_stats("buyer_1", AS_OF)
        assert stats.order_count == 5
        assert stats.stddev_amount == pytest.approx(158.11, abs=0.01)
        assert stats.max_amount == 1400.0

    def test_order_frequency_windows(self):
        orders = [
            OrderRecord(
                order_id=f"o{i}",
                buyer_id="b",
                total_amount=100.0,
                created_at=AS_OF - timedelta(days=days),
            )
            for i, days in enumerate([0.5, 3, 3, 20, 45])
        ]
        frequency = MemoryHistoryProvider(orders=orders).order_frequency("b", AS_OF)
        assert frequency.orders_last_24h == 1
        assert frequency.orders_last_7d == 3
        assert frequency.orders_last_30d == 4

    def test_regional_cod_stats(self, provider):
        stats = provider.regional_cod_stats("Dhaka", AS_OF)
        assert stats.total_cod_orders == 4
        assert stats.failed_cod_orders == 0

    def test_tracking_history_window(self, provider):
        points = provider.tracking_history("tr_1", AS_OF, minutes=30)
        assert [p.timestamp.minute for p in points] == [35, 45, 55]

    def test_latest_prediction(self, provider):
        prediction = provider.latest_prediction("tr_1")
        assert prediction.predicted_arrival.hour == 10


class TestExpectedRoute:
    def test_planned_route_preferred(self, provider):
        route = provider.expected_route(provider.get_transport("tr_1"))
        assert len(route.path) == 3
        assert route.total_distance_km == 20.4
        assert len(route.waypoints) == 3

    def test_straight_leg_without_plan(self):
        transport = TransportRecord(
            transport_id="t",
            pickup_location=GeoPoint(lat=23.70, lng=90.40),
            delivery_location=GeoPoint(lat=23.70, lng=90.60),
        )
        route = MemoryHistoryProvider().expected_route(transport)
        assert len(route.path) == 2
        assert route.total_distance_km == pytest.approx(20.4, abs=0.1)

    def test_default_distance_without_locations(self):
        provider = MemoryHistoryProvider(config={"default_route_distance_km": 75})
        route = provider.expected_route(TransportRecord(transport_id="t"))
        assert route.path == []
        assert route.total_distance_km == 75.0


class TestMongoHistoryProvider:
    def test_find_applies_timeout_and_validates(self):
        db = {"users": MagicMock()}
        db["users"].find.return_value.limit.return_value = [
            {"user_id": "buyer_1", "region": "Dhaka", "created_at": AS_OF},
        ]
        provider = MongoHistoryProvider({"query_timeout_ms": 500}, database=db)

        user = provider.get_user("buyer_1")

        assert user.region == "Dhaka"
        args, kwargs = db["users"].find.call_args
        assert args[0] == {"user_id": "buyer_1"}
        assert kwargs["max_time_ms"] == 500

    def test_driver_errors_become_provider_errors(self):
        db = {"payments": MagicMock()}
        db["payments"].find.side_effect = ExecutionTimeout("operation exceeded time limit")
        provider = MongoHistoryProvider(database=db)

        with pytest.raises(ProviderError, match="payments query failed"):
            provider.payments_for_buyer("buyer_1", AS_OF - timedelta(days=1), AS_OF)

    def test_region_without_buyers_skips_payment_query(self):
        db = {"users": MagicMock(), "payments": MagicMock()}
        db["users"].find.return_value = []
        provider = MongoHistoryProvider(database=db)

        assert provider.cod_payments_for_region("Sylhet", AS_OF, AS_OF) == []
        db["payments"].find.assert_not_called()

    def test_client_decodes_tz_aware_datetimes(self):
        with patch("pymongo.MongoClient") as client_cls:
            MongoHistoryProvider({"uri": "mongodb://db:27017"})._connect()
        assert client_cls.call_args.kwargs["tz_aware"] is True

    def test_naive_datetimes_read_as_utc(self):
        db = {"users": MagicMock()}
        db["users"].find.return_value.limit.return_value = [
            {"user_id": "buyer_1", "created_at": datetime(2026, 2, 26, 12, 0)},
        ]
        provider = MongoHistoryProvider(database=db)

        assert provider.get_user("buyer_1").created_at.tzinfo == timezone.utc

    def test_naive_datetimes_do_not_force_fallback(self):
        db = {"users": MagicMock()}
        db["users"].find.return_value.limit.return_value = [
            {"user_id": "buyer_1", "created_at": datetime(2026, 2, 26, 12, 0)},
        ]
        subject = PaymentSubject(
            order_id="ord_1", buyer_id="buyer_1", total_amount=500.0, as_of=AS_OF,
        )
        context = AnalysisContext(subject=subject, provider=MongoHistoryProvider(database=db))

        outcome = AccountAgeAnalyzer().run(context)

        assert outcome.ok
        assert outcome.error is None
        assert outcome.result.score == 0.6
        assert outcome.result.data["account_age_days"] == 3.0
