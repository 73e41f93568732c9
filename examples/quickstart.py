"""Quickstart example for agrisk.

Scores one order and one shipment against the bundled fixture history.
No database required.
"""

from datetime import datetime, timezone
from pathlib import Path

from agrisk.config import EngineSettings, load_config
from agrisk.payment_risk import build_payment_engine
from agrisk.providers.memory import MemoryHistoryProvider
from agrisk.reporters.console_reporter import ConsoleReporter
from agrisk.route_anomaly import build_route_engine
from agrisk.scoring.models import AssessmentKind, PaymentSubject, ShipmentSubject
from agrisk.storage.memory import MemoryStorage
from agrisk.storage.recorder import AssessmentRecorder

FIXTURE = Path(__file__).resolve().parent.parent / "tests" / "fixtures" / "sample_history.json"
AS_OF = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def main():
    config = load_config()
    provider = MemoryHistoryProvider.from_fixture(FIXTURE, config["providers"])
    recorder = AssessmentRecorder(MemoryStorage())
    reporter = ConsoleReporter()

    # A new buyer in a higher-risk region ordering cash on delivery from another region
    payment_engine = build_payment_engine(
        provider,
        EngineSettings.from_config(config, AssessmentKind.PAYMENT_RISK),
        recorder,
    )
    reporter.render(payment_engine.aggregate(PaymentSubject(
        order_id="ord_301",
        buyer_id="buyer_2",
        farmer_id="farmer_1",
        total_amount=4500.0,
        payment_method="cod",
        region="Barisal",
        farmer_region="Rajshahi",
        as_of=AS_OF,
    )))

    # A truck that has been standing still for most of the last hour
    route_engine = build_route_engine(
        provider,
        EngineSettings.from_config(config, AssessmentKind.ROUTE_ANOMALY),
        recorder,
    )
    reporter.render(route_engine.aggregate(ShipmentSubject(transport_id="tr_1", as_of=AS_OF)))

    reporter.render_statistics(recorder.get_statistics(window_days=365 * 5), 365 * 5)


if __name__ == "__main__":
    main()
