"""CLI entry point for agrisk."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from typing import Any

from agrisk import __version__
from agrisk.config import EngineSettings, load_config
from agrisk.exceptions import ConfigError
from agrisk.logging_config import setup_logging
from agrisk.payment_risk import build_payment_engine
from agrisk.providers.base import HistoryProvider
from agrisk.providers.memory import MemoryHistoryProvider
from agrisk.reporters.console_reporter import ConsoleReporter
from agrisk.reporters.json_reporter import JsonReporter
from agrisk.route_anomaly import build_route_engine
from agrisk.scoring.models import (
    AssessmentFilter,
    AssessmentKind,
    GeoPoint,
    Outcome,
    PaymentSubject,
    RiskLevel,
    ShipmentSubject,
)
from agrisk.storage.recorder import AssessmentRecorder

KIND_CHOICES = [kind.value for kind in AssessmentKind]


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid timestamp: {value}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="agrisk",
        description="agrisk -- Score marketplace orders and shipments for risk",
    )
    parser.add_argument(
        "--version", action="version", version=f"agrisk {__version__}"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--fixture", type=str, default=None,
        help="Read history from a JSON fixture instead of MongoDB",
    )
    parser.add_argument(
        "--store", action="store_true", default=False,
        help="Persist assessments to MongoDB",
    )
    parser.add_argument(
        "--format", type=str, default="console",
        choices=["console", "json"],
        help="Output format (default: console)",
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Log level (default: AGRISK_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # -- payment command --
    pay_parser = subparsers.add_parser("payment", help="Assess payment risk of an order")
    pay_parser.add_argument("--order-id", required=True)
    pay_parser.add_argument("--buyer-id", required=True)
    pay_parser.add_argument("--farmer-id", default=None)
    pay_parser.add_argument("--product-id", default=None)
    pay_parser.add_argument("--amount", type=float, required=True, help="Order total")
    pay_parser.add_argument(
        "--payment-method", default="cod",
        help="Payment method (cod, prepaid, ...). Default: cod",
    )
    pay_parser.add_argument("--region", default=None, help="Buyer region")
    pay_parser.add_argument("--farmer-region", default=None)
    pay_parser.add_argument(
        "--as-of", type=parse_timestamp, default=None,
        help="Snapshot time, ISO-8601 (default: now)",
    )

    # -- route command --
    route_parser = subparsers.add_parser("route", help="Assess a shipment for route anomalies")
    route_parser.add_argument("--transport-id", required=True)
    route_parser.add_argument("--lat", type=float, default=None, help="Current latitude")
    route_parser.add_argument("--lng", type=float, default=None, help="Current longitude")
    route_parser.add_argument("--vehicle-type", default=None)
    route_parser.add_argument(
        "--eta", type=parse_timestamp, default=None,
        help="Live estimated arrival, ISO-8601",
    )
    route_parser.add_argument(
        "--as-of", type=parse_timestamp, default=None,
        help="Snapshot time, ISO-8601 (default: now)",
    )

    # -- outcome command --
    outcome_parser = subparsers.add_parser(
        "outcome", help="Record the ground-truth outcome for a subject",
    )
    outcome_parser.add_argument("kind", choices=KIND_CHOICES)
    outcome_parser.add_argument("subject_id")
    outcome_parser.add_argument("outcome", choices=[o.value for o in Outcome])
    outcome_parser.add_argument("--reason", default=None)

    # -- recent command --
    recent_parser = subparsers.add_parser("recent", help="List recent stored assessments")
    recent_parser.add_argument("--kind", choices=KIND_CHOICES, default=None)
    recent_parser.add_argument("--subject-id", default=None)
    recent_parser.add_argument(
        "--level", choices=[level.value for level in RiskLevel], default=None,
    )
    recent_parser.add_argument(
        "--limit", type=int, default=20,
        help="Maximum number of rows (default: 20)",
    )

    # -- stats command --
    stats_parser = subparsers.add_parser("stats", help="Per-level assessment statistics")
    stats_parser.add_argument("--kind", choices=KIND_CHOICES, default=None)
    stats_parser.add_argument(
        "--days", type=int, default=30,
        help="Reporting window in days (default: 30)",
    )

    return parser.parse_args(argv)


def get_provider(args: argparse.Namespace, config: dict) -> HistoryProvider:
    """History provider for the run: the fixture if given, MongoDB otherwise."""
    provider_config = dict(config.get("providers", {}))
    if args.fixture:
        return MemoryHistoryProvider.from_fixture(args.fixture, config=provider_config)

    from agrisk.providers.mongo import MongoHistoryProvider

    mongo = config.get("mongodb", {})
    provider_config.setdefault("uri", mongo.get("uri"))
    return MongoHistoryProvider(provider_config)


def get_recorder(config: dict) -> AssessmentRecorder:
    from agrisk.storage.mongo import MongoStorage

    return AssessmentRecorder(MongoStorage(config.get("mongodb", {})))


def _emit_assessment(args: argparse.Namespace, assessment: Any) -> None:
    if args.format == "json":
        print(JsonReporter().render(assessment))
    else:
        ConsoleReporter().render(assessment)


def run_payment(args: argparse.Namespace, config: dict) -> int:
    """Execute the payment command."""
    settings = EngineSettings.from_config(config, AssessmentKind.PAYMENT_RISK)
    recorder = get_recorder(config) if args.store else None
    engine = build_payment_engine(get_provider(args, config), settings, recorder)

    subject = PaymentSubject(
        order_id=args.order_id,
        buyer_id=args.buyer_id,
        farmer_id=args.farmer_id,
        product_id=args.product_id,
        total_amount=args.amount,
        payment_method=args.payment_method,
        region=args.region,
        farmer_region=args.farmer_region,
        **({"as_of": args.as_of} if args.as_of else {}),
    )
    _emit_assessment(args, engine.aggregate(subject))
    return 0


def run_route(args: argparse.Namespace, config: dict) -> int:
    """Execute the route command."""
    if (args.lat is None) != (args.lng is None):
        print("Error: --lat and --lng must be given together", file=sys.stderr)
        return 1

    settings = EngineSettings.from_config(config, AssessmentKind.ROUTE_ANOMALY)
    recorder = get_recorder(config) if args.store else None
    engine = build_route_engine(get_provider(args, config), settings, recorder)

    location = GeoPoint(lat=args.lat, lng=args.lng) if args.lat is not None else None
    subject = ShipmentSubject(
        transport_id=args.transport_id,
        current_location=location,
        vehicle_type=args.vehicle_type,
        estimated_arrival=args.eta,
        **({"as_of": args.as_of} if args.as_of else {}),
    )
    _emit_assessment(args, engine.aggregate(subject))
    return 0


def run_outcome(args: argparse.Namespace, config: dict) -> int:
    """Execute the outcome command."""
    recorder = get_recorder(config)
    recorder.record_outcome(
        AssessmentKind(args.kind), args.subject_id, Outcome(args.outcome), args.reason,
    )
    print(f"Outcome {args.outcome} recorded for {args.kind} {args.subject_id}")
    return 0


def run_recent(args: argparse.Namespace, config: dict) -> int:
    """Execute the recent command."""
    criteria = AssessmentFilter(
        kind=AssessmentKind(args.kind) if args.kind else None,
        subject_id=args.subject_id,
        level=RiskLevel(args.level) if args.level else None,
    )
    assessments = get_recorder(config).get_recent_assessments(criteria, args.limit)

    if args.format == "json":
        print(JsonReporter().render_many(assessments))
    else:
        ConsoleReporter().render_many(assessments)
    return 0


def run_stats(args: argparse.Namespace, config: dict) -> int:
    """Execute the stats command."""
    kind = AssessmentKind(args.kind) if args.kind else None
    rows = get_recorder(config).get_statistics(window_days=args.days, kind=kind)

    if args.format == "json":
        print(JsonReporter().render_statistics(rows))
    else:
        ConsoleReporter().render_statistics(rows, args.days)
    return 0


COMMANDS = {
    "payment": run_payment,
    "route": run_route,
    "outcome": run_outcome,
    "recent": run_recent,
    "stats": run_stats,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    if not args.command:
        parse_args(["--help"])
        return 1

    try:
        config = load_config(args.config)
        return COMMANDS[args.command](args, config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
