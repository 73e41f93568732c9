"""Payment risk analyzers, one per risk dimension of a placed order."""

from agrisk.analyzers.base import BaseAnalyzer
from agrisk.analyzers.payment.account_age import AccountAgeAnalyzer
from agrisk.analyzers.payment.amount_anomaly import AmountAnomalyAnalyzer
from agrisk.analyzers.payment.geographic_risk import GeographicRiskAnalyzer
from agrisk.analyzers.payment.order_frequency import OrderFrequencyAnalyzer
from agrisk.analyzers.payment.order_patterns import OrderPatternAnalyzer
from agrisk.analyzers.payment.payment_history import PaymentHistoryAnalyzer

# Registry key -> analyzer class, in evaluation order
PAYMENT_ANALYZERS: dict[str, type[BaseAnalyzer]] = {
    "payment_history": PaymentHistoryAnalyzer,
    "order_patterns": OrderPatternAnalyzer,
    "geographic_risk": GeographicRiskAnalyzer,
    "account_age": AccountAgeAnalyzer,
    "order_frequency": OrderFrequencyAnalyzer,
    "amount_anomaly": AmountAnomalyAnalyzer,
}

__all__ = [
    "PaymentHistoryAnalyzer",
    "OrderPatternAnalyzer",
    "GeographicRiskAnalyzer",
    "AccountAgeAnalyzer",
    "OrderFrequencyAnalyzer",
    "AmountAnomalyAnalyzer",
    "PAYMENT_ANALYZERS",
]
