"""agrisk -- multi-factor payment risk and route anomaly scoring for the marketplace."""

__version__ = "0.3.0"
