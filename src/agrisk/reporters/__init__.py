"""Renderers for assessments, assessment listings and statistics."""

from agrisk.reporters.console_reporter import ConsoleReporter
from agrisk.reporters.json_reporter import JsonReporter

__all__ = ["ConsoleReporter", "JsonReporter"]
