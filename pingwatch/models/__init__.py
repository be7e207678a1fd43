"""Domain models for pingwatch."""

from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeOutcome, ProbeResult
from pingwatch.models.statistics import MonitorSummary, Statistics
from pingwatch.models.snapshot import MonitorSnapshot

__all__ = [
    "Endpoint",
    "ProbeOutcome",
    "ProbeResult",
    "Statistics",
    "MonitorSummary",
    "MonitorSnapshot",
]
