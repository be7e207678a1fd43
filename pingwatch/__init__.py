"""pingwatch - endpoint reachability and latency monitor."""

__version__ = "1.0.0"
