"""Monitoring engine: registry, prober, history, statistics and orchestration."""
