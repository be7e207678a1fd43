"""Pure aggregation of probe history into statistics."""

from typing import Iterable, Optional, Sequence

from pingwatch.core.history import HistoryStore
from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeResult
from pingwatch.models.statistics import MonitorSummary, Statistics


def round_half_up(numerator: int, denominator: int) -> int:
    """
    Round ``numerator / denominator`` to the nearest integer, halves up.

    Integer arithmetic only, so 0.5 boundaries are exact. Both arguments
    must be non-negative and the denominator positive.
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def compute(
    results: Sequence[ProbeResult],
    endpoint_id: Optional[str] = None
) -> Statistics:
    """
    Compute statistics over a slice of history.

    Latency figures only consider successful results; the success rate
    considers every result.

    Args:
        results: Probe results, usually one endpoint's history
        endpoint_id: Id to stamp on the statistics

    Returns:
        Statistics: Aggregates, with None for empty source sets

    Example:
        ```python
        stats = compute(history.for_endpoint(endpoint.id), endpoint.id)
        print(stats.success_rate_percent)
        ```
    """
    sample_count = len(results)
    times = [r.response_time_ms for r in results if r.is_success]

    if not times:
        avg = min_time = max_time = None
    else:
        avg = round_half_up(sum(times), len(times))
        min_time = min(times)
        max_time = max(times)

    success_rate = (
        round_half_up(100 * len(times), sample_count) if sample_count else None
    )

    return Statistics(
        endpoint_id=endpoint_id,
        sample_count=sample_count,
        avg_response_time_ms=avg,
        min_response_time_ms=min_time,
        max_response_time_ms=max_time,
        success_rate_percent=success_rate
    )


def summarize(endpoints: Iterable[Endpoint], history: HistoryStore) -> MonitorSummary:
    """
    Classify endpoints by their latest result.

    An endpoint without any result is counted as unknown.
    """
    healthy = unhealthy = unknown = 0
    total = 0

    for endpoint in endpoints:
        total += 1
        latest = history.latest_for(endpoint.id)
        if latest is None:
            unknown += 1
        elif latest.is_success:
            healthy += 1
        else:
            unhealthy += 1

    return MonitorSummary(
        total_endpoints=total,
        healthy_endpoints=healthy,
        unhealthy_endpoints=unhealthy,
        unknown_endpoints=unknown,
        history_size=len(history)
    )
