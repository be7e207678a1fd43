"""Tests for statistics computation."""

import pytest

from pingwatch.core.history import HistoryStore
from pingwatch.core.statistics import compute, round_half_up, summarize
from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeOutcome

from conftest import BASE_TIME, make_result

SUCCESS = ProbeOutcome.SUCCESS
ERROR = ProbeOutcome.ERROR


@pytest.mark.unit
class TestRoundHalfUp:

    @pytest.mark.parametrize("numerator,denominator,expected", [
        (0, 1, 0),
        (1, 2, 1),
        (3, 2, 2),
        (5, 2, 3),
        (200, 3, 67),
        (100, 3, 33),
        (249, 2, 125),
        (7, 7, 1),
    ])
    def test_rounds_halves_up(self, numerator, denominator, expected):
        assert round_half_up(numerator, denominator) == expected

    def test_zero_denominator_rejected(self):
        with pytest.raises(ValueError):
            round_half_up(1, 0)


@pytest.mark.unit
class TestCompute:

    def test_empty_input(self):
        stats = compute([])

        assert stats.sample_count == 0
        assert stats.avg_response_time_ms is None
        assert stats.min_response_time_ms is None
        assert stats.max_response_time_ms is None
        assert stats.success_rate_percent is None

    def test_mixed_results(self):
        results = [
            make_result("a", 1, SUCCESS, 100),
            make_result("a", 2, SUCCESS, 200),
            make_result("a", 3, ERROR, 5000),
        ]

        stats = compute(results, "a")

        assert stats.endpoint_id == "a"
        assert stats.sample_count == 3
        assert stats.avg_response_time_ms == 150
        assert stats.min_response_time_ms == 100
        assert stats.max_response_time_ms == 200
        assert stats.success_rate_percent == 67

    def test_only_errors(self):
        results = [make_result("a", i, ERROR, 10 * i) for i in range(1, 4)]

        stats = compute(results)

        assert stats.sample_count == 3
        assert stats.avg_response_time_ms is None
        assert stats.min_response_time_ms is None
        assert stats.max_response_time_ms is None
        assert stats.success_rate_percent == 0

    def test_average_rounds_half_up(self):
        results = [
            make_result("a", 1, SUCCESS, 100),
            make_result("a", 2, SUCCESS, 101),
        ]

        assert compute(results).avg_response_time_ms == 101

    def test_success_rate_rounds_half_up(self):
        results = [make_result("a", 1, SUCCESS)] + [
            make_result("a", i, ERROR) for i in range(2, 9)
        ]

        # 1 of 8 is 12.5%
        assert compute(results).success_rate_percent == 13

    def test_error_latency_ignored(self):
        results = [
            make_result("a", 1, SUCCESS, 50),
            make_result("a", 2, ERROR, 9999),
        ]

        stats = compute(results)

        assert stats.max_response_time_ms == 50
        assert stats.success_rate_percent == 50

    def test_deterministic_and_idempotent(self):
        results = [make_result("a", i, SUCCESS if i % 3 else ERROR, i * 7) for i in range(20)]

        assert compute(results, "a") == compute(list(results), "a")
        assert compute(results, "a") == compute(list(reversed(results)), "a")


@pytest.mark.unit
class TestSummarize:

    def test_counts_by_latest_result(self):
        endpoints = [
            Endpoint(id=i, url=f"https://{i}.example.com", display_name=i, created_at=BASE_TIME)
            for i in ("up", "down", "new")
        ]
        history = HistoryStore()
        history.append(make_result("up", 1, ERROR))
        history.append(make_result("up", 2, SUCCESS))
        history.append(make_result("down", 3, SUCCESS))
        history.append(make_result("down", 4, ERROR))

        summary = summarize(endpoints, history)

        assert summary.total_endpoints == 3
        assert summary.healthy_endpoints == 1
        assert summary.unhealthy_endpoints == 1
        assert summary.unknown_endpoints == 1
        assert summary.history_size == 4
