"""
Unit tests for throughput and duration helpers.
"""

import math

import pytest

from techmarket_bench.metrics import (
    duration_ms,
    format_duration,
    format_throughput,
    records_per_second,
)


class TestRecordsPerSecond:
    """Aggregate throughput for one batch operation"""

    def test_exact_division(self):
        assert records_per_second(20000, 1.6) == 12500.0

    def test_rounded_to_two_decimals(self):
        assert records_per_second(1, 3.0) == 0.33
        assert records_per_second(20000, 1.5) == 13333.33

    @pytest.mark.parametrize("elapsed", [0.0, -0.5])
    def test_non_positive_duration_is_infinite(self, elapsed):
        """Zero-duration operations must not raise ZeroDivisionError"""
        assert math.isinf(records_per_second(10, elapsed))

    def test_zero_records(self):
        assert records_per_second(0, 2.0) == 0.0


class TestDurationFormatting:
    """Millisecond-resolution duration rendering"""

    def test_duration_ms_rounds(self):
        assert duration_ms(0.0424) == 42
        assert duration_ms(0.0426) == 43
        assert duration_ms(1.5) == 1500

    def test_sub_second_in_milliseconds(self):
        assert format_duration(0.0424) == "42ms"
        assert format_duration(0.0) == "0ms"

    def test_seconds_with_three_decimals(self):
        assert format_duration(3.14159) == "3.142s"
        assert format_duration(1.5) == "1.500s"

    def test_rounding_up_to_one_second(self):
        """0.9996s rounds to 1000ms and switches to the seconds form"""
        assert format_duration(0.9996) == "1.000s"


class TestThroughputFormatting:

    def test_two_decimals(self):
        assert format_throughput(12500.0) == "12500.00"
        assert format_throughput(0.333) == "0.33"

    def test_infinite(self):
        assert format_throughput(math.inf) == "inf"
