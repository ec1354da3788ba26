"""
Metrics calculation utilities for benchmark measurements.

Benchmarked operations are batch operations, so the metric of interest is
aggregate throughput for the whole batch:

    records_per_second = record_count / elapsed_seconds
"""

import math


def records_per_second(record_count: int, elapsed_seconds: float) -> float:
    """
    Calculate aggregate throughput for one batch operation.

    Args:
        record_count: Logical number of records the operation touched
        elapsed_seconds: Wall-clock duration of the operation

    Returns:
        Records per second, rounded to two decimals (inf for a zero duration)

    Example:
        >>> records_per_second(20000, 1.6)
        12500.0
    """
    if elapsed_seconds <= 0:
        return math.inf
    return round(record_count / elapsed_seconds, 2)


def duration_ms(elapsed_seconds: float) -> int:
    """Round a duration in seconds to whole milliseconds."""
    return int(round(elapsed_seconds * 1000.0))


def format_duration(elapsed_seconds: float) -> str:
    """
    Render a duration at millisecond resolution.

    Example:
        >>> format_duration(0.0424)
        '42ms'
        >>> format_duration(3.14159)
        '3.142s'
    """
    ms = duration_ms(elapsed_seconds)
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.3f}s"


def format_throughput(value: float) -> str:
    """Render throughput with two decimals."""
    if math.isinf(value):
        return "inf"
    return f"{value:.2f}"
