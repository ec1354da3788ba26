"""
Table export for benchmark results.

Renders measurements as an aligned table using tabulate. The report layout
is a title banner followed by a header row, a separator line and one row
per measurement:

    === Performance Report ===

    Database    Operation    Entity    Size    Duration    Records/Second
    ----------  -----------  --------  ------  ----------  ----------------
    PostgreSQL  INSERT       Client    20000   1.532s      13054.83
"""

from typing import TYPE_CHECKING, List, Sequence

from tabulate import tabulate

from ..metrics import format_duration, format_throughput

if TYPE_CHECKING:
    from ..harness import Measurement


REPORT_BANNER = "\n=== Performance Report ===\n\n"

HEADERS = ["Database", "Operation", "Entity", "Size", "Duration", "Records/Second"]


def to_table_rows(measurements: Sequence["Measurement"]) -> List[List[str]]:
    """
    Convert measurements to table rows, preserving their order.

    Returns:
        List of rows [database, operation, entity, size, duration, throughput]
    """
    return [
        [
            m.backend.value,
            m.operation.value,
            m.entity,
            str(m.record_count),
            format_duration(m.elapsed_seconds),
            format_throughput(m.records_per_second),
        ]
        for m in measurements
    ]


def render_table(measurements: Sequence["Measurement"]) -> str:
    """Render measurements as a fixed-width table (no banner)."""
    return tabulate(
        to_table_rows(measurements),
        headers=HEADERS,
        tablefmt="simple",
        disable_numparse=True,
    )
