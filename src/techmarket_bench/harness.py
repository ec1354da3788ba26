"""
Benchmark harness: timing, result collection and report flushing.

Implements:
- High-resolution timing with perf_counter around arbitrary operations
- Per-call failure isolation (a failed operation is logged, never recorded)
- Aligned performance report written to a sink on close
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, TextIO, Tuple

import structlog

from .exceptions import NoResultsError
from .metrics import duration_ms, records_per_second
from .output.table_exporter import REPORT_BANNER, render_table

logger = structlog.get_logger()


class BackendKind(Enum):
    """Benchmarked data stores"""
    POSTGRES = "PostgreSQL"
    MONGODB = "MongoDB"
    CASSANDRA = "Cassandra"


class OperationKind(Enum):
    """Benchmarked operation kinds"""
    INSERT = "INSERT"
    QUERY = "QUERY"


@dataclass(frozen=True)
class Measurement:
    """One successfully completed timed operation"""
    backend: BackendKind
    operation: OperationKind
    entity: str
    elapsed_seconds: float
    record_count: int

    @property
    def duration_ms(self) -> int:
        return duration_ms(self.elapsed_seconds)

    @property
    def records_per_second(self) -> float:
        return records_per_second(self.record_count, self.elapsed_seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend.value,
            "operation": self.operation.value,
            "entity": self.entity,
            "record_count": self.record_count,
            "duration_ms": self.duration_ms,
            "records_per_second": self.records_per_second,
        }


class BenchmarkHarness:
    """
    Times operations and accumulates their results for one benchmark run.

    The harness owns the report sink for its whole lifetime and releases it
    exactly once in close(). It is single-threaded: every measure() call
    blocks until the wrapped operation returns.

    Example:
        >>> with BenchmarkHarness.open("benchmark_results.log") as harness:
        ...     harness.measure(BackendKind.POSTGRES, OperationKind.INSERT,
        ...                     "Client", len(clients),
        ...                     lambda: repo.batch_create_clients(clients))
    """

    def __init__(self, sink: TextIO, clock: Callable[[], float] = time.perf_counter):
        """
        Initialize the harness.

        Args:
            sink: Open text handle the report is written to (owned from now on)
            clock: Monotonic clock returning seconds
        """
        self._sink = sink
        self._clock = clock
        self._results: List[Measurement] = []
        self._closed = False

    @classmethod
    def open(cls, path: str, clock: Callable[[], float] = time.perf_counter) -> "BenchmarkHarness":
        """Open (or create) a report file in append mode and wrap it."""
        sink = open(path, "a", encoding="utf-8")
        return cls(sink, clock=clock)

    @property
    def results(self) -> Tuple[Measurement, ...]:
        """Recorded measurements, in the order their operations were issued."""
        return tuple(self._results)

    @property
    def closed(self) -> bool:
        return self._closed

    def measure(
        self,
        backend: BackendKind,
        operation: OperationKind,
        entity: str,
        record_count: int,
        operation_fn: Callable[[], Any],
    ) -> None:
        """
        Execute an operation and record its wall-clock duration.

        Failures are logged with backend, operation and entity context and
        produce no Measurement; the run continues with the next call.

        Args:
            backend: Data store the operation targets
            operation: Insert or query
            entity: Human-readable entity/operation label
            record_count: Logical record count for throughput derivation
            operation_fn: Zero-argument callable; its return value is ignored
        """
        start = self._clock()
        try:
            operation_fn()
        except Exception as e:
            elapsed = self._clock() - start
            logger.error("Benchmark operation failed",
                         backend=backend.value,
                         operation=operation.value,
                         entity=entity,
                         error=str(e),
                         error_type=type(e).__name__,
                         elapsed_ms=duration_ms(elapsed))
            return

        elapsed = self._clock() - start
        measurement = Measurement(
            backend=backend,
            operation=operation,
            entity=entity,
            elapsed_seconds=elapsed,
            record_count=record_count,
        )
        self._results.append(measurement)

        logger.info("Benchmark operation measured",
                    backend=backend.value,
                    operation=operation.value,
                    entity=entity,
                    record_count=record_count,
                    duration_ms=measurement.duration_ms)

    def generate_report(self) -> None:
        """
        Write the performance report to the sink.

        Raises:
            NoResultsError: If no operation succeeded
            OSError: If writing to the sink fails
        """
        if not self._results:
            raise NoResultsError()

        self._sink.write(REPORT_BANNER)
        for line in render_table(self._results).splitlines():
            self._sink.write(line + "\n")
        self._sink.flush()

    def close(self) -> None:
        """
        Flush the report and release the sink.

        The sink is released even when reporting fails; the reporting error
        still propagates. Closing twice is a no-op.
        """
        if self._closed:
            return
        self._closed = True

        try:
            self.generate_report()
        finally:
            self._sink.close()

    def __enter__(self) -> "BenchmarkHarness":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
            return

        # the body's exception wins over a reporting failure
        try:
            self.close()
        except Exception as e:
            logger.warning("Benchmark report not written",
                           error=str(e),
                           error_type=type(e).__name__)
