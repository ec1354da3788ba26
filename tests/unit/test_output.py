"""
Unit tests for the table and JSON exporters.
"""

import json
import math
from datetime import datetime

from techmarket_bench.harness import BackendKind, Measurement, OperationKind
from techmarket_bench.output.json_exporter import export_json, to_json
from techmarket_bench.output.table_exporter import HEADERS, render_table, to_table_rows


def sample_measurements():
    return [
        Measurement(BackendKind.POSTGRES, OperationKind.INSERT, "Client", 1.5, 20000),
        Measurement(BackendKind.MONGODB, OperationKind.QUERY, "Client by email", 0.042, 20000),
        Measurement(BackendKind.CASSANDRA, OperationKind.QUERY, "Top 5 best-selling products", 0.0, 5000),
    ]


class TestTableExporter:
    """Aligned table rendering"""

    def test_rows_preserve_order_and_format(self):
        rows = to_table_rows(sample_measurements())

        assert rows == [
            ["PostgreSQL", "INSERT", "Client", "20000", "1.500s", "13333.33"],
            ["MongoDB", "QUERY", "Client by email", "20000", "42ms", "476190.48"],
            ["Cassandra", "QUERY", "Top 5 best-selling products", "5000", "0ms", "inf"],
        ]

    def test_render_has_header_separator_and_rows(self):
        lines = render_table(sample_measurements()).splitlines()

        assert lines[0].split() == HEADERS
        assert set(lines[1].replace(" ", "")) == {"-"}
        assert len(lines) == 2 + 3

    def test_render_keeps_numbers_as_text(self):
        """Sizes and throughput keep their formatting (no float reparsing)"""
        table = render_table(sample_measurements()[:1])

        assert "13333.33" in table
        assert "1.500s" in table


class TestJsonExporter:
    """JSON export of raw measurements"""

    def test_payload_structure(self):
        generated_at = datetime(2024, 10, 15, 12, 0, 0)
        payload = to_json(sample_measurements()[:1], generated_at=generated_at)

        assert payload == {
            "generated_at": "2024-10-15T12:00:00",
            "results": [{
                "backend": "PostgreSQL",
                "operation": "INSERT",
                "entity": "Client",
                "record_count": 20000,
                "duration_ms": 1500,
                "records_per_second": 13333.33,
            }],
        }

    def test_infinite_throughput_exported_as_null(self):
        payload = to_json(sample_measurements())

        assert payload["results"][2]["records_per_second"] is None
        assert not any(
            isinstance(r["records_per_second"], float) and math.isinf(r["records_per_second"])
            for r in payload["results"]
        )

    def test_export_creates_parent_directories(self, tmp_path):
        target = tmp_path / "results" / "json" / "run.json"

        path = export_json(sample_measurements(), str(target))

        assert path == str(target)
        with open(target) as f:
            data = json.load(f)
        assert [r["backend"] for r in data["results"]] == ["PostgreSQL", "MongoDB", "Cassandra"]
