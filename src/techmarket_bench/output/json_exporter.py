"""
JSON export for benchmark results.

Writes the raw measurements of a run as a JSON document, alongside the
human-readable table report.
"""

import json
import math
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

if TYPE_CHECKING:
    from ..harness import Measurement


def to_json(measurements: Sequence["Measurement"], generated_at: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the JSON payload for a run.

    Infinite throughput (zero-duration operations) is exported as null.
    """
    results = []
    for m in measurements:
        entry = m.to_dict()
        if math.isinf(entry["records_per_second"]):
            entry["records_per_second"] = None
        results.append(entry)

    return {
        "generated_at": (generated_at or datetime.now()).isoformat(),
        "results": results,
    }


def export_json(measurements: Sequence["Measurement"], path: str) -> str:
    """
    Export measurements to a JSON file.

    Args:
        measurements: Recorded measurements, in report order
        path: Target file (parent directories are created)

    Returns:
        Path to the created JSON file
    """
    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w') as f:
        json.dump(to_json(measurements), f, indent=2)

    return str(filepath)
