"""
Reading builder: joins parsed rows, resolved timestamps and recognized columns.

Field telemetry is noisy, so rows without a usable timestamp and cells that
are not numbers are skipped rather than treated as errors.
"""

import math
import re
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from soilsense.components.csv_parser import RawTable, cell
from soilsense.components.timestamps import resolve_timestamp
from soilsense.models import ColumnDescriptor, Reading, ReadingSet, SeriesPoint
from soilsense.utils import get_logger

logger = get_logger(__name__)

_LEADING_NUMBER = re.compile(r"\s*[+\-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+\-]?\d+)?")


def parse_number(text: str) -> Optional[float]:
    """Parse the leading number of a cell (``31.2 %`` reads as 31.2), or None."""
    m = _LEADING_NUMBER.match(str(text))
    if not m:
        return None
    value = float(m.group(0))
    return value if math.isfinite(value) else None


def detect_unit_factor(readings: Sequence[Reading]) -> float:
    """
    Infer whether moisture values are fractions (0..1) or percentages.

    Uses the values of the last reading. The middle element of the sorted
    values (upper middle for an even count) is compared against 1: anything
    up to and including 1 is treated as a fraction and scaled by 100.

    Returns:
        100.0 for fractional data, 1.0 otherwise
    """
    if not readings:
        return 1.0
    sample = sorted(readings[-1].values.values())
    median = sample[len(sample) // 2] if sample else 0.0
    return 1.0 if median > 1 else 100.0


def build_readings(
    table: RawTable,
    columns: Sequence[ColumnDescriptor],
    tz_name: str,
    date_index: int = 0,
    detect_units: bool = True,
    stats: Optional[Dict[str, int]] = None
) -> ReadingSet:
    """
    Build readings from the data rows of a parsed table.

    Args:
        table: Parsed CSV; row 0 is the header and is skipped
        columns: Recognized sensor columns
        tz_name: Zone used to read bare wall-clock stamps
        date_index: Column holding the timestamp
        detect_units: Whether to run fractional-unit detection
        stats: Optional counters updated with skip totals

    Returns:
        Readings in input row order and the detected unit factor
    """
    counters = stats if stats is not None else {}
    for key in ("rows_seen", "rows_kept", "rows_bad_timestamp", "rows_without_values", "cells_skipped"):
        counters.setdefault(key, 0)

    readings: List[Reading] = []
    for row in table[1:]:
        counters["rows_seen"] += 1
        raw_ts = cell(row, date_index)
        if not raw_ts:
            counters["rows_bad_timestamp"] += 1
            continue

        timestamp = resolve_timestamp(raw_ts, tz_name)
        if timestamp is None:
            counters["rows_bad_timestamp"] += 1
            logger.debug(f"Skipping row with unparseable timestamp {raw_ts!r}")
            continue

        values: Dict[int, float] = {}
        for column in columns:
            value = parse_number(cell(row, column.column_index))
            if value is None:
                counters["cells_skipped"] += 1
                continue
            values[column.column_index] = value

        if not values:
            counters["rows_without_values"] += 1
            continue

        readings.append(Reading(timestamp=timestamp, values=values))
        counters["rows_kept"] += 1

    factor = detect_unit_factor(readings) if detect_units else 1.0
    if factor != 1.0:
        logger.info(f"Latest values look fractional, scaling by {factor:g}")

    return ReadingSet(readings=readings, unit_factor=factor)


def build_series(
    reading_set: ReadingSet,
    column_index: int,
    since: Optional[datetime] = None
) -> List[SeriesPoint]:
    """
    Extract one column as a time-sorted, unit-scaled series.

    Args:
        reading_set: Output of build_readings
        column_index: Column to extract
        since: Lower bound (inclusive) of the lookback window

    Returns:
        Points sorted by timestamp; ties keep input order
    """
    points = [
        SeriesPoint(timestamp=r.timestamp, value=r.values[column_index] * reading_set.unit_factor)
        for r in reading_set.readings
        if column_index in r.values and (since is None or r.timestamp >= since)
    ]
    points.sort(key=lambda p: p.timestamp)
    return points
