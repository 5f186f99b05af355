"""Shapes aggregates into the public report models."""

import math
from typing import Optional, Sequence

from soilsense.components.timestamps import format_local_datetime, format_local_time
from soilsense.models import (
    AggregateResult,
    ColumnDescriptor,
    DepthSummary,
    MoistureReport,
    PeekReport,
    PeekSample,
    ReadingSet,
    SeriesPoint,
    TemperatureReport,
    TimedValue,
    TrendSummary,
)


def round1(x: Optional[float]) -> Optional[float]:
    """Round half up to one decimal place (71.65 -> 71.7, -2.25 -> -2.2)."""
    if x is None:
        return None
    return math.floor(x * 10 + 0.5) / 10


def _timed(point: Optional[SeriesPoint], tz_name: str) -> Optional[TimedValue]:
    if point is None:
        return None
    return TimedValue(
        value=round1(point.value),
        time=format_local_time(point.timestamp, tz_name),
        timestamp=point.timestamp,
    )


def _trend(trend: Optional[TrendSummary]) -> Optional[TrendSummary]:
    if trend is None:
        return None
    return trend.model_copy(update={"average": round1(trend.average), "delta": round1(trend.delta)})


def build_moisture_report(
    name: str,
    tz_name: str,
    days: int,
    results: Sequence[AggregateResult]
) -> MoistureReport:
    """Latest value and lookback-window average per requested depth."""
    return MoistureReport(
        name=name,
        tz=tz_name,
        days=days,
        depths=[
            DepthSummary(
                depth_requested=r.requested_depth,
                latest_value=round1(r.latest.value) if r.latest is not None else None,
                window_average=round1(r.window_average),
                mapped_depth=round1(r.mapped_depth),
            )
            for r in results
        ],
    )


def build_temperature_report(name: str, tz_name: str, result: AggregateResult) -> TemperatureReport:
    """Current value, today's high/low/average and rolling trends for one depth."""
    note = None
    if result.latest is None:
        note = "No readings in window"
    elif result.sample_count == 0:
        note = "No readings today yet"

    return TemperatureReport(
        name=name,
        tz=tz_name,
        depth_requested=result.requested_depth,
        depth_mapped=round1(result.mapped_depth),
        current=_timed(result.latest, tz_name),
        high=_timed(result.high, tz_name),
        low=_timed(result.low, tz_name),
        average=round1(result.average),
        count=result.sample_count,
        trend_7d=_trend(result.trend_7d),
        trend_30d=_trend(result.trend_30d),
        note=note,
    )


def build_peek_report(
    header: Sequence[str],
    columns: Sequence[ColumnDescriptor],
    reading_set: ReadingSet,
    tz_name: str,
    sample_size: int = 6
) -> PeekReport:
    """Header, mapped columns and the last few raw readings."""
    recent = reading_set.readings[-sample_size:]
    return PeekReport(
        header=list(header),
        mapped_columns=list(columns),
        sample=[
            PeekSample(
                utc_iso=r.timestamp.isoformat().replace("+00:00", "Z"),
                local=format_local_datetime(r.timestamp, tz_name),
                values=r.values,
            )
            for r in recent
        ],
    )
