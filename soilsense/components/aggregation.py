"""
Window aggregation component for the soil telemetry pipeline.

Summarizes a unit-scaled series per requested depth: latest value,
calendar-day high/low/average in the site's zone, the lookback-window
average, and rolling N-day trends measured back from ``now``.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

import pandas as pd

from soilsense.components.base import AggregationComponent
from soilsense.components.columns import select_nearest
from soilsense.components.readings import build_series
from soilsense.components.timestamps import local_date
from soilsense.config import PipelineConfig
from soilsense.models import (
    AggregateResult,
    ColumnDescriptor,
    DailyStats,
    ReadingSet,
    SeriesPoint,
    TrendSummary,
)
from soilsense.utils import get_logger


_FRAME_MIN = pd.Timestamp.min.tz_localize("UTC")
_FRAME_MAX = pd.Timestamp.max.tz_localize("UTC")


def series_frame(points: Sequence[SeriesPoint]) -> pd.DataFrame:
    """
    Load series points into a time-sorted frame with a UTC timestamp column.

    Points outside the nanosecond timestamp range (years 1677-2262) are dropped.
    """
    points = [p for p in points if _FRAME_MIN <= p.timestamp <= _FRAME_MAX]
    frame = pd.DataFrame({
        "timestamp": pd.Series(pd.to_datetime([p.timestamp for p in points], utc=True)),
        "value": pd.Series([p.value for p in points], dtype="float64"),
    })
    return frame.sort_values("timestamp", kind="stable").reset_index(drop=True)


def _point(row: pd.Series) -> SeriesPoint:
    return SeriesPoint(timestamp=row["timestamp"].to_pydatetime(), value=float(row["value"]))


def latest_point(frame: pd.DataFrame) -> Optional[SeriesPoint]:
    """Chronologically last point, or None for an empty series."""
    if frame.empty:
        return None
    return _point(frame.iloc[-1])


def daily_stats(frame: pd.DataFrame, now: datetime, tz_name: str) -> DailyStats:
    """
    High, low and mean of the points falling on today's date in ``tz_name``.

    Ties for high and low keep the earliest point. An empty day yields a
    DailyStats with count 0 and no values.
    """
    if frame.empty:
        return DailyStats()

    today = local_date(now, tz_name)
    local_dates = frame["timestamp"].dt.tz_convert(tz_name).dt.date
    day = frame[local_dates == today]
    if day.empty:
        return DailyStats()

    return DailyStats(
        high=_point(day.loc[day["value"].idxmax()]),
        low=_point(day.loc[day["value"].idxmin()]),
        average=float(day["value"].mean()),
        count=len(day),
    )


def rolling_trend(
    frame: pd.DataFrame,
    now: datetime,
    days: int,
    latest_value: float
) -> Optional[TrendSummary]:
    """Mean over the last ``days`` days and the latest value's delta from it."""
    if frame.empty:
        return None
    cutoff = pd.Timestamp(now - timedelta(days=days))
    window = frame[frame["timestamp"] >= cutoff]
    if window.empty:
        return None
    average = float(window["value"].mean())
    return TrendSummary(days=days, average=average, delta=latest_value - average, count=len(window))


class WindowAggregationComponent(AggregationComponent):
    """Per-depth aggregation over the readings of one request."""

    def __init__(self, config: PipelineConfig):
        """
        Initialize aggregation component.

        Args:
            config: Pipeline configuration
        """
        super().__init__(config)
        self.logger = get_logger(__name__)
        self.trend_windows = list(config.aggregation.trend_windows_days)

        self.stats = {
            "depths_requested": 0,
            "depths_with_data": 0,
            "points_aggregated": 0,
        }

    def execute(
        self,
        reading_set: ReadingSet,
        columns: Sequence[ColumnDescriptor],
        depths: Sequence[float],
        tz_name: str,
        now: Optional[datetime] = None,
        since: Optional[datetime] = None
    ) -> List[AggregateResult]:
        """
        Aggregate the nearest column for each requested depth.

        Args:
            reading_set: Readings and unit factor from the transformation step
            columns: Recognized sensor columns
            depths: Requested depths in inches
            tz_name: Site zone, used for the calendar-day window
            now: Reference instant; defaults to the current time
            since: Start of the lookback window; only the window average is
                limited to it

        Returns:
            One AggregateResult per requested depth, in request order
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        self.stats = {key: 0 for key in self.stats}
        self.stats["depths_requested"] = len(depths)

        # several depths can map to one column
        frames: Dict[int, pd.DataFrame] = {}
        results = []
        for depth in depths:
            column = select_nearest(columns, depth)
            if column.column_index not in frames:
                frames[column.column_index] = series_frame(build_series(reading_set, column.column_index))
            result = self.aggregate(
                frames[column.column_index], depth, column.physical_depth, now, tz_name, since=since
            )
            if result.latest is not None:
                self.stats["depths_with_data"] += 1
            self.stats["points_aggregated"] += result.sample_count
            results.append(result)

        self._log_aggregation_summary()
        return results

    def aggregate(
        self,
        frame: pd.DataFrame,
        requested_depth: float,
        mapped_depth: float,
        now: datetime,
        tz_name: str,
        since: Optional[datetime] = None
    ) -> AggregateResult:
        """
        Compute all windows for one already-selected, unfiltered series.

        The latest point, today's statistics and the rolling trends read the
        whole series; ``since`` bounds only the window average.
        """
        latest = latest_point(frame)
        if latest is None:
            self.logger.warning(f"No points for depth {requested_depth}in")
            return AggregateResult(requested_depth=requested_depth, mapped_depth=mapped_depth)

        today = daily_stats(frame, now, tz_name)
        trends = {}
        for days in self.trend_windows:
            trend = rolling_trend(frame, now, days, latest.value)
            if trend is not None:
                trends[days] = trend

        window = frame if since is None else frame[frame["timestamp"] >= pd.Timestamp(since)]
        if window.empty:
            self.logger.warning(f"No points since {since.isoformat()} for depth {requested_depth}in")

        return AggregateResult(
            requested_depth=requested_depth,
            mapped_depth=mapped_depth,
            latest=latest,
            high=today.high,
            low=today.low,
            average=today.average,
            sample_count=today.count,
            window_average=None if window.empty else float(window["value"].mean()),
            trends=trends,
        )

    def _log_aggregation_summary(self) -> None:
        """Log aggregation statistics."""
        self.logger.info("=== Aggregation Summary ===")
        for key, value in self.stats.items():
            self.logger.info(f"{key.replace('_', ' ').title()}: {value}")
