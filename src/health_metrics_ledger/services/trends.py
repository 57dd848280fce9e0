"""
Trend service for period-over-period changes.

Computes the percent change between the last two records of a series
and renders it for display.
"""

import logging
import math
from collections.abc import Sequence

from pydantic import BaseModel, Field

from health_metrics_ledger.domain.metrics import (
    RECORD_TYPES,
    Category,
    HealthStore,
    MetricRecord,
)
from health_metrics_ledger.infrastructure.parsers.report_text_parser import DEFAULT_RESTING_HR

logger = logging.getLogger(__name__)


def trend(series: Sequence[MetricRecord], field: str) -> float:
    """
    Percent change of a field between the last two records.

    Records are taken by position, so two records sharing a month still
    count as two periods. A previous value of zero gives ``inf`` (or
    ``nan`` when both are zero), and a field missing from either record
    gives ``nan``. Rounding is Python's ``round``, which rounds halves to
    even on the binary value (a change of 0.25% shows as 0.2).

    Args:
        series: Records in series order.
        field: Attribute name or display alias of the metric.

    Returns:
        Percent change rounded to one decimal, or 0 with fewer than two records.
    """
    if len(series) < 2:
        return 0

    previous = series[-2].get_value(field)
    latest = series[-1].get_value(field)
    if previous is None or latest is None:
        return math.nan

    delta = latest - previous
    if previous == 0:
        if delta == 0:
            return math.nan
        return math.copysign(math.inf, delta)

    return round(delta / previous * 100, 1)


def format_trend(value: float) -> str:
    """
    Render a trend for display.

    Args:
        value: Percent change from :func:`trend`.

    Returns:
        Absolute value with one decimal and a percent sign, ``"∞%"`` for
        infinite changes and ``"NaN%"`` for undefined ones.
    """
    if math.isnan(value):
        return "NaN%"
    if math.isinf(value):
        return "∞%"
    return f"{abs(value):.1f}%"


def trend_direction(value: float) -> str:
    """Direction of a trend: up, down or flat."""
    if value > 0:
        return "up"
    if value < 0:
        return "down"
    return "flat"


class MetricTrend(BaseModel):
    """Latest value and trend of one metric."""

    category: Category
    field: str
    latest_date: str
    latest: float | None = None
    change_pct: float = Field(description="Percent change vs previous record")
    display: str
    direction: str
    possibly_default: bool = Field(
        False, description="Latest value may be a filled-in default rather than a measurement"
    )


class TrendService:
    """Service for summarizing the latest trends across the store."""

    def summarize_series(
        self, category: Category, series: Sequence[MetricRecord]
    ) -> list[MetricTrend]:
        """
        Summarize every metric of one series.

        Args:
            category: Category of the series.
            series: Records in series order.

        Returns:
            One entry per metric present in the latest record.
        """
        if not series:
            return []

        latest = series[-1]
        results: list[MetricTrend] = []

        for field in RECORD_TYPES[category].metric_names():
            value = latest.get_value(field)
            if value is None:
                continue

            change = trend(series, field)
            results.append(
                MetricTrend(
                    category=category,
                    field=field,
                    latest_date=latest.date,
                    latest=value,
                    change_pct=change,
                    display=format_trend(change),
                    direction=trend_direction(change),
                    possibly_default=field == "restingHR" and value == DEFAULT_RESTING_HR,
                )
            )

        return results

    def summarize(self, store: HealthStore) -> list[MetricTrend]:
        """
        Summarize every series of the store.

        Args:
            store: Aggregate to summarize.

        Returns:
            Metric trends grouped by category.
        """
        results: list[MetricTrend] = []
        for category in Category:
            results.extend(self.summarize_series(category, store.series(category)))

        logger.debug(f"Summarized {len(results)} metric trends")
        return results
