"""Derived views: the projected-items timeline and budget chart buckets."""

from bearpaw.projections.aggregator import (
    ProjectionAggregator,
    ProjectionError,
    build_projection,
)
from bearpaw.projections.charts import (
    ONE_TIME_LABEL,
    ChartService,
    category_totals,
    month_starts,
    monthly_totals,
    projected_cost_by_source,
    quarterly_totals,
)

__all__ = [
    "ONE_TIME_LABEL",
    "ChartService",
    "ProjectionAggregator",
    "ProjectionError",
    "build_projection",
    "category_totals",
    "month_starts",
    "monthly_totals",
    "projected_cost_by_source",
    "quarterly_totals",
]
