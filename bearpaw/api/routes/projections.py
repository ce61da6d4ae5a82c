"""Derived-view routes: the projected-items timeline and chart buckets.

Each request recomputes its view from the store; nothing is cached.
A failure to load any projection source is reported as a single 503.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from bearpaw.api.deps import get_aggregator, get_charts
from bearpaw.models.charts import CategoryTotal, ChartWindow, PeriodTotal
from bearpaw.models.projection import ProjectedItem
from bearpaw.projections import ChartService, ProjectionAggregator

router = APIRouter(prefix="/api", tags=["projections"])


@router.get("/projected_items", response_model=list[ProjectedItem])
async def projected_items(
    aggregator: ProjectionAggregator = Depends(get_aggregator),
):
    """Needs, consumables and future one-time budget items, oldest first."""
    return await aggregator.project()


@router.get("/charts/monthly", response_model=list[PeriodTotal])
async def monthly_chart(
    window: Optional[ChartWindow] = None,
    charts: ChartService = Depends(get_charts),
):
    """Twelve month buckets of budget spending."""
    return await charts.monthly(window=window)


@router.get("/charts/quarterly", response_model=list[PeriodTotal])
async def quarterly_chart(charts: ChartService = Depends(get_charts)):
    """This calendar year's spending by quarter."""
    return await charts.quarterly()


@router.get("/charts/categories", response_model=list[CategoryTotal])
async def category_chart(charts: ChartService = Depends(get_charts)):
    """This year's expense breakdown by category."""
    return await charts.categories()


@router.get("/charts/projected_costs", response_model=list[CategoryTotal])
async def projected_cost_chart(charts: ChartService = Depends(get_charts)):
    """Projected costs summed per projection source."""
    return await charts.projected_costs()
