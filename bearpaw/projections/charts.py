"""
Category/Time Aggregator

Buckets budget money for the charts:

- monthly_totals: twelve month buckets. A monthly item recurs, so its
  cost lands in every bucket; a one-time item lands in the month of its
  payment date.
- quarterly_totals: the monthly buckets folded by calendar quarter.
- category_totals: the yearly breakdown. Monthly items are annualised
  under "<name> (Monthly)"; this year's one-time items share a single
  "One-Time Expenses" bucket.
- projected_cost_by_source: projected-item costs summed per source.

All functions are pure; ChartService only loads their inputs.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from bearpaw.audit import AuditLogger
from bearpaw.models.charts import CategoryTotal, ChartWindow, PeriodTotal
from bearpaw.models.items import BudgetItem, BudgetType, Collection
from bearpaw.models.projection import ProjectedItem, ProjectionSource
from bearpaw.models.types import utc_now
from bearpaw.projections.aggregator import ProjectionAggregator
from bearpaw.repositories import Repository


ONE_TIME_LABEL = "One-Time Expenses"
MONTHS_PER_YEAR = 12
ZERO = Decimal("0")


def _add_months(month_start: date, months: int) -> date:
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_starts(today: date, window: ChartWindow = ChartWindow.CALENDAR_YEAR) -> list[date]:
    """First day of each of the twelve months the window covers."""
    if window == ChartWindow.CALENDAR_YEAR:
        first = date(today.year, 1, 1)
    else:
        first = _add_months(date(today.year, today.month, 1), -(MONTHS_PER_YEAR - 1))
    return [_add_months(first, offset) for offset in range(MONTHS_PER_YEAR)]


def _warn_unreadable_payment_dates(
    items: Sequence[BudgetItem],
    audit_logger: Optional[AuditLogger],
) -> None:
    if audit_logger is None:
        return
    for item in items:
        raw_value = item.malformed_fields.get("payment_date")
        if item.type == BudgetType.ONE_TIME and raw_value is not None:
            audit_logger.log_malformed_date(
                Collection.BUDGET_ITEMS.value, item.id, "payment_date", raw_value
            )


def monthly_totals(
    items: Iterable[BudgetItem],
    today: Optional[date] = None,
    window: ChartWindow = ChartWindow.CALENDAR_YEAR,
    audit_logger: Optional[AuditLogger] = None,
) -> list[PeriodTotal]:
    """
    Total spending per month over the chosen window.

    One-time items without a readable payment date are left out.
    """
    items = list(items)
    today = today or utc_now().date()
    starts = month_starts(today, window)
    totals = {start: ZERO for start in starts}

    for item in items:
        if item.type == BudgetType.MONTHLY:
            for start in starts:
                totals[start] += item.cost
        elif item.payment_date is not None:
            bucket = date(item.payment_date.year, item.payment_date.month, 1)
            if bucket in totals:
                totals[bucket] += item.cost

    _warn_unreadable_payment_dates(items, audit_logger)
    return [
        PeriodTotal(label=start.strftime("%b %y"), start=start, total=totals[start])
        for start in starts
    ]


def quarterly_totals(monthly: Sequence[PeriodTotal]) -> list[PeriodTotal]:
    """
    Fold month buckets into calendar quarters, keeping their order.

    A calendar-year window yields Q1-Q4; a trailing window may start
    and end on partial quarters.
    """
    quarters: dict[date, Decimal] = {}
    for month in monthly:
        quarter_start = date(month.start.year, 3 * ((month.start.month - 1) // 3) + 1, 1)
        quarters[quarter_start] = quarters.get(quarter_start, ZERO) + month.total

    return [
        PeriodTotal(
            label=f"Q{(start.month - 1) // 3 + 1} {start.strftime('%y')}",
            start=start,
            total=total,
        )
        for start, total in quarters.items()
    ]


def category_totals(
    items: Iterable[BudgetItem],
    today: Optional[date] = None,
) -> list[CategoryTotal]:
    """
    Yearly expense breakdown by category label.

    Buckets whose total is not positive are dropped. The one-time bucket,
    when present, comes last.
    """
    year = (today or utc_now().date()).year
    buckets: dict[str, Decimal] = {}
    one_time = ZERO

    for item in items:
        if item.type == BudgetType.MONTHLY:
            label = f"{item.name} (Monthly)"
            buckets[label] = buckets.get(label, ZERO) + item.cost * MONTHS_PER_YEAR
        elif item.payment_date is not None and item.payment_date.year == year:
            one_time += item.cost

    rows = [CategoryTotal(label=label, total=total) for label, total in buckets.items()]
    rows.append(CategoryTotal(label=ONE_TIME_LABEL, total=one_time))
    return [row for row in rows if row.total > 0]


def projected_cost_by_source(projected: Iterable[ProjectedItem]) -> list[CategoryTotal]:
    """Sum projected costs per source; sources with no cost are dropped."""
    totals = {source: ZERO for source in ProjectionSource}
    for item in projected:
        if item.cost is not None:
            totals[item.source] += item.cost

    return [
        CategoryTotal(label=source.value, total=total)
        for source, total in totals.items()
        if total > 0
    ]


class ChartService:
    """Loads budget and projection data and buckets it for charts."""

    def __init__(
        self,
        budget: Repository[BudgetItem],
        aggregator: ProjectionAggregator,
        default_window: ChartWindow = ChartWindow.CALENDAR_YEAR,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._budget = budget
        self._aggregator = aggregator
        self._default_window = default_window
        self._audit = audit_logger or AuditLogger()

    async def monthly(
        self,
        today: Optional[date] = None,
        window: Optional[ChartWindow] = None,
    ) -> list[PeriodTotal]:
        items = await self._budget.list()
        return monthly_totals(
            items,
            today=today,
            window=window or self._default_window,
            audit_logger=self._audit,
        )

    async def quarterly(self, today: Optional[date] = None) -> list[PeriodTotal]:
        items = await self._budget.list()
        return quarterly_totals(
            monthly_totals(
                items,
                today=today,
                window=ChartWindow.CALENDAR_YEAR,
                audit_logger=self._audit,
            )
        )

    async def categories(self, today: Optional[date] = None) -> list[CategoryTotal]:
        items = await self._budget.list()
        return category_totals(items, today=today)

    async def projected_costs(self, now: Optional[datetime] = None) -> list[CategoryTotal]:
        """
        Raises:
            ProjectionError: If the projection sources cannot be loaded
        """
        return projected_cost_by_source(await self._aggregator.project(now=now))
