"""Chart bucket models for the budget and projection views."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from bearpaw.models.types import Money


class ChartWindow(str, Enum):
    """
    Which twelve months the monthly chart covers.

    CALENDAR_YEAR is Jan-Dec of the current year; TRAILING_12_MONTHS ends
    with the current month.
    """
    CALENDAR_YEAR = "calendar_year"
    TRAILING_12_MONTHS = "trailing_12_months"


class PeriodTotal(BaseModel):
    """Money spent in one month or quarter."""

    label: str = Field(..., description="Display label, e.g. 'Mar 26' or 'Q1 26'")
    start: date = Field(..., description="First day of the period")
    total: Money = Decimal("0")


class CategoryTotal(BaseModel):
    """Money grouped under a category label."""

    label: str
    total: Money = Decimal("0")
