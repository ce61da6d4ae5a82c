"""
Projected Item Model

A ProjectedItem is a read-only, never-persisted view row. It is rebuilt
from the needs, inventory, tools and budget collections on every request.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from bearpaw.models.types import Money, as_utc_instant


class ProjectionSource(str, Enum):
    """Where a projected item came from. Order is display order."""
    NEEDS = "Needs"
    CONSUMABLE_INVENTORY = "Consumable Inventory"
    CONSUMABLE_TOOLS = "Consumable Tools"
    FUTURE_ONE_TIME_BUDGET = "Future One-Time Budget"


class ProjectedItem(BaseModel):
    """
    One row of the forward-planning timeline.

    `date` is only ever a replacement date (inventory) or a payment date
    (budget). Items without one are ordered by `created_at`.
    """

    id: str = Field(..., description="Id of the source record")
    source: ProjectionSource
    description: str
    quantity: Optional[int] = None
    cost: Optional[Money] = None
    date: Optional[datetime.date] = None
    created_at: datetime.datetime

    @property
    def effective_instant(self) -> datetime.datetime:
        """The instant this item sorts by."""
        if self.date is not None:
            return as_utc_instant(self.date)
        return as_utc_instant(self.created_at)
