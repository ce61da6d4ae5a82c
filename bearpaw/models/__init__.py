"""
Data Models Package

Pydantic models for every record shape, the projected-items view and
the chart buckets. All data crossing the storage boundary conforms to
these schemas.
"""

from bearpaw.models.items import (
    COLLECTION_MODELS,
    BudgetItem,
    BudgetItemFields,
    BudgetType,
    Collection,
    IdeasItem,
    IdeasItemFields,
    InventoryItem,
    InventoryItemFields,
    InventoryState,
    InventoryType,
    ItemFields,
    MediaType,
    MovieGameItem,
    MovieGameItemFields,
    NeedsItem,
    NeedsItemFields,
    StoredRecord,
    ToolItem,
    ToolItemFields,
)
from bearpaw.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from bearpaw.models.charts import CategoryTotal, ChartWindow, PeriodTotal
from bearpaw.models.projection import ProjectedItem, ProjectionSource

__all__ = [
    # Record models
    "COLLECTION_MODELS",
    "BudgetItem",
    "BudgetItemFields",
    "BudgetType",
    "Collection",
    "IdeasItem",
    "IdeasItemFields",
    "InventoryItem",
    "InventoryItemFields",
    "InventoryState",
    "InventoryType",
    "ItemFields",
    "MediaType",
    "MovieGameItem",
    "MovieGameItemFields",
    "NeedsItem",
    "NeedsItemFields",
    "StoredRecord",
    "ToolItem",
    "ToolItemFields",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Derived views
    "CategoryTotal",
    "ChartWindow",
    "PeriodTotal",
    "ProjectedItem",
    "ProjectionSource",
]
