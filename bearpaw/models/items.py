"""
Record Models for Bearpaw Cabin Manager

The backing store is schemaless, so these models ARE the schema.
Every collection has two shapes:

1. `<Name>Fields` - what a client may write (POST body, merged PATCH)
2. `<Name>` - what the store hands back: the fields plus `id` and
   `created_at`, stamped by the store adapter

DESIGN DECISION: Writes are strict, reads are forgiving.
A POST with an unparseable date is a 422. A stored row with an
unparseable date (legacy data, hand edits in the console) is still read,
with the date set aside in `malformed_fields` so derived views can fall
back and log it instead of failing the whole page.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from bearpaw.models.types import Money, parse_calendar_date


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Collection(str, Enum):
    """
    Named collections ("kinds") in the backing store.

    The values double as the URL segment under /api.
    """
    BUDGET_ITEMS = "budget_items"
    IDEAS_ITEMS = "ideas_items"
    INVENTORY_ITEMS = "inventory_items"
    MOVIES_GAMES = "movies_games"
    NEEDS_ITEMS = "needs_items"
    TOOLS = "tools"


class BudgetType(str, Enum):
    """Recurring versus single payment."""
    MONTHLY = "monthly"
    ONE_TIME = "one-time"


class InventoryType(str, Enum):
    """Only consumables are tracked for replacement."""
    CONSUMABLE = "consumable"
    NON_CONSUMABLE = "non-consumable"


class InventoryState(str, Enum):
    """Condition of a non-consumable inventory item."""
    CLEAN = "Clean"
    DIRTY = "Dirty"
    GOOD = "Good"
    BROKEN = "Broken"


class MediaType(str, Enum):
    """Shelf format for the movies & games collection."""
    VHS = "VHS"
    DVD = "DVD"
    GAME = "Game"


def _blank_to_none(value: Any) -> Any:
    """Empty form inputs arrive as "" and mean "not set"."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


# =============================================================================
# WRITABLE FIELDS (request payloads)
# =============================================================================

class ItemFields(BaseModel):
    """Base for client-writable payloads."""
    model_config = ConfigDict(str_strip_whitespace=True)

    def to_store(self) -> dict[str, Any]:
        """Serialize to primitive values the store can hold."""
        return self.model_dump(mode="json")


class BudgetItemFields(ItemFields):
    """A recurring or one-off cabin expense."""

    name: str = Field(..., description="What the money is for")
    type: BudgetType
    cost: Money = Field(..., description="Amount per payment")
    payment_date: Optional[date] = Field(
        default=None,
        description="When a one-time payment is due"
    )

    @field_validator('payment_date', mode='before')
    @classmethod
    def blank_payment_date(cls, v: Any) -> Any:
        return _blank_to_none(v)


class IdeasItemFields(ItemFields):
    """Something we might do or buy some day."""

    description: str
    price: Optional[Money] = None
    notes: Optional[str] = None

    @field_validator('price', 'notes', mode='before')
    @classmethod
    def blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)


class InventoryItemFields(ItemFields):
    """
    Something kept at the cabin.

    Consumables carry a quantity and a replacement date; non-consumables
    carry a condition. The irrelevant side is cleared on every write.
    """

    name: str
    type: InventoryType
    quantity: Optional[int] = None
    state: Optional[InventoryState] = None
    replacement_date: Optional[date] = None

    @field_validator('quantity', 'state', 'replacement_date', mode='before')
    @classmethod
    def blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @model_validator(mode='after')
    def clear_irrelevant_fields(self) -> 'InventoryItemFields':
        if self.type == InventoryType.CONSUMABLE:
            self.state = None
        else:
            self.quantity = None
            self.replacement_date = None
        return self


class MovieGameItemFields(ItemFields):
    """A tape, disc or board game on the shelf."""

    name: str
    type: MediaType
    players: Optional[str] = None

    @field_validator('players', mode='before')
    @classmethod
    def blank_players(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @model_validator(mode='after')
    def players_only_for_games(self) -> 'MovieGameItemFields':
        if self.type != MediaType.GAME:
            self.players = None
        return self


class NeedsItemFields(ItemFields):
    """Something the cabin needs, with an optional price."""

    description: str
    price: Optional[Money] = None
    quantity: int = Field(default=1, ge=1)

    @field_validator('price', mode='before')
    @classmethod
    def blank_price(cls, v: Any) -> Any:
        return _blank_to_none(v)


class ToolItemFields(ItemFields):
    """A tool in the shed."""

    name: str
    quantity: int = 1
    electric: bool = False
    consumable: bool = False


# =============================================================================
# STORED RECORDS (what the store returns)
# =============================================================================

class StoredRecord(BaseModel):
    """
    Identity and timestamps common to every stored record.

    Subclasses list their calendar-date fields in `date_fields`; values
    that will not parse are moved into `malformed_fields` and the field
    is read as absent.
    """

    date_fields: ClassVar[tuple[str, ...]] = ()

    id: str = Field(..., description="Store-assigned identifier (opaque)")
    created_at: datetime = Field(..., description="Creation instant (UTC)")
    malformed_fields: dict[str, str] = Field(
        default_factory=dict,
        exclude=True,
        description="Raw text of date fields that could not be parsed"
    )

    @model_validator(mode='before')
    @classmethod
    def set_aside_malformed_dates(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not cls.date_fields:
            return data

        data = dict(data)
        malformed = dict(data.get("malformed_fields") or {})
        for name in cls.date_fields:
            raw = _blank_to_none(data.get(name))
            if raw is None:
                data[name] = None
                continue
            try:
                data[name] = parse_calendar_date(raw)
            except (TypeError, ValueError):
                malformed[name] = str(raw)
                data[name] = None
        data["malformed_fields"] = malformed
        return data

    @field_validator('id', mode='before')
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('created_at')
    @classmethod
    def created_at_in_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class BudgetItem(StoredRecord, BudgetItemFields):
    date_fields: ClassVar[tuple[str, ...]] = ("payment_date",)


class IdeasItem(StoredRecord, IdeasItemFields):
    pass


class InventoryItem(StoredRecord, InventoryItemFields):
    date_fields: ClassVar[tuple[str, ...]] = ("replacement_date",)


class MovieGameItem(StoredRecord, MovieGameItemFields):
    pass


class NeedsItem(StoredRecord, NeedsItemFields):
    pass


class ToolItem(StoredRecord, ToolItemFields):
    pass


# Collection -> (record model, writable fields model)
COLLECTION_MODELS: dict[Collection, tuple[type[StoredRecord], type[ItemFields]]] = {
    Collection.BUDGET_ITEMS: (BudgetItem, BudgetItemFields),
    Collection.IDEAS_ITEMS: (IdeasItem, IdeasItemFields),
    Collection.INVENTORY_ITEMS: (InventoryItem, InventoryItemFields),
    Collection.MOVIES_GAMES: (MovieGameItem, MovieGameItemFields),
    Collection.NEEDS_ITEMS: (NeedsItem, NeedsItemFields),
    Collection.TOOLS: (ToolItem, ToolItemFields),
}
