"""Rejection models - why a draft transition was refused."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from tripcore.app.models.itinerary import ItemKey

# JSON-serializable value types for rejection details
JsonValue = str | int | float | bool | None | dict[str, Any] | list[Any]


class RejectionCode(str, Enum):
    """Categories of refused draft transitions."""

    DAY_OUT_OF_RANGE = "day_out_of_range"
    TIME_CONFLICT = "time_conflict"
    DUPLICATE_ITEM = "duplicate_item"
    INVALID_TIME_RANGE = "invalid_time_range"
    ITEM_NOT_FOUND = "item_not_found"
    ITEM_LOCKED = "item_locked"
    SLOT_UNAVAILABLE = "slot_unavailable"
    EMPTY_DRAFT = "empty_draft"
    ORPHANED_ITEMS = "orphaned_items"


class Rejection(BaseModel):
    """A refused mutation with a reason the caller can show the traveler.

    The draft the operation was applied to is never modified.
    """

    code: RejectionCode
    message: str  # Human-readable, e.g. 'Conflicts with "Island Hopping"'
    conflicting_key: ItemKey | None = None
    details: dict[str, JsonValue] = Field(default_factory=dict)
