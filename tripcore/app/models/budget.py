"""Budget models - estimated trip cost bounds."""

from decimal import Decimal

from pydantic import BaseModel, Field

from tripcore.app.models.itinerary import ItemKey


class PriceRange(BaseModel):
    """Parsed price estimate. A single figure has minimum == maximum."""

    minimum: Decimal
    maximum: Decimal

    @property
    def is_range(self) -> bool:
        return self.minimum != self.maximum


class BudgetEstimate(BaseModel):
    """Aggregate minimum/maximum cost of a set of items."""

    minimum: Decimal = Decimal(0)
    maximum: Decimal = Decimal(0)
    traveler_count: int = 1
    has_any_estimate: bool = False
    has_estimated_ranges: bool = False
    excluded_items: list[ItemKey] = Field(default_factory=list)
