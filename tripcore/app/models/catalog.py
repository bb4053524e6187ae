"""Catalog models - activity listings as the experience catalog returns them."""

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tripcore.app.models.itinerary import ExperienceSnapshot


class ExperienceListing(BaseModel):
    """Activity returned by the catalog browse endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    description: str | None = None
    price: Decimal | None = None
    price_estimate: str | None = None
    unit: str | None = None
    destination_name: str | None = None
    destination_city: str | None = None
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    category_name: str | None = None

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v: Any) -> Decimal | None:
        """Catalog sends prices as strings; unparseable values mean no price."""
        if v is None or v == "":
            return None
        try:
            return Decimal(str(v))
        except InvalidOperation:
            return None

    @field_validator("tags", "images", mode="before")
    @classmethod
    def default_missing_lists(cls, v: Any) -> Any:
        return [] if v is None else v

    def to_snapshot(self) -> ExperienceSnapshot:
        """Copy the display fields an itinerary item carries."""
        return ExperienceSnapshot(
            name=self.title,
            description=self.description,
            destination_name=self.destination_name,
            destination_city=self.destination_city,
            images=tuple(self.images),
            primary_image=self.images[0] if self.images else None,
            price=self.price,
            price_estimate=self.price_estimate,
            unit=self.unit,
            latitude=self.latitude,
            longitude=self.longitude,
        )
