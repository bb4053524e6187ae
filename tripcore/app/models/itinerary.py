"""Itinerary models - items placed on a trip and the trip's date bounds."""

from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from tripcore.app.models.common import TimeRange
from tripcore.app.scheduling.timeutils import normalize_time, to_minutes


class ExperienceSnapshot(BaseModel):
    """Activity display fields copied onto an item when it is added.

    The snapshot is taken once. Catalog changes made afterwards (a new price,
    a renamed activity) are not reflected on items already in a draft.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    description: str | None = None
    destination_name: str | None = None
    destination_city: str | None = None
    images: tuple[str, ...] = ()
    primary_image: str | None = None
    price: Decimal | None = None
    price_estimate: str | None = None
    unit: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class ItemKey(BaseModel):
    """Identity of an item before the server assigns one."""

    model_config = ConfigDict(frozen=True)

    experience_id: int
    day_number: int
    start_time: str

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        """Normalize to HH:MM so keys compare structurally."""
        return normalize_time(v)


class ItineraryItem(BaseModel):
    """One bookable time reservation placed on the trip."""

    model_config = ConfigDict(frozen=True)

    experience_id: int
    day_number: int = Field(..., ge=1)
    start_time: str
    end_time: str
    custom_note: str | None = None
    slot_id: int | None = None
    snapshot: ExperienceSnapshot = Field(default_factory=ExperienceSnapshot)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock_time(cls, v: str) -> str:
        """Normalize to HH:MM, stripping seconds."""
        return normalize_time(v)

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "ItineraryItem":
        """Reject zero-length and inverted ranges."""
        if to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError(
                f"end_time must be after start_time ({self.start_time}-{self.end_time})"
            )
        return self

    @property
    def key(self) -> ItemKey:
        return ItemKey(
            experience_id=self.experience_id,
            day_number=self.day_number,
            start_time=self.start_time,
        )

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)

    @property
    def experience_name(self) -> str:
        return self.snapshot.name or f"experience {self.experience_id}"

    @property
    def price(self) -> Decimal | None:
        return self.snapshot.price

    @property
    def price_estimate(self) -> str | None:
        return self.snapshot.price_estimate

    @property
    def unit(self) -> str | None:
        return self.snapshot.unit


class TripBounds(BaseModel):
    """Inclusive calendar date range of a trip."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def drop_time_of_day(cls, v: Any) -> Any:
        """Only the calendar day counts; time-of-day components are ignored."""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "TripBounds":
        """Ensure end >= start."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def date_for_day(self, day_number: int) -> date:
        """Calendar date of a 1-indexed trip day."""
        return self.start_date + timedelta(days=day_number - 1)

    def contains_day(self, day_number: int) -> bool:
        return 1 <= day_number <= self.total_days


class DaySummary(BaseModel):
    """Per-day view used by the day picker."""

    day_number: int
    date: date
    weekday: str
    item_count: int
    is_empty: bool


class ItemTiming(str, Enum):
    """Where an item sits relative to the current moment."""

    upcoming = "upcoming"
    ongoing = "ongoing"
    past = "past"
