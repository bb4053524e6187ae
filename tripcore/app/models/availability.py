"""Availability models - weekly recurring offers fetched from the catalog."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tripcore.app.models.itinerary import ItemKey
from tripcore.app.scheduling.timeutils import normalize_time


class TimeSlot(BaseModel):
    """A bookable window that recurs every week on its day."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    start_time: str
    end_time: str
    slot_id: int | None = None
    availability_id: int | None = None
    remaining_guests: int | None = None


class AvailabilityDay(BaseModel):
    """One weekday's slots for one activity."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    day_of_week: str
    time_slots: tuple[TimeSlot, ...] = ()
    availability_id: int | None = None
    experience_id: int | None = None

    @field_validator("time_slots", mode="before")
    @classmethod
    def default_missing_slots(cls, v: object) -> object:
        """Catalog sends null for days without slots."""
        return () if v is None else v


class AvailabilityStatus(str, Enum):
    """Outcome of matching availability against a date."""

    not_loaded = "not_loaded"
    unavailable = "unavailable"
    no_offering = "no_offering"
    offered = "offered"


class BlockingItem(BaseModel):
    """Item that makes a slot unselectable."""

    key: ItemKey
    name: str


class SlotCandidate(BaseModel):
    """A slot on the target date annotated with its conflict status."""

    start_time: str
    end_time: str
    slot_id: int | None = None
    selectable: bool
    blocked_by: BlockingItem | None = None
    is_current: bool = False
    capacity_label: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock_time(cls, v: str) -> str:
        """Normalize to HH:MM."""
        return normalize_time(v)


class AvailabilityMatch(BaseModel):
    """Candidate slots for one activity on one date."""

    experience_id: int | None = None
    weekday: str
    status: AvailabilityStatus
    slots: list[SlotCandidate] = Field(default_factory=list)
    bookable: bool = False  # some slot has room for the whole party
    retryable: bool = False

    @property
    def selectable_slots(self) -> list[SlotCandidate]:
        return [s for s in self.slots if s.selectable]
