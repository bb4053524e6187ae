"""Common types and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, field_validator, model_validator

from tripcore.app.scheduling.timeutils import normalize_time, to_minutes


class DayOfWeek(str, Enum):
    """Weekday names as the catalog spells them."""

    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"


class Severity(str, Enum):
    """Display severity for schedule messages."""

    info = "info"
    warning = "warning"


class TimeRange(BaseModel):
    """Half-open wall-clock range [start, end) within one day."""

    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_clock_time(cls, v: str) -> str:
        """Normalize to HH:MM."""
        return normalize_time(v)

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "TimeRange":
        """Ensure end > start."""
        if to_minutes(self.end) <= to_minutes(self.start):
            raise ValueError("end must be after start")
        return self
