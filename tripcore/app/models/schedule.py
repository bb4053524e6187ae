"""Schedule analysis models - gaps between items and day-wide issues."""

from enum import Enum

from pydantic import BaseModel

from tripcore.app.models.common import Severity
from tripcore.app.models.itinerary import ItemKey


class GapKind(str, Enum):
    """Classification of the idle time between two consecutive items."""

    overlap = "overlap"
    back_to_back = "back_to_back"
    tight = "tight"
    normal = "normal"
    excessive = "excessive"


class GapThresholds(BaseModel):
    """Presentation heuristics for gap classification (minutes)."""

    tight_minutes: int = 15
    excessive_minutes: int = 180


class GapInfo(BaseModel):
    """Classified gap between the end of one item and the start of the next."""

    kind: GapKind
    minutes: int
    message: str
    severity: Severity
    has_time: bool


class DayGap(BaseModel):
    """Gap between two adjacent items on one day."""

    before: ItemKey
    after: ItemKey
    gap: GapInfo


class ScheduleIssue(BaseModel):
    """Adjacent pair on one day worth flagging to the traveler."""

    day_number: int
    first: ItemKey
    second: ItemKey
    first_name: str
    second_name: str
    gap: GapInfo


class TravelCheck(BaseModel):
    """Whether the gap between two items covers the estimated travel time."""

    has_time: bool
    gap_minutes: int
    travel_minutes: int | None
    message: str
