"""Models package - re-exports for convenience."""

from tripcore.app.models.availability import (
    AvailabilityDay,
    AvailabilityMatch,
    AvailabilityStatus,
    BlockingItem,
    SlotCandidate,
    TimeSlot,
)
from tripcore.app.models.budget import BudgetEstimate, PriceRange
from tripcore.app.models.catalog import ExperienceListing
from tripcore.app.models.common import DayOfWeek, Severity, TimeRange
from tripcore.app.models.generation import (
    GeneratedItinerary,
    GenerationDiagnostics,
    GenerationFailure,
    GenerationRequest,
)
from tripcore.app.models.itinerary import (
    DaySummary,
    ExperienceSnapshot,
    ItemKey,
    ItemTiming,
    ItineraryItem,
    TripBounds,
)
from tripcore.app.models.schedule import (
    DayGap,
    GapInfo,
    GapKind,
    GapThresholds,
    ScheduleIssue,
    TravelCheck,
)
from tripcore.app.models.violations import Rejection, RejectionCode

__all__ = [
    # Common
    "DayOfWeek",
    "Severity",
    "TimeRange",
    # Itinerary
    "ExperienceSnapshot",
    "ItemKey",
    "ItineraryItem",
    "TripBounds",
    "DaySummary",
    "ItemTiming",
    # Availability
    "TimeSlot",
    "AvailabilityDay",
    "AvailabilityStatus",
    "AvailabilityMatch",
    "SlotCandidate",
    "BlockingItem",
    # Schedule
    "GapKind",
    "GapThresholds",
    "GapInfo",
    "DayGap",
    "ScheduleIssue",
    "TravelCheck",
    # Budget
    "PriceRange",
    "BudgetEstimate",
    # Catalog
    "ExperienceListing",
    # Generation
    "GenerationRequest",
    "GeneratedItinerary",
    "GenerationDiagnostics",
    "GenerationFailure",
    # Rejections
    "Rejection",
    "RejectionCode",
]
