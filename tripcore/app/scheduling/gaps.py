"""Gap classification between consecutive items on a day."""

import math
from collections.abc import Iterable

from tripcore.app.config import get_settings
from tripcore.app.models.common import Severity
from tripcore.app.models.itinerary import ItineraryItem
from tripcore.app.models.schedule import (
    DayGap,
    GapInfo,
    GapKind,
    GapThresholds,
    ScheduleIssue,
    TravelCheck,
)
from tripcore.app.scheduling.timeutils import format_duration, to_minutes

EARTH_RADIUS_KM = 6371.0

# Kinds surfaced in the day-wide issue list
FLAGGED_KINDS = {GapKind.overlap, GapKind.back_to_back, GapKind.tight}


def default_thresholds() -> GapThresholds:
    """Thresholds from settings."""
    settings = get_settings()
    return GapThresholds(
        tight_minutes=settings.tight_gap_minutes,
        excessive_minutes=settings.excessive_gap_minutes,
    )


def classify_gap(
    end_time: str,
    next_start_time: str,
    thresholds: GapThresholds | None = None,
) -> GapInfo:
    """Classify the idle interval between one item's end and the next's start.

    Args:
        end_time: End of the earlier item
        next_start_time: Start of the following item
        thresholds: Tight/excessive limits (defaults from settings)

    Returns:
        GapInfo with kind, minutes and a display message
    """
    limits = thresholds or default_thresholds()
    gap = to_minutes(next_start_time) - to_minutes(end_time)

    if gap < 0:
        return GapInfo(
            kind=GapKind.overlap,
            minutes=gap,
            message="Time overlap detected!",
            severity=Severity.warning,
            has_time=False,
        )
    if gap == 0:
        return GapInfo(
            kind=GapKind.back_to_back,
            minutes=0,
            message="Back-to-back activities",
            severity=Severity.info,
            has_time=False,
        )
    if gap < limits.tight_minutes:
        return GapInfo(
            kind=GapKind.tight,
            minutes=gap,
            message=f"Only {gap} min gap - might be tight!",
            severity=Severity.warning,
            has_time=False,
        )
    if gap > limits.excessive_minutes:
        return GapInfo(
            kind=GapKind.excessive,
            minutes=gap,
            message=f"{format_duration(gap)} gap - consider adding another activity",
            severity=Severity.info,
            has_time=True,
        )
    return GapInfo(
        kind=GapKind.normal,
        minutes=gap,
        message=f"{format_duration(gap)} break",
        severity=Severity.info,
        has_time=True,
    )


def sort_by_start(items: Iterable[ItineraryItem]) -> list[ItineraryItem]:
    """Stable sort by start time."""
    return sorted(items, key=lambda item: to_minutes(item.start_time))


def day_gaps(
    items: Iterable[ItineraryItem],
    thresholds: GapThresholds | None = None,
) -> list[DayGap]:
    """Classify every adjacent pair of one day's items in start-time order."""
    limits = thresholds or default_thresholds()
    ordered = sort_by_start(items)
    return [
        DayGap(
            before=current.key,
            after=following.key,
            gap=classify_gap(current.end_time, following.start_time, limits),
        )
        for current, following in zip(ordered, ordered[1:])
    ]


def schedule_issues(
    items: Iterable[ItineraryItem],
    thresholds: GapThresholds | None = None,
) -> list[ScheduleIssue]:
    """List overlaps, back-to-back pairs and tight connections across all days."""
    limits = thresholds or default_thresholds()
    by_day: dict[int, list[ItineraryItem]] = {}
    for item in items:
        by_day.setdefault(item.day_number, []).append(item)

    issues: list[ScheduleIssue] = []
    for day_number in sorted(by_day):
        ordered = sort_by_start(by_day[day_number])
        for current, following in zip(ordered, ordered[1:]):
            gap = classify_gap(current.end_time, following.start_time, limits)
            if gap.kind in FLAGGED_KINDS:
                issues.append(
                    ScheduleIssue(
                        day_number=day_number,
                        first=current.key,
                        second=following.key,
                        first_name=current.experience_name,
                        second_name=following.experience_name,
                        gap=gap,
                    )
                )
    return issues


def has_critical_conflicts(items: Iterable[ItineraryItem]) -> bool:
    """True if any two items on the same day overlap."""
    return any(issue.gap.kind == GapKind.overlap for issue in schedule_issues(items))


def estimate_travel_minutes(
    origin: ItineraryItem,
    destination: ItineraryItem,
    speed_kmh: float | None = None,
) -> int | None:
    """Estimate travel time between two items from their coordinates.

    Uses great-circle distance at an average urban speed. Returns None when
    either item lacks coordinates.
    """
    a, b = origin.snapshot, destination.snapshot
    if a.latitude is None or a.longitude is None or b.latitude is None or b.longitude is None:
        return None

    speed = speed_kmh or get_settings().travel_speed_kmh
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.latitude))
        * math.cos(math.radians(b.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    distance_km = 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(distance_km / speed * 60)


def check_travel_time(
    origin: ItineraryItem,
    destination: ItineraryItem,
    speed_kmh: float | None = None,
) -> TravelCheck:
    """Compare the gap between two items with the estimated travel time."""
    gap = to_minutes(destination.start_time) - to_minutes(origin.end_time)
    travel = estimate_travel_minutes(origin, destination, speed_kmh)

    if travel is None:
        return TravelCheck(has_time=True, gap_minutes=gap, travel_minutes=None, message="")
    if gap < travel:
        return TravelCheck(
            has_time=False,
            gap_minutes=gap,
            travel_minutes=travel,
            message=f"Only {gap} min gap, ~{travel} min travel time",
        )
    return TravelCheck(
        has_time=True,
        gap_minutes=gap,
        travel_minutes=travel,
        message=f"~{travel} min travel",
    )
