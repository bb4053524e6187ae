"""Group itinerary items into trip days and summarize each day."""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

from tripcore.app.models.itinerary import DaySummary, ItemTiming, ItineraryItem, TripBounds
from tripcore.app.scheduling.availability import weekday_name
from tripcore.app.scheduling.gaps import sort_by_start


def total_days(bounds: TripBounds) -> int:
    """Number of trip days, inclusive of both endpoints."""
    return bounds.total_days


def date_for_day(bounds: TripBounds, day_number: int) -> date:
    """Calendar date of a 1-indexed trip day."""
    return bounds.date_for_day(day_number)


def weekday_for_day(bounds: TripBounds, day_number: int) -> str:
    return weekday_name(bounds.date_for_day(day_number))


def group_by_day(items: Iterable[ItineraryItem]) -> dict[int, list[ItineraryItem]]:
    """Partition items by day number.

    Keys are in ascending day order; each bucket is sorted by start time.
    Days without items are simply absent.
    """
    buckets: dict[int, list[ItineraryItem]] = {}
    for item in items:
        buckets.setdefault(item.day_number, []).append(item)
    return {day: sort_by_start(buckets[day]) for day in sorted(buckets)}


def day_summary(
    bounds: TripBounds, items: Iterable[ItineraryItem], day_number: int
) -> DaySummary:
    """Date and occupancy for one trip day."""
    count = sum(1 for item in items if item.day_number == day_number)
    return DaySummary(
        day_number=day_number,
        date=bounds.date_for_day(day_number),
        weekday=weekday_for_day(bounds, day_number),
        item_count=count,
        is_empty=count == 0,
    )


def day_summaries(bounds: TripBounds, items: Iterable[ItineraryItem]) -> list[DaySummary]:
    """One summary per trip day, empty days included."""
    grouped = group_by_day(items)
    summaries = []
    for day_number in range(1, bounds.total_days + 1):
        count = len(grouped.get(day_number, []))
        summaries.append(
            DaySummary(
                day_number=day_number,
                date=bounds.date_for_day(day_number),
                weekday=weekday_for_day(bounds, day_number),
                item_count=count,
                is_empty=count == 0,
            )
        )
    return summaries


def days_by_experience(items: Iterable[ItineraryItem]) -> dict[int, list[int]]:
    """Sorted list of days each experience has been placed on."""
    days: dict[int, set[int]] = {}
    for item in items:
        days.setdefault(item.experience_id, set()).add(item.day_number)
    return {experience_id: sorted(found) for experience_id, found in days.items()}


def _at(day_date: date, clock: str) -> datetime:
    hours, minutes = (int(part) for part in clock.split(":")[:2])
    return datetime.combine(day_date, time(hours, minutes))


def item_timing(item: ItineraryItem, bounds: TripBounds, now: datetime) -> ItemTiming:
    """Whether an item is still ahead, in progress or over.

    ``now`` is naive local time, matching how item times are stored.
    """
    day_date = bounds.date_for_day(item.day_number)
    starts_at = _at(day_date, item.start_time)
    ends_at = _at(day_date, item.end_time)
    if now < starts_at:
        return ItemTiming.upcoming
    if now < ends_at:
        return ItemTiming.ongoing
    return ItemTiming.past


def is_day_past(bounds: TripBounds, day_number: int, now: datetime) -> bool:
    """True once the whole trip day has ended."""
    end_of_day = datetime.combine(bounds.date_for_day(day_number), time.min) + timedelta(days=1)
    return now >= end_of_day
