"""Match an activity's weekly availability against a trip date."""

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from tripcore.app.models.availability import (
    AvailabilityDay,
    AvailabilityMatch,
    AvailabilityStatus,
    BlockingItem,
    SlotCandidate,
    TimeSlot,
)
from tripcore.app.models.common import DayOfWeek, TimeRange
from tripcore.app.models.itinerary import ItineraryItem
from tripcore.app.scheduling.conflicts import find_conflict
from tripcore.app.scheduling.timeutils import MalformedTimeError, normalize_time, to_minutes

logger = logging.getLogger(__name__)

_WEEKDAYS = list(DayOfWeek)


def weekday_name(target_date: date) -> str:
    """English weekday name for a date, e.g. 'Friday'."""
    return _WEEKDAYS[target_date.weekday()].value


def find_availability_day(
    availability: Iterable[AvailabilityDay], weekday: str
) -> AvailabilityDay | None:
    """Select the entry for a weekday (case-insensitive)."""
    wanted = weekday.strip().casefold()
    for day in availability:
        if day.day_of_week.strip().casefold() == wanted:
            return day
    return None


def sort_time_slots(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Sort slots by start time, keeping catalog order for ties.

    Slots whose times cannot be parsed, or whose range is empty, are dropped.
    """
    valid: list[TimeSlot] = []
    for slot in slots:
        try:
            if to_minutes(slot.end_time) <= to_minutes(slot.start_time):
                raise MalformedTimeError(f"{slot.start_time}-{slot.end_time}")
        except MalformedTimeError:
            logger.warning(
                "Dropping unusable time slot",
                extra={
                    "structured": {
                        "slot_id": slot.slot_id,
                        "start_time": slot.start_time,
                        "end_time": slot.end_time,
                    }
                },
            )
            continue
        valid.append(slot)
    return sorted(valid, key=lambda s: to_minutes(s.start_time))


def slot_capacity_label(remaining_guests: int | None) -> str | None:
    """Short capacity hint for a slot, or None when capacity is unknown."""
    if remaining_guests is None:
        return None
    if remaining_guests <= 0:
        return "Full"
    return f"{remaining_guests} slots left"


def slot_has_capacity(slot: TimeSlot, party_size: int = 1) -> bool:
    """Unknown capacity counts as bookable."""
    if slot.remaining_guests is None:
        return True
    return slot.remaining_guests > 0 and party_size <= slot.remaining_guests


def has_bookable_slot(slots: Iterable[TimeSlot], party_size: int = 1) -> bool:
    """True if at least one slot can take the whole party."""
    return any(slot_has_capacity(slot, party_size) for slot in slots)


def match_availability(
    target_date: date,
    availability: Sequence[AvailabilityDay] | None,
    items_on_day: Iterable[ItineraryItem],
    *,
    experience_id: int | None = None,
    day_number: int | None = None,
    editing: ItineraryItem | None = None,
    party_size: int = 1,
) -> AvailabilityMatch:
    """Resolve candidate slots for one activity on one date.

    Args:
        target_date: Calendar date the traveler is planning
        availability: Weekly catalog for the activity; None if not fetched yet
        items_on_day: Items already placed on that trip day
        experience_id: Activity identifier, echoed in the result
        day_number: When given, items from other days are ignored
        editing: Item being rescheduled; excluded from conflict checks
        party_size: Travelers that must fit in a slot's remaining capacity

    Returns:
        AvailabilityMatch with chronologically sorted, annotated slots
    """
    weekday = weekday_name(target_date)

    if availability is None:
        return AvailabilityMatch(
            experience_id=experience_id,
            weekday=weekday,
            status=AvailabilityStatus.not_loaded,
        )

    day = find_availability_day(availability, weekday)
    if day is None:
        return AvailabilityMatch(
            experience_id=experience_id,
            weekday=weekday,
            status=AvailabilityStatus.no_offering,
        )

    placed = [
        item for item in items_on_day if day_number is None or item.day_number == day_number
    ]
    exclude = editing.key if editing is not None else None

    slots = sort_time_slots(day.time_slots)
    candidates: list[SlotCandidate] = []
    for slot in slots:
        start = normalize_time(slot.start_time)
        end = normalize_time(slot.end_time)
        blocker = find_conflict(TimeRange(start=start, end=end), placed, exclude=exclude)
        has_capacity = slot_has_capacity(slot, party_size)
        candidates.append(
            SlotCandidate(
                start_time=start,
                end_time=end,
                slot_id=slot.slot_id,
                selectable=blocker is None and has_capacity,
                blocked_by=(
                    BlockingItem(key=blocker.key, name=blocker.experience_name)
                    if blocker is not None
                    else None
                ),
                is_current=(
                    editing is not None
                    and editing.start_time == start
                    and editing.end_time == end
                ),
                capacity_label=slot_capacity_label(slot.remaining_guests),
            )
        )

    return AvailabilityMatch(
        experience_id=experience_id,
        weekday=weekday,
        status=AvailabilityStatus.offered if candidates else AvailabilityStatus.no_offering,
        slots=candidates,
        bookable=has_bookable_slot(slots, party_size),
    )


def unavailable_match(target_date: date, experience_id: int | None = None) -> AvailabilityMatch:
    """Result for a failed catalog fetch; the caller may retry."""
    return AvailabilityMatch(
        experience_id=experience_id,
        weekday=weekday_name(target_date),
        status=AvailabilityStatus.unavailable,
        retryable=True,
    )
