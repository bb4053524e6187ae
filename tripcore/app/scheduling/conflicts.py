"""Time-overlap detection between wall-clock ranges on the same day."""

import logging
from collections.abc import Iterable

from tripcore.app.models.common import TimeRange
from tripcore.app.models.itinerary import ItemKey, ItineraryItem
from tripcore.app.scheduling.timeutils import MalformedTimeError, to_minutes

logger = logging.getLogger(__name__)


def overlaps(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Check whether two half-open ranges [start, end) intersect.

    Back-to-back ranges (one ends exactly when the other starts) do not
    overlap, so consecutive bookings are allowed.

    Raises:
        MalformedTimeError: If any bound is not a valid clock time
    """
    return to_minutes(start_a) < to_minutes(end_b) and to_minutes(start_b) < to_minutes(end_a)


def find_conflict(
    candidate: TimeRange,
    existing: Iterable[ItineraryItem],
    *,
    exclude: ItemKey | None = None,
) -> ItineraryItem | None:
    """Return the first existing item whose range overlaps the candidate.

    Args:
        candidate: Range being considered
        existing: Items already placed on the same day, scanned in order
        exclude: Key of an item to ignore (the one being edited)

    Returns:
        First overlapping item, or None
    """
    for item in existing:
        if exclude is not None and item.key == exclude:
            continue
        try:
            if overlaps(candidate.start, candidate.end, item.start_time, item.end_time):
                return item
        except MalformedTimeError:
            logger.warning(
                "Skipping item with malformed time in conflict scan",
                extra={"structured": {"experience_id": item.experience_id}},
            )
    return None


def find_conflicts(
    candidate: TimeRange,
    existing: Iterable[ItineraryItem],
    *,
    exclude: ItemKey | None = None,
) -> list[ItineraryItem]:
    """Return every existing item overlapping the candidate."""
    return [
        item
        for item in existing
        if (exclude is None or item.key != exclude)
        and overlaps(candidate.start, candidate.end, item.start_time, item.end_time)
    ]
