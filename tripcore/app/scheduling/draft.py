"""Itinerary draft - the owning aggregate for a trip being assembled.

The draft is an immutable value. Every mutating operation takes the current
draft and returns either ``Accepted`` with a new draft that satisfies the
invariants, or ``Rejected`` with a typed reason. The original draft is never
changed, so a refused operation leaves nothing half-applied.

Invariants checked at each transition:
- every item's day number lies within the trip
- no two items share an identity (experience, day, start time)
- no two items on the same day have overlapping [start, end) ranges
"""

import logging
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tripcore.app.config import get_settings
from tripcore.app.models.availability import SlotCandidate, TimeSlot
from tripcore.app.models.budget import BudgetEstimate
from tripcore.app.models.common import TimeRange
from tripcore.app.models.generation import GeneratedItinerary
from tripcore.app.models.itinerary import (
    DaySummary,
    ExperienceSnapshot,
    ItemKey,
    ItemTiming,
    ItineraryItem,
    TripBounds,
)
from tripcore.app.models.schedule import DayGap, GapThresholds, ScheduleIssue
from tripcore.app.models.violations import Rejection, RejectionCode
from tripcore.app.scheduling import days
from tripcore.app.scheduling.availability import slot_has_capacity
from tripcore.app.scheduling.budget import estimate_budget
from tripcore.app.scheduling.conflicts import find_conflict
from tripcore.app.scheduling.gaps import day_gaps, schedule_issues, sort_by_start
from tripcore.app.scheduling.timeutils import MalformedTimeError, format_time_range, normalize_time

logger = logging.getLogger(__name__)

OrphanPolicy = Literal["flag", "prune", "preserve"]


class ItineraryDraft(BaseModel):
    """Trip bounds plus the unordered collection of placed items."""

    model_config = ConfigDict(frozen=True)

    bounds: TripBounds
    items: tuple[ItineraryItem, ...] = ()
    traveler_count: int = Field(1, ge=1)
    title: str | None = None
    city: str | None = None
    notes: str | None = None

    # --- Lookups and projections -------------------------------------------

    def find(self, key: ItemKey) -> ItineraryItem | None:
        for item in self.items:
            if item.key == key:
                return item
        return None

    def items_for_day(self, day_number: int) -> list[ItineraryItem]:
        """Items on one day in start-time order."""
        return sort_by_start(item for item in self.items if item.day_number == day_number)

    def day_summaries(self) -> list[DaySummary]:
        return days.day_summaries(self.bounds, self.items)

    def conflicts_for(
        self,
        candidate: TimeRange,
        day_number: int,
        exclude: ItemKey | None = None,
    ) -> ItineraryItem | None:
        """First item on the day that a candidate range would collide with."""
        same_day = [item for item in self.items if item.day_number == day_number]
        return find_conflict(candidate, same_day, exclude=exclude)

    def budget_estimate(self) -> BudgetEstimate:
        return estimate_budget(self.items, self.traveler_count)

    def gaps_for_day(
        self, day_number: int, thresholds: GapThresholds | None = None
    ) -> list[DayGap]:
        return day_gaps(self.items_for_day(day_number), thresholds)

    def schedule_issues(self, thresholds: GapThresholds | None = None) -> list[ScheduleIssue]:
        return schedule_issues(self.items, thresholds)

    def days_by_experience(self) -> dict[int, list[int]]:
        return days.days_by_experience(self.items)

    def orphaned_items(self) -> list[ItineraryItem]:
        """Items whose day no longer falls inside the trip."""
        return [item for item in self.items if not self.bounds.contains_day(item.day_number)]

    def finalization_blockers(self, policy: OrphanPolicy | None = None) -> list[Rejection]:
        """Reasons the draft cannot be handed to persistence yet."""
        policy = policy or get_settings().orphan_policy
        blockers: list[Rejection] = []
        if not self.items:
            blockers.append(
                Rejection(
                    code=RejectionCode.EMPTY_DRAFT,
                    message="Add at least one experience before saving.",
                )
            )
        orphaned = self.orphaned_items()
        if orphaned and policy == "flag":
            blockers.append(
                Rejection(
                    code=RejectionCode.ORPHANED_ITEMS,
                    message=(
                        f"{len(orphaned)} item(s) fall outside the trip dates. "
                        "Move or remove them before saving."
                    ),
                    details={"keys": [item.key.model_dump() for item in orphaned]},
                )
            )
        return blockers

    def to_payload(self) -> dict[str, Any]:
        """Body handed to the persistence collaborator."""
        return {
            "start_date": self.bounds.start_date.isoformat(),
            "end_date": self.bounds.end_date.isoformat(),
            "title": self.title,
            "notes": self.notes,
            "city": self.city,
            "traveler_count": self.traveler_count,
            "items": [
                {
                    "experience_id": item.experience_id,
                    "day_number": item.day_number,
                    "start_time": item.start_time,
                    "end_time": item.end_time,
                    "custom_note": item.custom_note,
                    "slot_id": item.slot_id,
                }
                for item in sorted(self.items, key=lambda i: (i.day_number, i.start_time))
            ],
        }

    # --- Guarded transitions -----------------------------------------------

    def day_rejection(self, day_number: int) -> Rejection | None:
        """Rejection for a day number outside the trip, or None if it fits."""
        if self.bounds.contains_day(day_number):
            return None
        return Rejection(
            code=RejectionCode.DAY_OUT_OF_RANGE,
            message=f"Day {day_number} is outside this {self.bounds.total_days}-day trip.",
            details={"day_number": day_number, "total_days": self.bounds.total_days},
        )

    def _check_placement(self, item: ItineraryItem, exclude: ItemKey | None = None) -> Rejection | None:
        day_rejection = self.day_rejection(item.day_number)
        if day_rejection is not None:
            return day_rejection

        existing = self.find(item.key)
        if existing is not None and item.key != exclude:
            return Rejection(
                code=RejectionCode.DUPLICATE_ITEM,
                message=f'"{existing.experience_name}" is already scheduled at that time.',
                conflicting_key=existing.key,
            )

        blocker = self.conflicts_for(item.time_range, item.day_number, exclude=exclude)
        if blocker is not None:
            return Rejection(
                code=RejectionCode.TIME_CONFLICT,
                message=f'Conflicts with "{blocker.experience_name}"',
                conflicting_key=blocker.key,
                details={
                    "start_time": blocker.start_time,
                    "end_time": blocker.end_time,
                    "display": format_time_range(blocker.start_time, blocker.end_time),
                },
            )
        return None

    def add_item(self, item: ItineraryItem, *, now: datetime | None = None) -> "Transition":
        """Place a new item on the trip.

        With ``now`` given, days that have already ended are locked.
        """
        rejection = self._check_placement(item)
        if rejection is None and now is not None and days.is_day_past(
            self.bounds, item.day_number, now
        ):
            rejection = Rejection(
                code=RejectionCode.ITEM_LOCKED,
                message=f"Day {item.day_number} has already passed.",
                details={"day_number": item.day_number},
            )
        if rejection is not None:
            return _reject("add_item", rejection)
        return Accepted(draft=self.model_copy(update={"items": (*self.items, item)}))

    def remove_item(self, key: ItemKey) -> "Transition":
        """Remove an item. Removing an absent item is a no-op."""
        remaining = tuple(item for item in self.items if item.key != key)
        if len(remaining) == len(self.items):
            return Accepted(draft=self, changed=False)
        return Accepted(draft=self.model_copy(update={"items": remaining}))

    def _replace(
        self,
        key: ItemKey,
        updates: dict[str, Any],
        operation: str,
        now: datetime | None,
    ) -> "Transition":
        current = self.find(key)
        if current is None:
            return _reject(
                operation,
                Rejection(
                    code=RejectionCode.ITEM_NOT_FOUND,
                    message="That item is no longer in the itinerary.",
                    details={"key": key.model_dump()},
                ),
            )

        if now is not None and self.bounds.contains_day(current.day_number):
            timing = days.item_timing(current, self.bounds, now)
            if timing is not ItemTiming.upcoming:
                message = (
                    "This activity is currently in progress and cannot be edited."
                    if timing is ItemTiming.ongoing
                    else "This activity has already occurred and cannot be edited."
                )
                return _reject(
                    operation,
                    Rejection(code=RejectionCode.ITEM_LOCKED, message=message, conflicting_key=key),
                )

        if "day_number" in updates:
            day_rejection = self.day_rejection(updates["day_number"])
            if day_rejection is not None:
                return _reject(operation, day_rejection)

        try:
            updated = ItineraryItem(**{**current.model_dump(), **updates})
        except ValidationError as e:
            return _reject(
                operation,
                Rejection(
                    code=RejectionCode.INVALID_TIME_RANGE,
                    message="End time must be after start time.",
                    details={"errors": [err["msg"] for err in e.errors()]},
                ),
            )

        rejection = self._check_placement(updated, exclude=key)
        if rejection is not None:
            return _reject(operation, rejection)

        items = tuple(updated if item.key == key else item for item in self.items)
        return Accepted(draft=self.model_copy(update={"items": items}))

    def reschedule_item(
        self,
        key: ItemKey,
        start_time: str,
        end_time: str,
        *,
        slot_id: int | None = None,
        now: datetime | None = None,
    ) -> "Transition":
        """Give an item new times on the same day.

        Checked against every other item on that day, as if the item were
        removed and added again.
        """
        updates: dict[str, Any] = {"start_time": start_time, "end_time": end_time}
        if slot_id is not None:
            updates["slot_id"] = slot_id
        return self._replace(key, updates, "reschedule_item", now)

    def move_item(
        self, key: ItemKey, day_number: int, *, now: datetime | None = None
    ) -> "Transition":
        """Move an item to another trip day, keeping its times."""
        return self._replace(key, {"day_number": day_number}, "move_item", now)

    def change_bounds(
        self, bounds: TripBounds, policy: OrphanPolicy | None = None
    ) -> "Transition":
        """Change trip dates.

        Items beyond the new last day are handled by the orphan policy:
        ``prune`` drops them, ``flag`` keeps them but blocks finalization,
        ``preserve`` keeps them silently.
        """
        policy = policy or get_settings().orphan_policy
        resized = self.model_copy(update={"bounds": bounds})
        orphaned = resized.orphaned_items()

        if orphaned:
            logger.info(
                "Trip bounds change left items outside the trip",
                extra={
                    "structured": {
                        "policy": policy,
                        "orphaned": len(orphaned),
                        "total_days": bounds.total_days,
                    }
                },
            )
        if orphaned and policy == "prune":
            kept = tuple(item for item in self.items if bounds.contains_day(item.day_number))
            resized = resized.model_copy(update={"items": kept})

        return Accepted(draft=resized)


class Accepted(BaseModel):
    """Transition applied; ``draft`` satisfies every invariant."""

    outcome: Literal["accepted"] = "accepted"
    draft: ItineraryDraft
    changed: bool = True


class Rejected(BaseModel):
    """Transition refused; the input draft stands."""

    outcome: Literal["rejected"] = "rejected"
    rejection: Rejection


Transition = Accepted | Rejected


def _reject(operation: str, rejection: Rejection) -> Rejected:
    logger.info(
        f"Draft {operation} rejected: {rejection.code.value}",
        extra={
            "structured": {
                "operation": operation,
                "code": rejection.code.value,
                "conflicting_key": (
                    rejection.conflicting_key.model_dump() if rejection.conflicting_key else None
                ),
            }
        },
    )
    return Rejected(rejection=rejection)


def create_draft(
    bounds: TripBounds,
    *,
    traveler_count: int = 1,
    title: str | None = None,
    city: str | None = None,
    notes: str | None = None,
) -> ItineraryDraft:
    """Start an empty draft once the trip dates are fixed."""
    return ItineraryDraft(
        bounds=bounds,
        traveler_count=traveler_count,
        title=title,
        city=city,
        notes=notes,
    )


def select_slot(
    draft: ItineraryDraft,
    *,
    experience_id: int,
    day_number: int,
    slot: TimeSlot | SlotCandidate,
    snapshot: ExperienceSnapshot | None = None,
    editing: ItemKey | None = None,
    custom_note: str | None = None,
    now: datetime | None = None,
) -> Transition:
    """Turn a chosen availability slot into an item and commit it.

    With ``editing`` set, the existing item is rescheduled to the slot's
    times; otherwise a new item is added.
    """
    if isinstance(slot, TimeSlot) and not slot_has_capacity(slot, draft.traveler_count):
        return _reject(
            "select_slot",
            Rejection(
                code=RejectionCode.SLOT_UNAVAILABLE,
                message="This time slot does not have room for your group.",
                details={"remaining_guests": slot.remaining_guests},
            ),
        )
    if isinstance(slot, SlotCandidate) and not slot.selectable and slot.blocked_by is None:
        return _reject(
            "select_slot",
            Rejection(
                code=RejectionCode.SLOT_UNAVAILABLE,
                message="This time slot is no longer available.",
            ),
        )

    try:
        start = normalize_time(slot.start_time)
        end = normalize_time(slot.end_time)
    except MalformedTimeError as e:
        return _reject(
            "select_slot",
            Rejection(code=RejectionCode.INVALID_TIME_RANGE, message=str(e)),
        )

    if editing is not None:
        return draft.reschedule_item(editing, start, end, slot_id=slot.slot_id, now=now)

    day_rejection = draft.day_rejection(day_number)
    if day_rejection is not None:
        return _reject("select_slot", day_rejection)

    try:
        item = ItineraryItem(
            experience_id=experience_id,
            day_number=day_number,
            start_time=start,
            end_time=end,
            slot_id=slot.slot_id,
            custom_note=custom_note,
            snapshot=snapshot or ExperienceSnapshot(),
        )
    except ValidationError as e:
        return _reject(
            "select_slot",
            Rejection(
                code=RejectionCode.INVALID_TIME_RANGE,
                message="End time must be after start time.",
                details={"errors": [err["msg"] for err in e.errors()]},
            ),
        )
    return draft.add_item(item, now=now)


def draft_from_generated(
    generated: GeneratedItinerary,
    *,
    traveler_count: int = 1,
    city: str | None = None,
) -> tuple[ItineraryDraft, list[Rejection]]:
    """Seed a draft from a generated itinerary.

    Items that would break an invariant are left out and reported instead of
    failing the whole import.
    """
    draft = create_draft(
        TripBounds(start_date=generated.start_date, end_date=generated.end_date),
        traveler_count=traveler_count,
        title=generated.title,
        city=city,
        notes=generated.notes,
    )
    rejections: list[Rejection] = []
    for item in generated.items:
        result = draft.add_item(item)
        if isinstance(result, Rejected):
            rejections.append(result.rejection)
        else:
            draft = result.draft
    return draft, rejections
