"""Draft endpoints - the host UI's view of one itinerary being assembled.

Every mutating endpoint runs a guarded draft transition. Accepted transitions
replace the stored draft; rejected ones leave it untouched and come back as
an HTTP error whose detail is the typed rejection.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, ValidationError

from tripcore.app.adapters.availability_cache import SessionAvailabilityCaches
from tripcore.app.adapters.base import CollaboratorUnavailableError, DraftNotReadyError
from tripcore.app.adapters.generation import GenerationClient
from tripcore.app.adapters.persistence import PersistenceClient
from tripcore.app.api.dependencies import (
    get_availability_caches,
    get_draft_repository,
    get_generation_client,
    get_persistence_client,
)
from tripcore.app.db.inmemory import InMemoryDraftRepository
from tripcore.app.models.availability import AvailabilityMatch, TimeSlot
from tripcore.app.models.budget import BudgetEstimate
from tripcore.app.models.common import TimeRange
from tripcore.app.models.generation import GenerationFailure, GenerationRequest
from tripcore.app.models.itinerary import (
    DaySummary,
    ExperienceSnapshot,
    ItemKey,
    ItineraryItem,
    TripBounds,
)
from tripcore.app.models.schedule import DayGap, ScheduleIssue, TravelCheck
from tripcore.app.models.violations import Rejection, RejectionCode
from tripcore.app.scheduling.draft import (
    ItineraryDraft,
    OrphanPolicy,
    Rejected,
    Transition,
    create_draft,
    draft_from_generated,
    select_slot,
)
from tripcore.app.scheduling.conflicts import find_conflicts
from tripcore.app.scheduling.gaps import check_travel_time, has_critical_conflicts
from tripcore.app.utils.metrics import PrometheusCollaboratorMetrics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["drafts"])

_metrics = PrometheusCollaboratorMetrics()

_REJECTION_STATUS = {
    RejectionCode.TIME_CONFLICT: status.HTTP_409_CONFLICT,
    RejectionCode.DUPLICATE_ITEM: status.HTTP_409_CONFLICT,
    RejectionCode.ITEM_LOCKED: status.HTTP_409_CONFLICT,
    RejectionCode.SLOT_UNAVAILABLE: status.HTTP_409_CONFLICT,
    RejectionCode.EMPTY_DRAFT: status.HTTP_409_CONFLICT,
    RejectionCode.ORPHANED_ITEMS: status.HTTP_409_CONFLICT,
    RejectionCode.DAY_OUT_OF_RANGE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RejectionCode.INVALID_TIME_RANGE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RejectionCode.ITEM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}

Repository = Annotated[InMemoryDraftRepository, Depends(get_draft_repository)]
AvailabilityCaches = Annotated[SessionAvailabilityCaches, Depends(get_availability_caches)]


class CreateDraftRequest(BaseModel):
    """Request body for POST /drafts."""

    start_date: date
    end_date: date
    traveler_count: int = Field(1, ge=1)
    title: str | None = None
    city: str | None = None
    notes: str | None = None


class GenerateDraftRequest(GenerationRequest):
    """Request body for POST /drafts/generate."""

    traveler_count: int = Field(1, ge=1)


class DraftResponse(BaseModel):
    """A stored draft plus the items its current dates leave out."""

    draft_id: str
    draft: ItineraryDraft
    orphaned_items: list[ItemKey] = Field(default_factory=list)
    days_by_experience: dict[int, list[int]] = Field(default_factory=dict)


class GeneratedDraftResponse(DraftResponse):
    """Response for POST /drafts/generate."""

    skipped: list[Rejection] = Field(default_factory=list)


class DaysResponse(BaseModel):
    """Response for GET /drafts/{draft_id}/days."""

    days: list[DaySummary]
    schedule_issues: list[ScheduleIssue]
    has_critical_conflicts: bool


class DayItemsResponse(BaseModel):
    """Response for GET /drafts/{draft_id}/days/{day_number}/items."""

    day: DaySummary
    items: list[ItineraryItem]
    gaps: list[DayGap]
    travel: list[TravelCheck]


class ConflictResponse(BaseModel):
    """Response for GET /drafts/{draft_id}/conflicts."""

    has_conflict: bool
    conflicting_item: ItineraryItem | None = None
    conflicting_items: list[ItineraryItem] = Field(default_factory=list)


class AddItemRequest(BaseModel):
    """Request body for POST /drafts/{draft_id}/items."""

    experience_id: int
    day_number: int
    start_time: str
    end_time: str
    custom_note: str | None = None
    slot_id: int | None = None
    snapshot: ExperienceSnapshot | None = None
    now: datetime | None = None

class SelectSlotRequest(BaseModel):
    """Request body for POST /drafts/{draft_id}/slots."""

    experience_id: int
    day_number: int
    slot: TimeSlot
    snapshot: ExperienceSnapshot | None = None
    editing: ItemKey | None = None
    custom_note: str | None = None
    now: datetime | None = None


class RescheduleRequest(BaseModel):
    """Request body for POST /drafts/{draft_id}/items/reschedule."""

    key: ItemKey
    start_time: str
    end_time: str
    slot_id: int | None = None
    now: datetime | None = None


class MoveRequest(BaseModel):
    """Request body for POST /drafts/{draft_id}/items/move."""

    key: ItemKey
    day_number: int
    now: datetime | None = None


class ChangeBoundsRequest(BaseModel):
    """Request body for PUT /drafts/{draft_id}/bounds."""

    start_date: date
    end_date: date
    orphan_policy: OrphanPolicy | None = None


class FinalizeResponse(BaseModel):
    """Response for POST /drafts/{draft_id}/finalize."""

    itinerary_id: int | str


def _load(repo: InMemoryDraftRepository, draft_id: uuid.UUID) -> ItineraryDraft:
    draft = repo.get(draft_id)
    if draft is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Draft not found")
    return draft


def _rejection_error(rejection: Rejection) -> HTTPException:
    _metrics.inc_rejection(rejection.code.value)
    return HTTPException(
        status_code=_REJECTION_STATUS.get(rejection.code, status.HTTP_409_CONFLICT),
        detail=rejection.model_dump(mode="json"),
    )


def _invalid_times(e: ValidationError) -> HTTPException:
    return _rejection_error(
        Rejection(
            code=RejectionCode.INVALID_TIME_RANGE,
            message="Times must be HH:MM and end after start.",
            details={"errors": [err["msg"] for err in e.errors()]},
        )
    )


def _commit(
    repo: InMemoryDraftRepository, draft_id: uuid.UUID, result: Transition
) -> DraftResponse:
    if isinstance(result, Rejected):
        raise _rejection_error(result.rejection)
    if result.changed:
        repo.replace(draft_id, result.draft)
    return _draft_response(draft_id, result.draft)


def _draft_response(draft_id: uuid.UUID, draft: ItineraryDraft) -> DraftResponse:
    return DraftResponse(
        draft_id=str(draft_id),
        draft=draft,
        orphaned_items=[item.key for item in draft.orphaned_items()],
        days_by_experience=draft.days_by_experience(),
    )


def _bounds(start_date: date, end_date: date) -> TripBounds:
    try:
        return TripBounds(start_date=start_date, end_date=end_date)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[err["msg"] for err in e.errors()],
        ) from e


@router.post("", response_model=DraftResponse, status_code=status.HTTP_201_CREATED)
async def create(request: CreateDraftRequest, repo: Repository) -> DraftResponse:
    """Start an empty draft for fixed trip dates."""
    draft = create_draft(
        _bounds(request.start_date, request.end_date),
        traveler_count=request.traveler_count,
        title=request.title,
        city=request.city,
        notes=request.notes,
    )
    draft_id = repo.create(draft)
    logger.info(
        "Draft created",
        extra={"structured": {"draft_id": str(draft_id), "total_days": draft.bounds.total_days}},
    )
    return _draft_response(draft_id, draft)


@router.post(
    "/generate", response_model=GeneratedDraftResponse, status_code=status.HTTP_201_CREATED
)
async def generate(
    request: GenerateDraftRequest,
    repo: Repository,
    generator: Annotated[GenerationClient, Depends(get_generation_client)],
) -> GeneratedDraftResponse:
    """Seed a draft from the itinerary generator.

    A no-results answer is returned as 422 with the generator's diagnostics
    so the traveler can relax their preferences.
    """
    criteria = GenerationRequest.model_validate(request.model_dump(exclude={"traveler_count"}))
    try:
        outcome = await generator.generate(criteria)
    except CollaboratorUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    if isinstance(outcome, GenerationFailure):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=outcome.model_dump(mode="json"),
        )

    draft, skipped = draft_from_generated(
        outcome, traveler_count=request.traveler_count, city=request.city
    )
    draft_id = repo.create(draft)
    logger.info(
        "Draft seeded from generator",
        extra={
            "structured": {
                "draft_id": str(draft_id),
                "items": len(draft.items),
                "skipped": len(skipped),
            }
        },
    )
    return GeneratedDraftResponse(
        draft_id=str(draft_id),
        draft=draft,
        orphaned_items=[item.key for item in draft.orphaned_items()],
        days_by_experience=draft.days_by_experience(),
        skipped=skipped,
    )


@router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft(draft_id: uuid.UUID, repo: Repository) -> DraftResponse:
    return _draft_response(draft_id, _load(repo, draft_id))


@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_draft(draft_id: uuid.UUID, repo: Repository, caches: AvailabilityCaches) -> None:
    """Abandon a draft along with its session availability."""
    _load(repo, draft_id)
    repo.delete(draft_id)
    caches.discard(draft_id)
    logger.info("Draft discarded", extra={"structured": {"draft_id": str(draft_id)}})


@router.get("/{draft_id}/days", response_model=DaysResponse)
async def list_days(draft_id: uuid.UUID, repo: Repository) -> DaysResponse:
    """Every trip day (empty ones included) and day-wide schedule issues."""
    draft = _load(repo, draft_id)
    return DaysResponse(
        days=draft.day_summaries(),
        schedule_issues=draft.schedule_issues(),
        has_critical_conflicts=has_critical_conflicts(draft.items),
    )


@router.get("/{draft_id}/days/{day_number}/items", response_model=DayItemsResponse)
async def day_items(draft_id: uuid.UUID, day_number: int, repo: Repository) -> DayItemsResponse:
    """One day's items in start order with the gaps between them."""
    draft = _load(repo, draft_id)
    if not draft.bounds.contains_day(day_number):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Day {day_number} is not part of this trip",
        )

    items = draft.items_for_day(day_number)
    summaries = draft.day_summaries()
    return DayItemsResponse(
        day=summaries[day_number - 1],
        items=items,
        gaps=draft.gaps_for_day(day_number),
        travel=[check_travel_time(a, b) for a, b in zip(items, items[1:])],
    )


@router.get("/{draft_id}/conflicts", response_model=ConflictResponse)
async def check_conflict(
    draft_id: uuid.UUID,
    repo: Repository,
    day_number: Annotated[int, Query(ge=1)],
    start_time: str,
    end_time: str,
    exclude_experience_id: int | None = None,
    exclude_start_time: str | None = None,
) -> ConflictResponse:
    """Would a proposed range collide with anything already on the day?"""
    draft = _load(repo, draft_id)
    try:
        candidate = TimeRange(start=start_time, end=end_time)
        exclude = (
            ItemKey(
                experience_id=exclude_experience_id,
                day_number=day_number,
                start_time=exclude_start_time,
            )
            if exclude_experience_id is not None and exclude_start_time is not None
            else None
        )
    except ValidationError as e:
        raise _invalid_times(e) from e

    blocker = draft.conflicts_for(candidate, day_number, exclude=exclude)
    overlapping = find_conflicts(candidate, draft.items_for_day(day_number), exclude=exclude)
    return ConflictResponse(
        has_conflict=blocker is not None,
        conflicting_item=blocker,
        conflicting_items=overlapping,
    )


@router.get("/{draft_id}/budget", response_model=BudgetEstimate)
async def budget(draft_id: uuid.UUID, repo: Repository) -> BudgetEstimate:
    return _load(repo, draft_id).budget_estimate()


@router.get("/{draft_id}/availability/{experience_id}", response_model=AvailabilityMatch)
async def availability(
    draft_id: uuid.UUID,
    experience_id: int,
    repo: Repository,
    caches: AvailabilityCaches,
    day_number: Annotated[int, Query(ge=1)],
    editing_start_time: str | None = None,
) -> AvailabilityMatch:
    """Slots for an activity on one trip day, annotated with conflicts.

    With ``editing_start_time`` the activity's existing item on that day is
    treated as being rescheduled and does not block its own slots.
    """
    draft = _load(repo, draft_id)
    if not draft.bounds.contains_day(day_number):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Day {day_number} is not part of this trip",
        )

    editing = None
    if editing_start_time is not None:
        try:
            key = ItemKey(
                experience_id=experience_id, day_number=day_number, start_time=editing_start_time
            )
        except ValidationError as e:
            raise _invalid_times(e) from e
        editing = draft.find(key)

    return await caches.for_session(draft_id).match(
        experience_id,
        draft.bounds.date_for_day(day_number),
        draft.items_for_day(day_number),
        day_number=day_number,
        editing=editing,
        party_size=draft.traveler_count,
    )


@router.post("/{draft_id}/items", response_model=DraftResponse)
async def add_item(draft_id: uuid.UUID, request: AddItemRequest, repo: Repository) -> DraftResponse:
    draft = _load(repo, draft_id)
    day_rejection = draft.day_rejection(request.day_number)
    if day_rejection is not None:
        raise _rejection_error(day_rejection)
    try:
        item = ItineraryItem(
            experience_id=request.experience_id,
            day_number=request.day_number,
            start_time=request.start_time,
            end_time=request.end_time,
            custom_note=request.custom_note,
            slot_id=request.slot_id,
            snapshot=request.snapshot or ExperienceSnapshot(),
        )
    except ValidationError as e:
        raise _invalid_times(e) from e
    return _commit(repo, draft_id, draft.add_item(item, now=request.now))


@router.post("/{draft_id}/slots", response_model=DraftResponse)
async def choose_slot(
    draft_id: uuid.UUID, request: SelectSlotRequest, repo: Repository
) -> DraftResponse:
    """Commit an availability slot as a new item, or reschedule ``editing`` to it."""
    draft = _load(repo, draft_id)
    result = select_slot(
        draft,
        experience_id=request.experience_id,
        day_number=request.day_number,
        slot=request.slot,
        snapshot=request.snapshot,
        editing=request.editing,
        custom_note=request.custom_note,
        now=request.now,
    )
    return _commit(repo, draft_id, result)


@router.delete("/{draft_id}/items", response_model=DraftResponse)
async def remove_item(
    draft_id: uuid.UUID,
    repo: Repository,
    experience_id: int,
    day_number: int,
    start_time: str,
) -> DraftResponse:
    """Remove an item. Removing an item that is not there succeeds."""
    draft = _load(repo, draft_id)
    try:
        key = ItemKey(experience_id=experience_id, day_number=day_number, start_time=start_time)
    except ValidationError as e:
        raise _invalid_times(e) from e
    return _commit(repo, draft_id, draft.remove_item(key))


@router.post("/{draft_id}/items/reschedule", response_model=DraftResponse)
async def reschedule_item(
    draft_id: uuid.UUID, request: RescheduleRequest, repo: Repository
) -> DraftResponse:
    draft = _load(repo, draft_id)
    result = draft.reschedule_item(
        request.key,
        request.start_time,
        request.end_time,
        slot_id=request.slot_id,
        now=request.now,
    )
    return _commit(repo, draft_id, result)


@router.post("/{draft_id}/items/move", response_model=DraftResponse)
async def move_item(draft_id: uuid.UUID, request: MoveRequest, repo: Repository) -> DraftResponse:
    draft = _load(repo, draft_id)
    return _commit(repo, draft_id, draft.move_item(request.key, request.day_number, now=request.now))


@router.put("/{draft_id}/bounds", response_model=DraftResponse)
async def change_bounds(
    draft_id: uuid.UUID, request: ChangeBoundsRequest, repo: Repository
) -> DraftResponse:
    """Change trip dates; items left past the last day follow the orphan policy."""
    draft = _load(repo, draft_id)
    bounds = _bounds(request.start_date, request.end_date)
    return _commit(repo, draft_id, draft.change_bounds(bounds, policy=request.orphan_policy))


@router.post("/{draft_id}/finalize", response_model=FinalizeResponse)
async def finalize(
    draft_id: uuid.UUID,
    repo: Repository,
    persistence: Annotated[PersistenceClient, Depends(get_persistence_client)],
    caches: AvailabilityCaches,
) -> FinalizeResponse:
    """Hand the finished draft to persistence in a single request.

    The stored draft is kept on failure so the traveler can retry.
    """
    draft = _load(repo, draft_id)
    try:
        blockers = draft.finalization_blockers()
        if blockers:
            raise DraftNotReadyError(blockers)
        itinerary_id = await persistence.save(draft)
    except DraftNotReadyError as e:
        for blocker in e.blockers:
            _metrics.inc_rejection(blocker.code.value)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=[b.model_dump(mode="json") for b in e.blockers],
        ) from e
    except (httpx.HTTPError, CollaboratorUnavailableError) as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Itinerary could not be saved. Please try again.",
        ) from e

    logger.info(
        "Draft finalized",
        extra={"structured": {"draft_id": str(draft_id), "itinerary_id": itinerary_id}},
    )
    repo.delete(draft_id)
    caches.discard(draft_id)
    return FinalizeResponse(itinerary_id=itinerary_id)
