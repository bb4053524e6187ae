"""Integration tests for the draft API routes."""

from collections.abc import Generator
from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from tripcore.app.adapters.availability_cache import SessionAvailabilityCaches
from tripcore.app.adapters.base import CatalogUnavailableError, CollaboratorUnavailableError
from tripcore.app.api.dependencies import (
    get_availability_caches,
    get_catalog_client,
    get_draft_repository,
    get_generation_client,
    get_persistence_client,
)
from tripcore.app.db.inmemory import InMemoryDraftRepository
from tripcore.app.main import app
from tripcore.app.models.availability import AvailabilityDay, TimeSlot
from tripcore.app.models.catalog import ExperienceListing
from tripcore.app.models.generation import GeneratedItinerary, GenerationFailure
from tripcore.app.models.itinerary import ItineraryItem


@pytest.fixture
def catalog() -> MagicMock:
    """Catalog client stub with Friday-only availability."""
    stub = MagicMock()
    stub.fetch_availability = AsyncMock(
        return_value=[
            AvailabilityDay(
                day_of_week="Friday",
                time_slots=(
                    TimeSlot(start_time="09:00:00", end_time="10:00:00", slot_id=1),
                    TimeSlot(start_time="13:00:00", end_time="14:00:00", slot_id=2, remaining_guests=0),
                ),
            )
        ]
    )
    stub.browse_experiences = AsyncMock(
        return_value=[ExperienceListing(id=1, title="Island Hopping")]
    )
    return stub


@pytest.fixture
def persistence() -> MagicMock:
    stub = MagicMock()
    stub.save = AsyncMock(return_value=555)
    return stub


@pytest.fixture
def generator() -> MagicMock:
    return MagicMock()


@pytest.fixture
def caches(catalog: MagicMock) -> SessionAvailabilityCaches:
    return SessionAvailabilityCaches(catalog, metrics=MagicMock(), call_logger=MagicMock())


@pytest.fixture
def client(
    catalog: MagicMock,
    persistence: MagicMock,
    generator: MagicMock,
    caches: SessionAvailabilityCaches,
) -> Generator[TestClient, None, None]:
    """Test client with fresh in-memory state and stubbed collaborators."""
    repo = InMemoryDraftRepository()
    app.dependency_overrides[get_draft_repository] = lambda: repo
    app.dependency_overrides[get_availability_caches] = lambda: caches
    app.dependency_overrides[get_catalog_client] = lambda: catalog
    app.dependency_overrides[get_persistence_client] = lambda: persistence
    app.dependency_overrides[get_generation_client] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(client: TestClient, **overrides: Any) -> str:
    # 2030-05-01 is a Wednesday; day 3 is Friday
    body = {"start_date": "2030-05-01", "end_date": "2030-05-03", "title": "Cebu", **overrides}
    response = client.post("/drafts", json=body)
    assert response.status_code == 201
    draft_id: str = response.json()["draft_id"]
    return draft_id


def _add(client: TestClient, draft_id: str, **item: Any) -> httpx.Response:
    return client.post(f"/drafts/{draft_id}/items", json=item)


def test_create_and_get_draft(client: TestClient) -> None:
    """Test a new draft is empty and spans three days."""
    draft_id = _create(client)

    response = client.get(f"/drafts/{draft_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["draft"]["bounds"]["total_days"] == 3
    assert data["draft"]["items"] == []


def test_create_rejects_inverted_dates(client: TestClient) -> None:
    """Test end before start is refused."""
    response = client.post("/drafts", json={"start_date": "2030-05-03", "end_date": "2030-05-01"})

    assert response.status_code == 422


def test_unknown_draft_is_404(client: TestClient) -> None:
    """Test unknown ids are not found."""
    assert client.get("/drafts/00000000-0000-0000-0000-000000000000").status_code == 404


def test_conflicting_add_returns_409_with_rejection(client: TestClient) -> None:
    """Test overlapping items are refused with the blocking key."""
    draft_id = _create(client)
    first = _add(
        client,
        draft_id,
        experience_id=7,
        day_number=1,
        start_time="09:00",
        end_time="10:00",
        snapshot={"name": "Island Hopping"},
    )
    assert first.status_code == 200

    response = _add(client, draft_id, experience_id=9, day_number=1, start_time="09:30", end_time="10:30")

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["code"] == "time_conflict"
    assert detail["conflicting_key"]["experience_id"] == 7
    assert detail["message"] == 'Conflicts with "Island Hopping"'
    assert len(client.get(f"/drafts/{draft_id}").json()["draft"]["items"]) == 1


def test_add_out_of_range_and_invalid_times(client: TestClient) -> None:
    """Test range and time validation map to 422."""
    draft_id = _create(client)

    out_of_range = _add(client, draft_id, experience_id=1, day_number=4, start_time="09:00", end_time="10:00")
    inverted = _add(client, draft_id, experience_id=1, day_number=1, start_time="11:00", end_time="10:00")

    assert out_of_range.status_code == 422
    assert out_of_range.json()["detail"]["code"] == "day_out_of_range"
    assert inverted.status_code == 422
    assert inverted.json()["detail"]["code"] == "invalid_time_range"


def test_days_and_day_items(client: TestClient) -> None:
    """Test day summaries and per-day gaps."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=2, start_time="09:00", end_time="10:00")
    _add(client, draft_id, experience_id=2, day_number=2, start_time="10:10", end_time="11:00")

    days = client.get(f"/drafts/{draft_id}/days").json()
    items = client.get(f"/drafts/{draft_id}/days/2/items").json()

    assert [d["is_empty"] for d in days["days"]] == [True, False, True]
    assert days["has_critical_conflicts"] is False
    assert days["schedule_issues"][0]["gap"]["kind"] == "tight"
    assert [i["experience_id"] for i in items["items"]] == [1, 2]
    assert items["gaps"][0]["gap"]["message"] == "Only 10 min gap - might be tight!"
    assert client.get(f"/drafts/{draft_id}/days/9/items").status_code == 404


def test_conflict_probe(client: TestClient) -> None:
    """Test the conflict query reports the blocking item."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")

    hit = client.get(
        f"/drafts/{draft_id}/conflicts",
        params={"day_number": 1, "start_time": "09:30", "end_time": "10:30"},
    ).json()
    miss = client.get(
        f"/drafts/{draft_id}/conflicts",
        params={"day_number": 1, "start_time": "10:00", "end_time": "11:00"},
    ).json()

    assert hit["has_conflict"] is True
    assert hit["conflicting_item"]["experience_id"] == 1
    assert miss["has_conflict"] is False


def test_budget(client: TestClient) -> None:
    """Test mixed exact and estimated pricing."""
    draft_id = _create(client, traveler_count=2)
    _add(
        client,
        draft_id,
        experience_id=1,
        day_number=1,
        start_time="09:00",
        end_time="10:00",
        snapshot={"price": "500", "unit": "entry"},
    )
    _add(
        client,
        draft_id,
        experience_id=2,
        day_number=1,
        start_time="11:00",
        end_time="12:00",
        snapshot={"price_estimate": "₱200-400", "unit": "booking"},
    )

    data = client.get(f"/drafts/{draft_id}/budget").json()

    assert float(data["minimum"]) == 1200
    assert float(data["maximum"]) == 1400
    assert data["has_estimated_ranges"] is True


def test_availability_for_day(client: TestClient, catalog: MagicMock) -> None:
    """Test Friday slots on day 3, none on Wednesday, fetched once."""
    draft_id = _create(client)

    friday = client.get(f"/drafts/{draft_id}/availability/4", params={"day_number": 3}).json()
    wednesday = client.get(f"/drafts/{draft_id}/availability/4", params={"day_number": 1}).json()

    assert friday["status"] == "offered"
    assert [s["start_time"] for s in friday["slots"]] == ["09:00", "13:00"]
    assert [s["selectable"] for s in friday["slots"]] == [True, False]
    assert friday["slots"][1]["capacity_label"] == "Full"
    assert wednesday["status"] == "no_offering"
    assert wednesday["slots"] == []
    catalog.fetch_availability.assert_awaited_once_with(4)


def test_availability_unavailable_is_retryable(client: TestClient, catalog: MagicMock) -> None:
    """Test a failed catalog fetch is reported, not raised."""
    catalog.fetch_availability.side_effect = CatalogUnavailableError("down")
    draft_id = _create(client)

    data = client.get(f"/drafts/{draft_id}/availability/4", params={"day_number": 3}).json()

    assert data["status"] == "unavailable"
    assert data["retryable"] is True


def test_choose_slot(client: TestClient) -> None:
    """Test committing a slot adds an item with its times."""
    draft_id = _create(client)

    response = client.post(
        f"/drafts/{draft_id}/slots",
        json={
            "experience_id": 4,
            "day_number": 3,
            "slot": {"start_time": "09:00:00", "end_time": "10:00:00", "slot_id": 1},
            "snapshot": {"name": "Kayak"},
        },
    )
    full = client.post(
        f"/drafts/{draft_id}/slots",
        json={
            "experience_id": 5,
            "day_number": 3,
            "slot": {"start_time": "13:00", "end_time": "14:00", "remaining_guests": 0},
        },
    )

    assert response.status_code == 200
    assert response.json()["draft"]["items"][0]["slot_id"] == 1
    assert full.status_code == 409
    assert full.json()["detail"]["code"] == "slot_unavailable"


def test_remove_is_idempotent(client: TestClient) -> None:
    """Test deleting twice succeeds both times."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")
    params = {"experience_id": 1, "day_number": 1, "start_time": "09:00"}

    first = client.delete(f"/drafts/{draft_id}/items", params=params)
    second = client.delete(f"/drafts/{draft_id}/items", params=params)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["draft"]["items"] == []


def test_reschedule_and_move(client: TestClient) -> None:
    """Test reschedule conflicts are refused and moves succeed."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")
    _add(client, draft_id, experience_id=2, day_number=1, start_time="11:00", end_time="12:00")
    key = {"experience_id": 1, "day_number": 1, "start_time": "09:00"}

    clash = client.post(
        f"/drafts/{draft_id}/items/reschedule",
        json={"key": key, "start_time": "10:30", "end_time": "11:30"},
    )
    moved = client.post(f"/drafts/{draft_id}/items/move", json={"key": key, "day_number": 2})
    missing = client.post(f"/drafts/{draft_id}/items/move", json={"key": key, "day_number": 3})

    assert clash.status_code == 409
    assert moved.status_code == 200
    assert sorted(i["day_number"] for i in moved.json()["draft"]["items"]) == [1, 2]
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "item_not_found"


def test_locked_item_cannot_be_rescheduled(client: TestClient) -> None:
    """Test an item in progress is locked when the caller passes now."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")

    response = client.post(
        f"/drafts/{draft_id}/items/reschedule",
        json={
            "key": {"experience_id": 1, "day_number": 1, "start_time": "09:00"},
            "start_time": "12:00",
            "end_time": "13:00",
            "now": "2030-05-01T09:15:00",
        },
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "item_locked"


def test_shrink_bounds_then_finalize_is_blocked(client: TestClient, persistence: MagicMock) -> None:
    """Test orphaned items are reported and block finalization."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=3, start_time="09:00", end_time="10:00")

    resized = client.put(
        f"/drafts/{draft_id}/bounds", json={"start_date": "2030-05-01", "end_date": "2030-05-02"}
    )
    finalize = client.post(f"/drafts/{draft_id}/finalize")

    assert resized.status_code == 200
    assert resized.json()["orphaned_items"][0]["experience_id"] == 1
    assert finalize.status_code == 409
    assert finalize.json()["detail"][0]["code"] == "orphaned_items"
    persistence.save.assert_not_called()


def test_finalize_saves_and_returns_id(client: TestClient, persistence: MagicMock) -> None:
    """Test a ready draft is handed to persistence."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")

    response = client.post(f"/drafts/{draft_id}/finalize")

    assert response.status_code == 200
    assert response.json() == {"itinerary_id": 555}
    persistence.save.assert_awaited_once()


def test_finalize_failure_keeps_draft(client: TestClient, persistence: MagicMock) -> None:
    """Test a persistence outage leaves the draft for a retry."""
    persistence.save.side_effect = httpx.ConnectError("refused")
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")

    response = client.post(f"/drafts/{draft_id}/finalize")

    assert response.status_code == 502
    assert client.get(f"/drafts/{draft_id}").status_code == 200


def test_generate_seeds_draft(client: TestClient, generator: MagicMock) -> None:
    """Test a generated itinerary becomes a draft, skipping conflicts."""
    generator.generate = AsyncMock(
        return_value=GeneratedItinerary(
            start_date=date(2030, 5, 1),
            end_date=date(2030, 5, 2),
            title="Generated",
            items=[
                ItineraryItem(experience_id=1, day_number=1, start_time="09:00", end_time="10:00"),
                ItineraryItem(experience_id=2, day_number=1, start_time="09:30", end_time="10:30"),
            ],
        )
    )

    response = client.post(
        "/drafts/generate",
        json={"city": "Cebu", "start_date": "2030-05-01", "end_date": "2030-05-02", "traveler_count": 2},
    )

    assert response.status_code == 201
    data = response.json()
    assert len(data["draft"]["items"]) == 1
    assert data["draft"]["traveler_count"] == 2
    assert data["skipped"][0]["code"] == "time_conflict"


def test_generate_no_results_returns_diagnostics(client: TestClient, generator: MagicMock) -> None:
    """Test a no-results answer is passed through with 422."""
    generator.generate = AsyncMock(
        return_value=GenerationFailure(message="No experiences match your preferences")
    )

    response = client.post(
        "/drafts/generate",
        json={"city": "Cebu", "start_date": "2030-05-01", "end_date": "2030-05-02"},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "no_results"


def test_browse_experiences(client: TestClient, catalog: MagicMock) -> None:
    """Test catalog listings pass through with the category filter."""
    response = client.get("/experiences", params={"category": "Tours"})

    assert response.status_code == 200
    assert response.json()[0]["title"] == "Island Hopping"
    catalog.browse_experiences.assert_awaited_once_with("Tours")


@pytest.mark.parametrize("day_number", [0, -1])
def test_day_below_one_is_out_of_range(client: TestClient, day_number: int) -> None:
    """Test days before the first trip day get the day-range reason on add and move."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")
    key = {"experience_id": 1, "day_number": 1, "start_time": "09:00"}

    added = _add(
        client, draft_id, experience_id=2, day_number=day_number, start_time="11:00", end_time="12:00"
    )
    moved = client.post(f"/drafts/{draft_id}/items/move", json={"key": key, "day_number": day_number})

    assert added.status_code == 422
    assert added.json()["detail"]["code"] == "day_out_of_range"
    assert moved.status_code == 422
    assert moved.json()["detail"]["code"] == "day_out_of_range"
    assert client.get(f"/drafts/{draft_id}").json()["draft"]["items"][0]["day_number"] == 1


def test_add_to_past_day_is_locked(client: TestClient) -> None:
    """Test a day that has already ended takes no new items when now is given."""
    draft_id = _create(client)

    late = _add(
        client,
        draft_id,
        experience_id=1,
        day_number=1,
        start_time="09:00",
        end_time="10:00",
        now="2030-05-02T08:00:00",
    )
    ahead = _add(
        client,
        draft_id,
        experience_id=1,
        day_number=2,
        start_time="09:00",
        end_time="10:00",
        now="2030-05-02T08:00:00",
    )

    assert late.status_code == 409
    assert late.json()["detail"]["code"] == "item_locked"
    assert ahead.status_code == 200


def test_conflict_query_lists_every_overlap(client: TestClient) -> None:
    """Test all overlapping items are listed alongside the first blocker."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")
    _add(client, draft_id, experience_id=2, day_number=1, start_time="10:00", end_time="11:00")

    data = client.get(
        f"/drafts/{draft_id}/conflicts",
        params={"day_number": 1, "start_time": "09:30", "end_time": "10:30"},
    ).json()

    assert data["conflicting_item"]["experience_id"] == 1
    assert [i["experience_id"] for i in data["conflicting_items"]] == [1, 2]


def test_draft_response_lists_days_per_experience(client: TestClient) -> None:
    """Test the draft view reports which days each activity is on."""
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")
    response = _add(client, draft_id, experience_id=1, day_number=3, start_time="09:00", end_time="10:00")

    assert response.json()["days_by_experience"] == {"1": [1, 3]}


def test_each_draft_fetches_availability_independently(
    client: TestClient, catalog: MagicMock, caches: SessionAvailabilityCaches
) -> None:
    """Test availability is cached per draft, not shared between drafts."""
    first = _create(client)
    second = _create(client)

    client.get(f"/drafts/{first}/availability/4", params={"day_number": 3})
    client.get(f"/drafts/{first}/availability/4", params={"day_number": 3})
    data = client.get(f"/drafts/{second}/availability/4", params={"day_number": 3}).json()

    assert catalog.fetch_availability.await_count == 2
    assert data["bookable"] is True
    assert len(caches) == 2


def test_finalize_and_discard_drop_session_availability(
    client: TestClient, caches: SessionAvailabilityCaches
) -> None:
    """Test a draft's availability cache goes away with the draft."""
    saved = _create(client)
    abandoned = _create(client)
    _add(client, saved, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")
    client.get(f"/drafts/{saved}/availability/4", params={"day_number": 3})
    client.get(f"/drafts/{abandoned}/availability/4", params={"day_number": 3})

    assert client.post(f"/drafts/{saved}/finalize").status_code == 200
    assert len(caches) == 1
    assert client.delete(f"/drafts/{abandoned}").status_code == 204
    assert len(caches) == 0
    assert client.get(f"/drafts/{abandoned}").status_code == 404
    assert client.delete(f"/drafts/{abandoned}").status_code == 404


def test_finalize_with_unusable_reply_keeps_draft(client: TestClient, persistence: MagicMock) -> None:
    """Test a save reply without an itinerary id is a 502 and the draft stays."""
    persistence.save.side_effect = CollaboratorUnavailableError("no itinerary id")
    draft_id = _create(client)
    _add(client, draft_id, experience_id=1, day_number=1, start_time="09:00", end_time="10:00")

    response = client.post(f"/drafts/{draft_id}/finalize")

    assert response.status_code == 502
    assert client.get(f"/drafts/{draft_id}").status_code == 200
