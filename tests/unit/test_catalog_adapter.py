"""Tests for the experience catalog adapter."""

from collections.abc import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from tripcore.app.adapters.base import CatalogUnavailableError
from tripcore.app.adapters.catalog import CatalogClient

BASE_URL = "http://catalog.test"


def _client(
    handler: Callable[[httpx.Request], httpx.Response], metrics: MagicMock | None = None
) -> tuple[CatalogClient, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CatalogClient(BASE_URL, timeout_ms=1000, client=http, metrics=metrics or MagicMock()), http


@pytest.mark.asyncio
async def test_fetch_availability_parses_days() -> None:
    """Test the availability body maps onto AvailabilityDay models."""
    body = {
        "availability": [
            {
                "day_of_week": "Friday",
                "time_slots": [
                    {
                        "slot_id": 1,
                        "availability_id": 9,
                        "start_time": "09:00:00",
                        "end_time": "10:00:00",
                        "remaining_guests": 4,
                    }
                ],
            },
            {"day_of_week": "Saturday", "time_slots": None},
        ]
    }
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=body)

    catalog, http = _client(handler)
    days = await catalog.fetch_availability(42)

    assert seen == [f"{BASE_URL}/experience/42/availability"]
    assert [d.day_of_week for d in days] == ["Friday", "Saturday"]
    assert days[0].time_slots[0].remaining_guests == 4
    assert days[1].time_slots == ()

    await http.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"availability": None}, [], "nope"])
async def test_fetch_availability_malformed_body_is_empty(body: object) -> None:
    """Test absent or malformed availability yields no days."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    catalog, http = _client(handler)

    assert await catalog.fetch_availability(1) == []

    await http.aclose()


@pytest.mark.asyncio
async def test_fetch_availability_http_error_raises_unavailable() -> None:
    """Test server errors surface as CatalogUnavailableError and are counted."""
    metrics = MagicMock()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "down"})

    catalog, http = _client(handler, metrics)

    with pytest.raises(CatalogUnavailableError):
        await catalog.fetch_availability(1)

    metrics.record_latency.assert_called_once()
    assert metrics.record_latency.call_args.args[:2] == ("catalog", "http_error")
    metrics.inc_error.assert_called_once_with("catalog", "status_503")

    await http.aclose()


@pytest.mark.asyncio
async def test_fetch_availability_timeout_raises_unavailable() -> None:
    """Test timeouts are recorded and raised as unavailable."""
    metrics = MagicMock()

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    catalog, http = _client(handler, metrics)

    with pytest.raises(CatalogUnavailableError):
        await catalog.fetch_availability(1)

    metrics.inc_error.assert_called_once_with("catalog", "timeout")

    await http.aclose()


@pytest.mark.asyncio
async def test_browse_experiences_passes_category_and_skips_bad_entries() -> None:
    """Test listings are filtered by category and malformed ones dropped."""
    captured: dict[str, str | None] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["category"] = request.url.params.get("category")
        return httpx.Response(
            200,
            json=[
                {"id": 1, "title": "Island Hopping", "price": "2500"},
                {"title": "missing id"},
                {"id": 2, "title": "Food Crawl", "price_estimate": "₱300-500"},
            ],
        )

    catalog, http = _client(handler)
    listings = await catalog.browse_experiences("Tours")

    assert captured["category"] == "Tours"
    assert [listing.id for listing in listings] == [1, 2]

    await http.aclose()
