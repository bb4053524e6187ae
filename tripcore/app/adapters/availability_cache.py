"""Session cache for activity availability.

One editing session fetches each activity's weekly availability at most once.
Concurrent requests for the same activity share a single in-flight fetch.
Failures are not cached, so asking again is the retry.
"""

import asyncio
import logging
import uuid
from collections.abc import Iterable
from datetime import date

from tripcore.app.adapters.base import CatalogUnavailableError
from tripcore.app.adapters.catalog import CatalogClient
from tripcore.app.models.availability import AvailabilityDay, AvailabilityMatch
from tripcore.app.models.itinerary import ItineraryItem
from tripcore.app.scheduling.availability import match_availability, unavailable_match
from tripcore.app.utils.logging import StructuredCollaboratorLogger
from tripcore.app.utils.metrics import PrometheusCollaboratorMetrics

logger = logging.getLogger(__name__)


class AvailabilityCache:
    """Per-session availability store keyed by experience id."""

    def __init__(
        self,
        catalog: CatalogClient,
        metrics: PrometheusCollaboratorMetrics | None = None,
        call_logger: StructuredCollaboratorLogger | None = None,
    ) -> None:
        self._catalog = catalog
        self._metrics = metrics or PrometheusCollaboratorMetrics()
        self._call_logger = call_logger or StructuredCollaboratorLogger()
        self._results: dict[int, list[AvailabilityDay]] = {}
        self._in_flight: dict[int, asyncio.Task[list[AvailabilityDay]]] = {}

    def clear(self) -> None:
        """Drop every cached result."""
        self._results.clear()

    async def get(self, experience_id: int) -> list[AvailabilityDay]:
        """Availability for one activity, fetched at most once per session.

        A caller that stops waiting (the picker was dismissed) does not cancel
        the shared fetch; its result still lands in the cache.

        Raises:
            CatalogUnavailableError: If the fetch fails
        """
        cached = self._results.get(experience_id)
        if cached is not None:
            self._metrics.inc_cache_hit()
            self._call_logger.log_call(
                "catalog", "fetch_availability", "cache_hit", 0.0, key=experience_id, cache_hit=True
            )
            return cached

        task = self._in_flight.get(experience_id)
        if task is None:
            task = asyncio.create_task(self._load(experience_id))
            self._in_flight[experience_id] = task
        return await asyncio.shield(task)

    async def _load(self, experience_id: int) -> list[AvailabilityDay]:
        try:
            days = await self._catalog.fetch_availability(experience_id)
            self._results[experience_id] = days
            return days
        finally:
            self._in_flight.pop(experience_id, None)

    async def match(
        self,
        experience_id: int,
        target_date: date,
        items_on_day: Iterable[ItineraryItem],
        *,
        day_number: int | None = None,
        editing: ItineraryItem | None = None,
        party_size: int = 1,
    ) -> AvailabilityMatch:
        """Fetch (or reuse) availability and match it against a date.

        A failed fetch degrades to an ``unavailable`` result marked retryable.
        """
        try:
            availability = await self.get(experience_id)
        except CatalogUnavailableError:
            logger.warning(
                "Availability unavailable, showing retry",
                extra={"structured": {"experience_id": experience_id}},
            )
            return unavailable_match(target_date, experience_id)

        return match_availability(
            target_date,
            availability,
            items_on_day,
            experience_id=experience_id,
            day_number=day_number,
            editing=editing,
            party_size=party_size,
        )


class SessionAvailabilityCaches:
    """One availability cache per draft session.

    A session's cache lives until the draft is finalized or discarded, so a
    new draft always starts from fresh availability.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        metrics: PrometheusCollaboratorMetrics | None = None,
        call_logger: StructuredCollaboratorLogger | None = None,
    ) -> None:
        self._catalog = catalog
        self._metrics = metrics
        self._call_logger = call_logger
        self._sessions: dict[uuid.UUID, AvailabilityCache] = {}

    def for_session(self, session_id: uuid.UUID) -> AvailabilityCache:
        cache = self._sessions.get(session_id)
        if cache is None:
            cache = AvailabilityCache(
                self._catalog, metrics=self._metrics, call_logger=self._call_logger
            )
            self._sessions[session_id] = cache
        return cache

    def discard(self, session_id: uuid.UUID) -> None:
        """Forget a finished session's availability."""
        cache = self._sessions.pop(session_id, None)
        if cache is not None:
            cache.clear()

    def __len__(self) -> int:
        return len(self._sessions)
