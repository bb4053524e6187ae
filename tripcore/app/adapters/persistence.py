"""Itinerary persistence adapter - atomic hand-off of a finished draft."""

import httpx

from tripcore.app.adapters.base import (
    CollaboratorClient,
    CollaboratorUnavailableError,
    DraftNotReadyError,
)
from tripcore.app.config import get_settings
from tripcore.app.scheduling.draft import ItineraryDraft


class PersistenceClient(CollaboratorClient):
    """Client that saves a finalized draft."""

    collaborator = "persistence"

    async def save(self, draft: ItineraryDraft) -> int | str:
        """Persist the whole draft in one request.

        Args:
            draft: Draft to save

        Returns:
            Server-assigned itinerary identifier

        Raises:
            DraftNotReadyError: If the draft is empty or has blocking issues
            httpx.HTTPError: On network or HTTP errors
            CollaboratorUnavailableError: If the reply carries no itinerary id
        """
        blockers = draft.finalization_blockers()
        if blockers:
            raise DraftNotReadyError(blockers)

        response = await self._send(
            "POST", "/itinerary/create", "save", key=draft.title, json=draft.to_payload()
        )
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as e:
            raise CollaboratorUnavailableError(
                "Persistence service returned an unreadable reply"
            ) from e

        itinerary_id = data.get("itinerary_id") if isinstance(data, dict) else None
        if itinerary_id is None:
            raise CollaboratorUnavailableError("Persistence service did not return an itinerary id")
        return itinerary_id


def persistence_client_from_settings(client: httpx.AsyncClient | None = None) -> PersistenceClient:
    """Build a persistence client from settings."""
    settings = get_settings()
    return PersistenceClient(
        base_url=settings.catalog_base_url,
        timeout_ms=settings.persistence_timeout_ms,
        client=client,
    )
