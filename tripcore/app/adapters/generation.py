"""Itinerary generator adapter - automated (non-manual) trip creation."""

import logging

import httpx
from pydantic import ValidationError

from tripcore.app.adapters.base import CollaboratorClient, CollaboratorUnavailableError
from tripcore.app.adapters.wire import items_from_records
from tripcore.app.config import get_settings
from tripcore.app.models.generation import (
    GeneratedItinerary,
    GenerationFailure,
    GenerationRequest,
)

logger = logging.getLogger(__name__)


class GenerationClient(CollaboratorClient):
    """Client for the remote itinerary generator."""

    collaborator = "generator"

    async def generate(self, request: GenerationRequest) -> GeneratedItinerary | GenerationFailure:
        """Ask the generator for a candidate itinerary.

        A "no results" answer is an expected outcome and comes back as a
        GenerationFailure carrying the generator's diagnostics.

        Raises:
            CollaboratorUnavailableError: On network errors or unreadable error responses
        """
        try:
            response = await self._send(
                "POST",
                "/itinerary/generate",
                "generate",
                key=request.city,
                json=request.model_dump(mode="json", exclude_none=True),
            )
        except httpx.HTTPError as e:
            raise CollaboratorUnavailableError("Itinerary generator could not be reached") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            if isinstance(body, dict) and ("error" in body or "message" in body):
                try:
                    return GenerationFailure.model_validate(body)
                except ValidationError:
                    logger.warning(
                        "Generator failure payload did not match the expected shape",
                        extra={"structured": {"status": response.status_code}},
                    )
                    return GenerationFailure(message=str(body.get("message") or body.get("error")))
            raise CollaboratorUnavailableError(
                f"Itinerary generator answered with status {response.status_code}"
            )

        itineraries = body.get("itineraries") if isinstance(body, dict) else None
        if not itineraries:
            return GenerationFailure(error="no_results", message="No itinerary generated")

        first = itineraries[0]
        try:
            return GeneratedItinerary(
                itinerary_id=first.get("itinerary_id"),
                start_date=first.get("start_date"),
                end_date=first.get("end_date"),
                title=first.get("title"),
                notes=first.get("notes"),
                items=items_from_records(first.get("items") or []),
            )
        except (ValidationError, AttributeError) as e:
            raise CollaboratorUnavailableError("Generator returned an unreadable itinerary") from e


def generation_client_from_settings(client: httpx.AsyncClient | None = None) -> GenerationClient:
    """Build a generation client from settings."""
    settings = get_settings()
    return GenerationClient(
        base_url=settings.catalog_base_url,
        timeout_ms=settings.generation_timeout_ms,
        client=client,
    )
