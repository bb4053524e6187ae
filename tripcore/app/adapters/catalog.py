"""Experience catalog adapter - activity listings and weekly availability."""

import logging

import httpx
from pydantic import ValidationError

from tripcore.app.adapters.base import CatalogUnavailableError, CollaboratorClient
from tripcore.app.adapters.wire import availability_from_body
from tripcore.app.config import get_settings
from tripcore.app.models.availability import AvailabilityDay
from tripcore.app.models.catalog import ExperienceListing

logger = logging.getLogger(__name__)


class CatalogClient(CollaboratorClient):
    """Read-only client for the experience catalog."""

    collaborator = "catalog"

    async def fetch_availability(self, experience_id: int) -> list[AvailabilityDay]:
        """Fetch the weekly availability of one activity.

        Args:
            experience_id: Activity identifier

        Returns:
            AvailabilityDay list; empty when the body is absent or malformed

        Raises:
            CatalogUnavailableError: On network errors, timeouts or HTTP errors
        """
        try:
            response = await self._send(
                "GET",
                f"/experience/{experience_id}/availability",
                "fetch_availability",
                key=experience_id,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CatalogUnavailableError(
                f"Availability for experience {experience_id} could not be loaded"
            ) from e

        try:
            body = response.json()
        except ValueError:
            logger.warning(
                "Availability response is not JSON",
                extra={"structured": {"experience_id": experience_id}},
            )
            return []
        return availability_from_body(body)

    async def browse_experiences(self, category: str | None = None) -> list[ExperienceListing]:
        """List active activities, optionally filtered by category.

        Raises:
            CatalogUnavailableError: On network errors, timeouts or HTTP errors
        """
        params = {"category": category} if category else None
        try:
            response = await self._send(
                "GET", "/experience/active", "browse_experiences", key=category, params=params
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogUnavailableError("Experience catalog could not be loaded") from e

        if not isinstance(body, list):
            return []

        listings = []
        for entry in body:
            try:
                listings.append(ExperienceListing.model_validate(entry))
            except ValidationError:
                logger.warning(
                    "Skipping malformed experience listing",
                    extra={"structured": {"id": entry.get("id") if isinstance(entry, dict) else None}},
                )
        return listings


def catalog_client_from_settings(client: httpx.AsyncClient | None = None) -> CatalogClient:
    """Build a catalog client from settings."""
    settings = get_settings()
    return CatalogClient(
        base_url=settings.catalog_base_url,
        timeout_ms=settings.catalog_timeout_ms,
        client=client,
    )
