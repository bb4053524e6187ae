"""Experience browse endpoint - catalog listings for the activity picker."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from tripcore.app.adapters.base import CatalogUnavailableError
from tripcore.app.adapters.catalog import CatalogClient
from tripcore.app.api.dependencies import get_catalog_client
from tripcore.app.models.catalog import ExperienceListing

router = APIRouter(prefix="/experiences", tags=["experiences"])


@router.get("", response_model=list[ExperienceListing])
async def browse(
    catalog: Annotated[CatalogClient, Depends(get_catalog_client)],
    category: str | None = None,
) -> list[ExperienceListing]:
    """Active activities, optionally filtered by category.

    Returns:
        Listings as the catalog reports them

    Raises:
        HTTPException: 502 when the catalog cannot be reached
    """
    try:
        return await catalog.browse_experiences(category)
    except CatalogUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
