"""Health check endpoint."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from tripcore.app.api.dependencies import get_draft_repository
from tripcore.app.db.inmemory import InMemoryDraftRepository

router = APIRouter()


@router.get("/health")
async def health(
    repo: Annotated[InMemoryDraftRepository, Depends(get_draft_repository)],
) -> dict[str, Any]:
    """Liveness check for Docker/k8s.

    Drafts live only in process memory, so the count tells an operator what
    a restart would discard.
    """
    return {"status": "ok", "open_drafts": repo.count()}
