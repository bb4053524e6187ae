"""In-memory draft session store."""

import uuid

from tripcore.app.scheduling.draft import ItineraryDraft


class DraftNotFoundError(KeyError):
    """No draft is stored under the given id."""

    pass


class InMemoryDraftRepository:
    """Holds drafts by id while the traveler edits them.

    Drafts are immutable values, so an update swaps the stored draft whole.
    """

    def __init__(self) -> None:
        self._drafts: dict[uuid.UUID, ItineraryDraft] = {}

    def create(self, draft: ItineraryDraft) -> uuid.UUID:
        """Store a new draft and return its id."""
        draft_id = uuid.uuid4()
        self._drafts[draft_id] = draft
        return draft_id

    def get(self, draft_id: uuid.UUID) -> ItineraryDraft | None:
        return self._drafts.get(draft_id)

    def replace(self, draft_id: uuid.UUID, draft: ItineraryDraft) -> None:
        """Swap in the draft produced by an accepted transition.

        Raises:
            DraftNotFoundError: If the id is unknown
        """
        if draft_id not in self._drafts:
            raise DraftNotFoundError(draft_id)
        self._drafts[draft_id] = draft

    def count(self) -> int:
        return len(self._drafts)

    def delete(self, draft_id: uuid.UUID) -> None:
        self._drafts.pop(draft_id, None)

    def clear(self) -> None:
        """Clear all drafts (useful for testing)."""
        self._drafts.clear()
