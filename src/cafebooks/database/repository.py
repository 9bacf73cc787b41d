"""Loading and saving the store state through a blob store."""

import logging

from cafebooks.database.base import BlobStore
from cafebooks.database.mappers import state_from_blob, state_to_blob
from cafebooks.domain.entities import StoreState
from cafebooks.domain.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class StoreRepository:
    """Maps the stored blob to a StoreState and back."""

    def __init__(self, store: BlobStore):
        self.store = store

    def load(self) -> StoreState:
        """Load the store state; an empty store yields an empty state.

        Raises:
            ExternalServiceError: If the blob cannot be read or mapped
        """
        blob = self.store.get()
        if blob is None:
            logger.info("No stored data yet, starting empty")
            return StoreState()
        try:
            state = state_from_blob(blob)
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceError(f"Stored data is malformed: {e}") from e
        logger.info(
            "Loaded store: %d accounts, %d lists, %d sales",
            len(state.accounts),
            len(state.lists),
            len(state.sell_transactions),
        )
        return state

    def save(self, state: StoreState) -> None:
        """Overwrite the stored blob with the state."""
        self.store.put(state_to_blob(state))
        logger.info("Saved store")
