"""Abstract blob store interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional

STORE_BLOB_NAME = "cafe-data.json"


class BlobStore(ABC):
    """Abstract storage for the cafe store document.

    The whole store is read and written as one JSON blob. Writes overwrite
    the previous blob; the last writer wins.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the storage backend."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the storage backend."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize storage schema (create tables)."""
        pass

    @abstractmethod
    def get(self) -> Optional[dict[str, Any]]:
        """Return the stored blob, or None when nothing was saved yet."""
        pass

    @abstractmethod
    def put(self, blob: dict[str, Any]) -> None:
        """Replace the stored blob."""
        pass
