"""Base class for search clients."""

from abc import ABC, abstractmethod

from intel471_lookup.config import LookupOptions
from intel471_lookup.models import Entity, LookupOutcome


class SearchClient(ABC):
    """Base class for clients that look up a single entity upstream."""

    @abstractmethod
    async def search(self, entity: Entity, options: LookupOptions) -> LookupOutcome:
        """
        Query the upstream for the given entity.

        Args:
            entity: The entity to look up
            options: Endpoint and credentials to use

        Returns:
            Hit, Miss, or ClassifiedError

        Raises:
            LookupFailedError: On transport failure or an unmapped status code
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None
