"""Owner lookup port supplied by the authentication collaborator."""

from abc import ABC, abstractmethod


class IOwnerDirectory(ABC):
    """Answers whether an owner id refers to a known user."""

    @abstractmethod
    async def exists(self, owner_id: str) -> bool:
        """Return True if the owner is known."""
        pass
