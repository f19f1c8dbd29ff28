"""Backend interface for relation management."""

from abc import ABC, abstractmethod
from typing import Any

from flora_admin.models import Relation


class RelationBackend(ABC):
    """Abstract base class for one kind of relation owned by a location.

    Implementations perform exactly one remote round trip per call; retries
    and optimistic state belong to the caller.
    """

    relation_type: str = ""
    label: str = "relation"

    @abstractmethod
    async def list_relations(self, owner_id: int) -> list[Relation]:
        """List all relations of an owner."""
        pass

    @abstractmethod
    async def assign(self, owner_id: int, target_id: int, attributes: dict[str, Any]) -> Relation:
        """Create a relation."""
        pass

    @abstractmethod
    async def update(self, owner_id: int, target_id: int, attributes: dict[str, Any]) -> Relation:
        """Change the attributes of an existing relation."""
        pass

    @abstractmethod
    async def remove(self, owner_id: int, target_id: int) -> None:
        """Destroy a relation."""
        pass
