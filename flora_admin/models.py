"""Data models for flora-admin."""

from dataclasses import dataclass, field
from typing import Any, NamedTuple


class RelationKey(NamedTuple):
    """Identity of a relation between an owner entity and a target entity."""

    relation_type: str
    owner_id: int
    target_id: int


@dataclass
class Relation:
    """Represents a many-to-many association, e.g. location to tax rate."""

    owner_id: int
    target_id: int
    relation_type: str
    attributes: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> RelationKey:
        return RelationKey(self.relation_type, self.owner_id, self.target_id)

    @property
    def is_default(self) -> bool:
        return bool(self.attributes.get("is_default", False))

    @property
    def is_manager(self) -> bool:
        return bool(self.attributes.get("is_manager", False))


@dataclass
class MutationAttempt:
    """One failed attempt inside a retry cycle."""

    attempt_number: int
    max_attempts: int
    last_error: Exception
    is_retryable: bool

    @property
    def will_retry(self) -> bool:
        return self.is_retryable and self.attempt_number < self.max_attempts


@dataclass
class Location:
    """Represents a store location."""

    id: int
    name: str
    is_default: bool = False
    is_active: bool = True
    address: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ApplicationPassword:
    """Represents a WordPress application password of a user."""

    uuid: str
    name: str
    created: str | None = None
    last_used: str | None = None


@dataclass
class Notification:
    """A transient, auto-dismissing message shown after a mutation."""

    level: str
    text: str
    duration: float
