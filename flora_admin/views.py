"""List views: state holders that drive coordinated mutations.

Each view owns one collection, a SelectionStore and a Notifier. Views hold no
rendering code; a CLI, a TUI or a web handler reads ``items``, ``selection``
and ``notifier.current`` and calls the async operations.
"""

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, Generic, TypeVar

import structlog

from flora_admin.backend import RelationBackend
from flora_admin.backends.locations import LocationBackend, UserBackend
from flora_admin.coordinator import InFlightRegistry, apply_optimistic, describe_error
from flora_admin.errors import FloraError, ValidationError, require_positive_id
from flora_admin.models import ApplicationPassword, Location, MutationAttempt, Relation
from flora_admin.notifications import Notifier
from flora_admin.retry import DEFAULT_POLICY, RetryPolicy, execute
from flora_admin.selection import SelectionStore

logger = structlog.get_logger()

T = TypeVar("T")
R = TypeVar("R")

Confirm = Callable[[str], bool]


def log_attempt(attempt: MutationAttempt) -> None:
    logger.warning(
        "Remote call attempt failed",
        attempt=attempt.attempt_number,
        max_attempts=attempt.max_attempts,
        retryable=attempt.is_retryable,
        will_retry=attempt.will_retry,
        error=describe_error(attempt.last_error),
    )


class ListView(Generic[T]):
    """Common state of every list view."""

    def __init__(
        self,
        *,
        notifier: Notifier | None = None,
        policy: RetryPolicy = DEFAULT_POLICY,
        registry: InFlightRegistry | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_expand: Callable[[Hashable], object] | None = None,
    ) -> None:
        self.items: list[T] = []
        self.notifier = notifier or Notifier()
        self.policy = policy
        self.registry = registry if registry is not None else InFlightRegistry()
        self.selection = SelectionStore(on_expand=on_expand)
        self._sleep = sleep

    def _set_items(self, items: list[T]) -> None:
        """Replace the collection."""
        self.items = items

    async def _with_retry(self, operation: Callable[[], Awaitable[R]]) -> R:
        """Run a remote call under the view's retry policy."""
        return await execute(operation, self.policy, sleep=self._sleep, on_failure=log_attempt)

    def _reject(self, error: ValidationError, prefix: str) -> ValidationError:
        """Show a validation error and return it for raising."""
        logger.warning("Rejected invalid input", error=error.message)
        self.notifier.error(f"{prefix}: {error.message}")
        return error

    def close(self) -> None:
        """Drop view-local state, as on unmount."""
        self.selection.reset()
        self.notifier.clear()


class RelationListView(ListView[Relation]):
    """Relations of one owner, e.g. the tax rates of a location.

    Args:
        backend: Remote side of this relation type
        owner_id: Id of the owning entity
        confirm: Asked before assigning a relation that already exists; a
            confirmed assign becomes an attribute update. Without it the
            update happens unasked.
    """

    def __init__(
        self,
        backend: RelationBackend,
        owner_id: Any,
        *,
        confirm: Confirm | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.backend = backend
        self.owner_id = owner_id
        self.confirm = confirm

    @property
    def label(self) -> str:
        """Human readable name of the relation target."""
        return self.backend.label

    def _owner(self, prefix: str) -> int:
        """Validate the owner id."""
        try:
            return require_positive_id(self.owner_id, "location ID")
        except ValidationError as e:
            raise self._reject(e, prefix) from None

    def _target(self, target_id: Any, prefix: str) -> int:
        """Validate a target id."""
        try:
            return require_positive_id(target_id, f"{self.label} ID")
        except ValidationError as e:
            raise self._reject(e, prefix) from None

    def find(self, target_id: int) -> Relation | None:
        """Return the loaded relation to ``target_id``, if any."""
        for relation in self.items:
            if relation.target_id == target_id:
                return relation
        return None

    async def load(self) -> list[Relation]:
        """Replace the local collection with server truth."""
        prefix = f"Failed to load {self.label}s"
        owner_id = self._owner(prefix)
        try:
            relations = await self.backend.list_relations(owner_id)
        except FloraError as e:
            self.notifier.error(f"{prefix}: {e.message}")
            raise
        self._set_items(relations)
        return relations

    async def assign(
        self,
        target_id: Any,
        *,
        metadata: dict[str, Any] | None = None,
        **attributes: Any,
    ) -> Relation | None:
        """Assign a target to the owner, optimistically.

        Returns:
            The relation reported by the backend, or None when an existing
            assignment was not confirmed for update.
        """
        prefix = f"Failed to assign {self.label}"
        owner_id = self._owner(prefix)
        target = self._target(target_id, prefix)

        if self.find(target) is not None:
            question = f"This {self.label} is already assigned. Do you want to update it?"
            if self.confirm is not None and not self.confirm(question):
                logger.info("Update of existing relation declined", owner_id=owner_id, target_id=target)
                return None
            return await self.update(target, **attributes)

        relation = Relation(
            owner_id=owner_id,
            target_id=target,
            relation_type=self.backend.relation_type,
            attributes=dict(attributes),
            metadata=dict(metadata or {}),
        )
        logger.info("Assigning relation", relation_type=relation.relation_type, owner_id=owner_id, target_id=target)
        return await apply_optimistic(
            self.items,
            lambda items: [*items, relation],
            lambda: self._with_retry(lambda: self.backend.assign(owner_id, target, dict(attributes))),
            self._set_items,
            lambda: self._reload(owner_id),
            notifier=self.notifier,
            success_message=f"{self.label.capitalize()} assigned successfully",
            error_message=prefix,
            key=relation.key,
            registry=self.registry,
        )

    async def update(self, target_id: Any, **attributes: Any) -> Relation:
        """Change attributes of an assigned relation, e.g. toggle ``is_default``."""
        prefix = f"Failed to update {self.label}"
        owner_id = self._owner(prefix)
        target = self._target(target_id, prefix)
        existing = self.find(target)
        if existing is None:
            raise self._reject(ValidationError(f"{self.label} {target} is not assigned"), prefix)

        def updated(items: list[Relation]) -> list[Relation]:
            result = []
            for relation in items:
                if relation.target_id == target:
                    relation = Relation(
                        owner_id=relation.owner_id,
                        target_id=relation.target_id,
                        relation_type=relation.relation_type,
                        attributes={**relation.attributes, **attributes},
                        metadata=dict(relation.metadata),
                    )
                result.append(relation)
            return result

        merged = {**existing.attributes, **attributes}
        logger.info("Updating relation", relation_type=existing.relation_type, owner_id=owner_id, target_id=target)
        return await apply_optimistic(
            self.items,
            updated,
            lambda: self._with_retry(lambda: self.backend.update(owner_id, target, merged)),
            self._set_items,
            lambda: self._reload(owner_id),
            notifier=self.notifier,
            success_message=f"{self.label.capitalize()} updated successfully",
            error_message=prefix,
            key=existing.key,
            registry=self.registry,
        )

    async def remove(self, target_id: Any) -> None:
        """Remove an assigned relation, optimistically."""
        prefix = f"Failed to remove {self.label}"
        owner_id = self._owner(prefix)
        target = self._target(target_id, prefix)
        existing = self.find(target)
        if existing is None:
            raise self._reject(ValidationError(f"{self.label} {target} is not assigned"), prefix)

        logger.info("Removing relation", relation_type=existing.relation_type, owner_id=owner_id, target_id=target)
        await apply_optimistic(
            self.items,
            lambda items: [relation for relation in items if relation.target_id != target],
            lambda: self._with_retry(lambda: self.backend.remove(owner_id, target)),
            self._set_items,
            lambda: self._reload(owner_id),
            notifier=self.notifier,
            success_message=f"{self.label.capitalize()} removed successfully",
            error_message=prefix,
            key=existing.key,
            registry=self.registry,
        )

    async def _reload(self, owner_id: int) -> None:
        """Re-fetch the relations after a mutation."""
        self._set_items(await self.backend.list_relations(owner_id))


class LocationListView(ListView[Location]):
    """All store locations, with optimistic deletion."""

    def __init__(self, backend: LocationBackend, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.backend = backend

    def find(self, location_id: int) -> Location | None:
        """Return the loaded location with ``location_id``, if any."""
        for location in self.items:
            if location.id == location_id:
                return location
        return None

    async def load(self) -> list[Location]:
        """Replace the local locations with server truth."""
        try:
            locations = await self.backend.list_locations()
        except FloraError as e:
            self.notifier.error(f"Failed to load locations: {e.message}")
            raise
        self._set_items(locations)
        return locations

    async def _reload(self) -> None:
        """Re-fetch the locations after a mutation."""
        self._set_items(await self.backend.list_locations())

    async def delete(self, location_id: Any, confirm: Confirm | None = None) -> bool:
        """Delete a location after an optional confirmation gate.

        Returns:
            False when the confirmation was declined, True once deleted.
        """
        prefix = "Failed to delete location"
        try:
            target = require_positive_id(location_id, "location ID")
        except ValidationError as e:
            raise self._reject(e, prefix) from None

        location = self.find(target)
        name = location.name if location else str(target)
        if confirm is not None and not confirm(f"Delete location {name}? This cannot be undone."):
            logger.info("Location deletion declined", location_id=target)
            return False

        await apply_optimistic(
            self.items,
            lambda items: [item for item in items if item.id != target],
            lambda: self._with_retry(lambda: self.backend.delete_location(target)),
            self._set_items,
            self._reload,
            notifier=self.notifier,
            success_message="Location deleted successfully",
            error_message=prefix,
            key=("location", target),
            registry=self.registry,
        )
        if self.selection.is_selected(target):
            self.selection.toggle_selected(target)
        return True

    async def delete_selected(self) -> list[int]:
        """Delete every selected location, one coordinated mutation each.

        Returns:
            Ids whose deletion failed; they stay selected.
        """
        failed = []
        for location_id in [item.id for item in self.items if self.selection.is_selected(item.id)]:
            try:
                await self.delete(location_id)
            except FloraError:
                failed.append(location_id)
        return failed


class UserListView(ListView[dict[str, Any]]):
    """WordPress users; expanding a user loads its application passwords."""

    def __init__(self, backend: UserBackend, **kwargs: Any) -> None:
        super().__init__(on_expand=self._schedule_password_load, **kwargs)
        self.backend = backend
        self.application_passwords: dict[int, list[ApplicationPassword]] = {}
        self._pending: set[asyncio.Task] = set()

    async def load(self) -> list[dict[str, Any]]:
        """Replace the local users with server truth."""
        try:
            users = await self.backend.list_users()
        except FloraError as e:
            self.notifier.error(f"Failed to load users: {e.message}")
            raise
        self._set_items(users)
        return users

    def _schedule_password_load(self, user_id: Hashable) -> None:
        """Start loading a user's application passwords in the background.

        Raises:
            RuntimeError: No event loop is running to load them on
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError("Expanding a user needs a running event loop") from None
        task = loop.create_task(self.load_application_passwords(int(user_id)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def load_application_passwords(self, user_id: int) -> list[ApplicationPassword]:
        """Fetch a user's application passwords; a failure shows none."""
        try:
            passwords = await self.backend.list_application_passwords(user_id)
        except FloraError as e:
            logger.warning("Failed to load application passwords", user_id=user_id, error=e.message)
            passwords = []
        self.application_passwords[user_id] = passwords
        return passwords

    async def wait_pending(self) -> None:
        """Wait for lazy loads started by expansion."""
        if self._pending:
            await asyncio.gather(*self._pending)
