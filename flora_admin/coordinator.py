"""Optimistic mutation coordinator.

A coordinated mutation applies its expected effect to local state, performs
the remote call and then either commits (optionally re-synchronizing from the
server) or restores the exact pre-mutation snapshot.
"""

import copy
from collections.abc import Awaitable, Callable, Hashable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

import structlog

from flora_admin.errors import FloraError, MutationInProgressError
from flora_admin.notifications import Notifier

logger = structlog.get_logger()

T = TypeVar("T")


class OptimisticMutation(Generic[T]):
    """Snapshot/apply/commit/rollback steps of one mutation.

    Lets a view layer drive the steps itself when ``apply_optimistic`` does
    not fit.
    """

    def __init__(self, current_state: T, apply_state: Callable[[T], None]) -> None:
        self.snapshot: T = copy.deepcopy(current_state)
        self._current_state = current_state
        self._apply_state = apply_state
        self.settled = False

    def apply(self, optimistic_update: Callable[[T], T]) -> T:
        if self.settled:
            raise RuntimeError("Mutation already settled")
        next_state = optimistic_update(self._current_state)
        self._apply_state(next_state)
        return next_state

    def commit(self) -> None:
        if self.settled:
            raise RuntimeError("Mutation already settled")
        self.settled = True

    def rollback(self) -> None:
        if self.settled:
            raise RuntimeError("Mutation already settled")
        self.settled = True
        self._apply_state(self.snapshot)


class InFlightRegistry:
    """Tracks which relation keys have an unsettled mutation.

    Overlapping mutations on the same key are rejected rather than queued.
    """

    def __init__(self) -> None:
        self._pending: set[Hashable] = set()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    @contextmanager
    def claim(self, key: Hashable) -> Iterator[None]:
        if key in self._pending:
            raise MutationInProgressError(key)
        self._pending.add(key)
        try:
            yield
        finally:
            self._pending.discard(key)


def describe_error(error: BaseException) -> str:
    if isinstance(error, FloraError):
        return error.message
    return str(error) or error.__class__.__name__


async def apply_optimistic(
    current_state: T,
    optimistic_update: Callable[[T], T],
    remote_call: Callable[[], Awaitable[Any]],
    apply_state: Callable[[T], None],
    on_settle_refresh: Callable[[], Awaitable[None]] | None = None,
    *,
    notifier: Notifier | None = None,
    success_message: str = "Saved successfully",
    error_message: str = "Failed to save",
    error_duration: float | None = None,
    key: Hashable | None = None,
    registry: InFlightRegistry | None = None,
) -> Any:
    """Run one coordinated mutation.

    Args:
        current_state: Collection about to be mutated
        optimistic_update: Pure function producing the assumed next state
        remote_call: The network mutation, already wrapped in retries
        apply_state: Setter of the collection's owner
        on_settle_refresh: Optional re-fetch after a successful remote call
        notifier: Where success and error notifications are shown
        success_message: Text of the success notification
        error_message: Prefix of the error notification
        error_duration: Override for the error notification duration
        key: Relation key guarded by ``registry``
        registry: Rejects a second mutation on ``key`` while one is in flight

    Returns:
        Whatever ``remote_call`` returned

    Raises:
        MutationInProgressError: ``key`` already has an unsettled mutation;
            no state is touched.
        The remote call's error, after the state has been rolled back.
    """
    if registry is not None and key is not None:
        if key in registry:
            error = MutationInProgressError(key)
            logger.warning("Rejected overlapping mutation", key=key)
            if notifier is not None:
                notifier.error(f"{error_message}: {error.message}", error_duration)
            raise error
        with registry.claim(key):
            return await _run(
                current_state,
                optimistic_update,
                remote_call,
                apply_state,
                on_settle_refresh,
                notifier,
                success_message,
                error_message,
                error_duration,
            )

    return await _run(
        current_state,
        optimistic_update,
        remote_call,
        apply_state,
        on_settle_refresh,
        notifier,
        success_message,
        error_message,
        error_duration,
    )


async def _run(
    current_state: T,
    optimistic_update: Callable[[T], T],
    remote_call: Callable[[], Awaitable[Any]],
    apply_state: Callable[[T], None],
    on_settle_refresh: Callable[[], Awaitable[None]] | None,
    notifier: Notifier | None,
    success_message: str,
    error_message: str,
    error_duration: float | None,
) -> Any:
    mutation = OptimisticMutation(current_state, apply_state)
    mutation.apply(optimistic_update)

    try:
        result = await remote_call()
    except Exception as e:
        mutation.rollback()
        logger.warning("Mutation rolled back", error=describe_error(e))
        if notifier is not None:
            notifier.error(f"{error_message}: {describe_error(e)}", error_duration)
        raise

    mutation.commit()

    if on_settle_refresh is not None:
        try:
            await on_settle_refresh()
        except Exception as e:
            logger.warning("Refresh after mutation failed", error=describe_error(e))
            if notifier is not None:
                notifier.warning(f"{success_message}, but refreshing failed: {describe_error(e)}")
            return result

    if notifier is not None:
        notifier.success(success_message)
    return result
