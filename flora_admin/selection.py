"""Selection and expansion state shared by every list view."""

from collections.abc import Callable, Hashable, Iterable

import structlog

logger = structlog.get_logger()


class SelectionStore:
    """Two independent id sets: selected rows and expanded rows.

    ``on_expand`` is called on every transition from collapsed to expanded,
    including re-expansions. Caching whatever it loads is up to the caller.
    Iteration order of the sets carries no meaning; render from the source
    list instead.
    """

    def __init__(self, on_expand: Callable[[Hashable], object] | None = None) -> None:
        """Initialize empty selection and expansion.

        Args:
            on_expand: Called with the id of every row that becomes expanded
        """
        self._selected: set[Hashable] = set()
        self._expanded: set[Hashable] = set()
        self.on_expand = on_expand

    @property
    def selected(self) -> frozenset[Hashable]:
        """Read-only view of the selected ids."""
        return frozenset(self._selected)

    @property
    def expanded(self) -> frozenset[Hashable]:
        """Read-only view of the expanded ids."""
        return frozenset(self._expanded)

    def is_selected(self, item_id: Hashable) -> bool:
        """Check whether a row is selected."""
        return item_id in self._selected

    def is_expanded(self, item_id: Hashable) -> bool:
        """Check whether a row is expanded."""
        return item_id in self._expanded

    def toggle_selected(self, item_id: Hashable) -> None:
        """Select a row, or deselect it if already selected."""
        if item_id in self._selected:
            self._selected.remove(item_id)
        else:
            self._selected.add(item_id)

    def toggle_expanded(self, item_id: Hashable) -> None:
        """Expand a row, or collapse it if already expanded.

        If ``on_expand`` raises, the row stays collapsed and the error
        propagates.
        """
        if item_id in self._expanded:
            self._expanded.remove(item_id)
            return

        self._expanded.add(item_id)
        if self.on_expand is not None:
            logger.debug("Row expanded", item_id=item_id)
            try:
                self.on_expand(item_id)
            except Exception:
                self._expanded.discard(item_id)
                raise

    def clear_selected(self) -> None:
        """Deselect every row."""
        self._selected.clear()

    def select_all(self, item_ids: Iterable[Hashable]) -> None:
        """Add every given id to the selection."""
        self._selected.update(item_ids)

    def deselect_all(self) -> None:
        """Deselect every row."""
        self._selected.clear()

    def reset(self) -> None:
        """Forget both selection and expansion, e.g. when a view is torn down."""
        self._selected.clear()
        self._expanded.clear()
