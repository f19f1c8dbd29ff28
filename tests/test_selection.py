"""Tests for the selection/expansion store."""

import pytest

from flora_admin.selection import SelectionStore


def test_toggle_selected_twice_restores() -> None:
    """Test toggling a row twice leaves the selection unchanged."""
    store = SelectionStore()
    store.select_all([1, 2])
    before = store.selected

    store.toggle_selected(3)
    assert store.is_selected(3)
    store.toggle_selected(3)

    assert store.selected == before


def test_select_all_is_idempotent() -> None:
    """Test duplicate ids collapse into one selection."""
    first = SelectionStore()
    first.select_all([1, 2, 1])
    second = SelectionStore()
    second.select_all([1, 2])

    assert first.selected == second.selected == frozenset({1, 2})

    first.select_all([2])
    assert first.selected == frozenset({1, 2})


def test_clear_and_deselect_keep_expansion() -> None:
    """Test selection clearing never touches expanded rows."""
    store = SelectionStore()
    store.select_all([1, 2])
    store.toggle_expanded(1)

    store.clear_selected()
    assert store.selected == frozenset()
    assert store.is_expanded(1)

    store.select_all([5])
    store.deselect_all()
    assert store.selected == frozenset()
    assert store.expanded == frozenset({1})


def test_selection_and_expansion_are_independent() -> None:
    """Test a row can be expanded without being selected and vice versa."""
    store = SelectionStore()
    store.toggle_selected("a")
    store.toggle_expanded("b")

    assert store.is_selected("a") and not store.is_expanded("a")
    assert store.is_expanded("b") and not store.is_selected("b")


def test_on_expand_called_per_transition() -> None:
    """Test every collapsed-to-expanded transition triggers one load."""
    loaded: list[int] = []
    store = SelectionStore(on_expand=loaded.append)

    store.toggle_expanded(7)
    assert loaded == [7]

    store.toggle_expanded(7)
    assert loaded == [7]
    assert not store.is_expanded(7)

    store.toggle_expanded(7)
    assert loaded == [7, 7]


def test_returned_sets_are_read_only_views() -> None:
    """Test callers cannot mutate the store through its properties."""
    store = SelectionStore()
    store.toggle_selected(1)
    selected = store.selected
    assert isinstance(selected, frozenset)
    store.toggle_selected(2)
    assert selected == frozenset({1})


def test_reset_forgets_everything() -> None:
    """Test reset on teardown."""
    store = SelectionStore()
    store.select_all([1, 2])
    store.toggle_expanded(3)

    store.reset()

    assert store.selected == frozenset()
    assert store.expanded == frozenset()


def test_failed_expand_hook_leaves_row_collapsed() -> None:
    """Test a row is not left expanded when its expansion hook fails."""

    def broken(item_id: object) -> None:
        raise RuntimeError("no loader")

    store = SelectionStore(on_expand=broken)

    with pytest.raises(RuntimeError, match="no loader"):
        store.toggle_expanded(9)

    assert store.expanded == frozenset()
    assert not store.is_expanded(9)
