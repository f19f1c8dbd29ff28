"""Tests for transient notifications."""

import asyncio

import pytest

from flora_admin.notifications import ERROR, SUCCESS, Notifier


def test_default_durations_by_severity() -> None:
    """Test errors stay longer than successes."""
    notifier = Notifier()
    assert notifier.success("ok").duration == 2.0
    assert notifier.warning("hmm").duration == 3.0
    assert notifier.error("bad").duration == 6.0


def test_new_notification_replaces_current() -> None:
    """Test only the latest notification is on display."""
    notifier = Notifier()
    notifier.success("Tax rate assigned successfully")
    notifier.error("Failed to assign tax rate: Service Unavailable")

    assert notifier.current.level == ERROR
    assert [n.level for n in notifier.history] == [SUCCESS, ERROR]


def test_unknown_level_rejected() -> None:
    """Test invalid levels raise."""
    with pytest.raises(ValueError, match="Unknown notification level"):
        Notifier().show("info", "text")


def test_listeners_see_show_and_clear() -> None:
    """Test subscribers are told about every change."""
    events = []
    notifier = Notifier()
    notifier.subscribe(events.append)

    shown = notifier.warning("careful")
    notifier.clear()

    assert events == [shown, None]
    assert notifier.current is None


@pytest.mark.asyncio
async def test_notification_clears_itself() -> None:
    """Test auto-dismissal after the configured duration."""
    notifier = Notifier(success_seconds=0.01)
    notifier.success("Saved")
    assert notifier.current is not None

    await asyncio.sleep(0.05)

    assert notifier.current is None


@pytest.mark.asyncio
async def test_earlier_timer_does_not_clear_later_notification() -> None:
    """Test a replaced notification's timer leaves the new one alone."""
    notifier = Notifier(success_seconds=0.01, error_seconds=10.0)
    notifier.success("Saved")
    notifier.error("Failed")

    await asyncio.sleep(0.05)

    assert notifier.current is not None
    assert notifier.current.level == ERROR
    assert notifier.current.text == "Failed"
    notifier.clear()
