"""Transient success/warning/error notifications."""

import asyncio
from collections.abc import Callable

import structlog

from flora_admin.models import Notification

logger = structlog.get_logger()

SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

Listener = Callable[[Notification | None], None]


class Notifier:
    """Holds the single notification currently on display.

    A new notification replaces the previous one. Each notification clears
    itself after its duration when an event loop is running; a later
    notification is never cleared by the timer of an earlier one.
    """

    def __init__(
        self,
        success_seconds: float = 2.0,
        warning_seconds: float = 3.0,
        error_seconds: float = 6.0,
    ) -> None:
        """Initialize the notifier.

        Args:
            success_seconds: Display time of success notifications
            warning_seconds: Display time of warning notifications
            error_seconds: Display time of error notifications
        """
        self.durations = {
            SUCCESS: success_seconds,
            WARNING: warning_seconds,
            ERROR: error_seconds,
        }
        self.current: Notification | None = None
        self.history: list[Notification] = []
        self._listeners: list[Listener] = []
        self._timer: asyncio.TimerHandle | None = None

    def subscribe(self, listener: Listener) -> None:
        """Register a callback invoked on every show and clear."""
        self._listeners.append(listener)

    def show(self, level: str, text: str, duration: float | None = None) -> Notification:
        """Show a notification, replacing the current one.

        Args:
            level: One of SUCCESS, WARNING or ERROR
            text: Message to display
            duration: Seconds before it clears; defaults to the level's duration

        Raises:
            ValueError: Unknown level
        """
        if level not in self.durations:
            raise ValueError(f"Unknown notification level: {level}")

        notification = Notification(
            level=level,
            text=text,
            duration=self.durations[level] if duration is None else duration,
        )
        log = logger.error if level == ERROR else logger.warning if level == WARNING else logger.info
        log("Notification shown", level=level, text=text)

        self._cancel_timer()
        self.current = notification
        self.history.append(notification)
        self._emit(notification)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._timer = loop.call_later(notification.duration, self._expire, notification)
        return notification

    def success(self, text: str, duration: float | None = None) -> Notification:
        """Show a success notification."""
        return self.show(SUCCESS, text, duration)

    def warning(self, text: str, duration: float | None = None) -> Notification:
        """Show a warning notification."""
        return self.show(WARNING, text, duration)

    def error(self, text: str, duration: float | None = None) -> Notification:
        """Show an error notification."""
        return self.show(ERROR, text, duration)

    def clear(self) -> None:
        """Remove the current notification now."""
        self._cancel_timer()
        if self.current is not None:
            self.current = None
            self._emit(None)

    def _expire(self, notification: Notification) -> None:
        """Clear ``notification`` if it is still the one on display."""
        self._timer = None
        if self.current is notification:
            logger.debug("Notification expired", level=notification.level)
            self.current = None
            self._emit(None)

    def _cancel_timer(self) -> None:
        """Stop the pending auto-clear timer."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _emit(self, notification: Notification | None) -> None:
        """Notify listeners of the new current notification."""
        for listener in self._listeners:
            listener(notification)
