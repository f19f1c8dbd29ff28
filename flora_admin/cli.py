"""CLI for flora-admin."""

import asyncio
import sys
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Annotated, Any, Literal, TypeVar

import structlog
from cyclopts import App, Parameter

from flora_admin.backend import RelationBackend
from flora_admin.client import FloraClient
from flora_admin.config import FloraSettings, get_config, load_settings
from flora_admin.config_commands import config_app
from flora_admin.employee_commands import employee_app
from flora_admin.errors import FloraError
from flora_admin.location_commands import location_app, user_app
from flora_admin.models import Notification
from flora_admin.notifications import ERROR, Notifier
from flora_admin.retry import RetryPolicy
from flora_admin.tax_commands import tax_app
from flora_admin.views import RelationListView

logger = structlog.get_logger()

T = TypeVar("T")

app = App(
    help="Flora Admin - location taxes, employees and users for the Flora IM back-office",
)

app.command(tax_app)
app.command(employee_app)
app.command(location_app)
app.command(user_app)
app.command(config_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()))


def get_settings() -> FloraSettings:
    """Get the configured connection and behaviour settings."""
    return load_settings(get_config())


def print_notification(notification: Notification | None) -> None:
    if notification is None:
        return
    stream = sys.stderr if notification.level == ERROR else sys.stdout
    print(notification.text, file=stream)


def make_notifier(settings: FloraSettings) -> Notifier:
    notifier = Notifier(
        success_seconds=settings.success_seconds,
        warning_seconds=settings.warning_seconds,
        error_seconds=settings.error_seconds,
    )
    notifier.subscribe(print_notification)
    return notifier


def view_options(settings: FloraSettings, notifier: Notifier) -> dict[str, Any]:
    return {
        "notifier": notifier,
        "policy": RetryPolicy(max_attempts=settings.max_attempts, base_delay=settings.base_delay),
    }


@asynccontextmanager
async def session() -> AsyncIterator[tuple[FloraClient, dict[str, Any]]]:
    """Open a client and the keyword arguments every view is built with."""
    settings = get_settings()
    async with FloraClient(settings) as client:
        yield client, view_options(settings, make_notifier(settings))


@asynccontextmanager
async def relation_view(
    backend_cls: type[RelationBackend],
    location_id: int,
    confirm: Any = None,
) -> AsyncIterator[RelationListView]:
    """Open a loaded relation view for one location."""
    async with session() as (client, options):
        view = RelationListView(backend_cls(client), location_id, confirm=confirm, **options)
        await view.load()
        yield view


def ask(question: str) -> bool:
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine; a FloraError has already been shown, so just exit non-zero."""
    try:
        return asyncio.run(coro)
    except FloraError as e:
        logger.debug("Command failed", kind=e.kind.value, error=e.message)
        raise SystemExit(1) from e


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    app(tokens)


if __name__ == "__main__":
    app.meta()
