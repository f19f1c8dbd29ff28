"""Location and user commands for flora-admin CLI."""

from cyclopts import App

from flora_admin.backends.locations import LocationBackend, UserBackend

location_app = App(name="location", help="Manage store locations")
user_app = App(name="user", help="Inspect WordPress users")


@location_app.command(name="list")
def list_locations() -> None:
    """List all locations."""
    from flora_admin.cli import run, session
    from flora_admin.views import LocationListView

    async def _list():
        async with session() as (client, options):
            view = LocationListView(LocationBackend(client), **options)
            return await view.load()

    locations = run(_list())
    print(f"Found {len(locations)} location(s):\n")
    for location in locations:
        status_marker = "●" if location.is_active else "○"
        default = " (default)" if location.is_default else ""
        print(f"{status_marker} {location.id}: {location.name}{default}")


@location_app.command
def delete(location_id: int, yes: bool = False) -> None:
    """Delete a location.

    Args:
        location_id: Location ID
        yes: Skip the confirmation prompt
    """
    from flora_admin.cli import ask, run, session
    from flora_admin.views import LocationListView

    async def _delete():
        async with session() as (client, options):
            view = LocationListView(LocationBackend(client), **options)
            await view.load()
            return await view.delete(location_id, confirm=None if yes else ask)

    if not run(_delete()):
        print("Cancelled")


@user_app.command
def passwords(user_id: int) -> None:
    """List the application passwords of a user."""
    from flora_admin.cli import run, session
    from flora_admin.views import UserListView

    async def _passwords():
        async with session() as (client, options):
            view = UserListView(UserBackend(client), **options)
            view.selection.toggle_expanded(user_id)
            await view.wait_pending()
            return view.application_passwords.get(user_id, [])

    items = run(_passwords())
    if not items:
        print(f"No application passwords for user {user_id}")
        return

    print(f"Application passwords for user {user_id}:\n")
    for item in items:
        print(f"  {item.uuid}: {item.name} (created {item.created or '-'}, last used {item.last_used or '-'})")
