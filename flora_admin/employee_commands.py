"""Employee assignment commands for flora-admin CLI."""

from cyclopts import App

from flora_admin.backends.employees import LocationEmployeeBackend

employee_app = App(name="employee", help="Manage employees assigned to locations")


@employee_app.command(name="list")
def list_employees(location_id: int) -> None:
    """List employees assigned to a location."""
    from flora_admin.cli import relation_view, run

    async def _list():
        async with relation_view(LocationEmployeeBackend, location_id) as view:
            return view.items

    relations = run(_list())
    if not relations:
        print(f"No employees assigned to location {location_id}")
        return

    print(f"Employees at location {location_id}:\n")
    for relation in relations:
        role = "manager" if relation.is_manager else "employee"
        email = relation.metadata.get("email", "")
        print(f"  {relation.target_id}: {relation.metadata.get('display_name', '')} <{email}> ({role})")


@employee_app.command
def assign(location_id: int, user_id: int, manager: bool = False) -> None:
    """Assign a staff member to a location."""
    from flora_admin.cli import relation_view, run

    async def _assign():
        async with relation_view(LocationEmployeeBackend, location_id) as view:
            await view.assign(user_id, is_manager=manager)

    run(_assign())


@employee_app.command
def role(location_id: int, user_id: int, manager: bool = False) -> None:
    """Change whether an assigned employee manages the location."""
    from flora_admin.cli import relation_view, run

    async def _role():
        async with relation_view(LocationEmployeeBackend, location_id) as view:
            await view.update(user_id, is_manager=manager)

    run(_role())


@employee_app.command
def remove(location_id: int, user_id: int) -> None:
    """Remove an employee from a location."""
    from flora_admin.cli import relation_view, run

    async def _remove():
        async with relation_view(LocationEmployeeBackend, location_id) as view:
            await view.remove(user_id)

    run(_remove())
