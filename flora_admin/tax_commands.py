"""Tax assignment commands for flora-admin CLI."""

from cyclopts import App

from flora_admin.backends.taxes import LocationTaxBackend

tax_app = App(name="tax", help="Manage tax rates assigned to locations")


@tax_app.command(name="list")
def list_taxes(location_id: int) -> None:
    """List tax rates assigned to a location."""
    from flora_admin.cli import relation_view, run

    async def _list():
        async with relation_view(LocationTaxBackend, location_id) as view:
            return view.items

    relations = run(_list())
    if not relations:
        print(f"No tax rates assigned to location {location_id}")
        return

    print(f"Tax rates for location {location_id}:\n")
    for relation in relations:
        marker = "*" if relation.is_default else " "
        name = relation.metadata.get("name", "")
        rate = relation.metadata.get("rate", "")
        print(f"{marker} {relation.target_id}: {name} ({rate}%)")


@tax_app.command
def rates() -> None:
    """List the tax rate catalog."""
    from flora_admin.cli import run, session

    async def _rates():
        async with session() as (client, _):
            return await LocationTaxBackend(client).list_tax_rates()

    for rate in run(_rates()):
        print(f"{rate.get('id')}: {rate.get('name', '')} ({rate.get('rate', '')}%) [{rate.get('class', 'standard')}]")


@tax_app.command
def assign(location_id: int, tax_id: int, default: bool = False, yes: bool = False) -> None:
    """Assign a tax rate to a location.

    Args:
        location_id: Location ID
        tax_id: Tax rate ID
        default: Make it the location's default tax rate
        yes: Update an existing assignment without asking
    """
    from flora_admin.cli import ask, relation_view, run

    async def _assign():
        async with relation_view(LocationTaxBackend, location_id, confirm=None if yes else ask) as view:
            await view.assign(tax_id, is_default=default)

    run(_assign())


@tax_app.command
def set_default(location_id: int, tax_id: int, default: bool = True) -> None:
    """Set or clear the default flag of an assigned tax rate."""
    from flora_admin.cli import relation_view, run

    async def _update():
        async with relation_view(LocationTaxBackend, location_id) as view:
            await view.update(tax_id, is_default=default)

    run(_update())


@tax_app.command
def remove(location_id: int, tax_id: int) -> None:
    """Remove a tax rate from a location."""
    from flora_admin.cli import relation_view, run

    async def _remove():
        async with relation_view(LocationTaxBackend, location_id) as view:
            await view.remove(tax_id)

    run(_remove())
