"""Locations and users, the owners of relations."""

from typing import Any

import structlog

from flora_admin.backends.taxes import parse_flag
from flora_admin.client import FloraClient, expect_list
from flora_admin.errors import ErrorKind, RemoteError
from flora_admin.models import ApplicationPassword, Location

logger = structlog.get_logger()

LOCATIONS_PATH = "flora-im/v1/locations"


class LocationBackend:
    """Flora IM store locations."""

    def __init__(self, client: FloraClient) -> None:
        """Initialize the backend.

        Args:
            client: Flora REST client
        """
        self.client = client

    def _to_location(self, data: dict[str, Any]) -> Location:
        """Convert a Flora IM location record to a Location.

        Raises:
            RemoteError: The record has no usable id
        """
        try:
            location_id = int(data["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteError(f"Malformed location: {data!r}", ErrorKind.SERVER) from e

        address = ", ".join(
            part for part in (data.get("address_line_1"), data.get("city"), data.get("state")) if part
        )
        return Location(
            id=location_id,
            name=data.get("name") or "",
            is_default=parse_flag(data.get("is_default")),
            is_active=parse_flag(data.get("is_active", True)),
            address=address,
            metadata={k: v for k, v in data.items() if k not in ("id", "name", "is_default", "is_active")},
        )

    async def list_locations(self) -> list[Location]:
        """List all locations; the plugin may wrap them in ``{"data": [...]}``."""
        logger.info("Listing locations")
        records = expect_list(await self.client.get(LOCATIONS_PATH), LOCATIONS_PATH, envelope="data")
        locations = [self._to_location(item) for item in records]
        logger.info("Listed locations", count=len(locations))
        return locations

    async def delete_location(self, location_id: int) -> None:
        """Delete a location. The plugin refuses to delete the default one."""
        logger.info("Deleting location", location_id=location_id)
        await self.client.delete(f"{LOCATIONS_PATH}/{location_id}")
        logger.info("Location deleted", location_id=location_id)


class UserBackend:
    """WordPress users and their application passwords."""

    def __init__(self, client: FloraClient) -> None:
        """Initialize the backend.

        Args:
            client: Flora REST client
        """
        self.client = client

    async def list_users(self, per_page: int = 100) -> list[dict[str, Any]]:
        """List WordPress users with their edit-context fields."""
        logger.info("Listing users", per_page=per_page)
        data = await self.client.get("wp/v2/users", params={"per_page": per_page, "context": "edit"})
        return expect_list(data, "wp/v2/users")

    async def list_application_passwords(self, user_id: int) -> list[ApplicationPassword]:
        """List the application passwords of a user.

        Raises:
            RemoteError: The response is not a list of password records
        """
        logger.debug("Listing application passwords", user_id=user_id)
        path = f"wp/v2/users/{user_id}/application-passwords"
        records = expect_list(await self.client.get(path), path)
        try:
            return [
                ApplicationPassword(
                    uuid=item["uuid"],
                    name=item.get("name") or "",
                    created=item.get("created"),
                    last_used=item.get("last_used"),
                )
                for item in records
            ]
        except KeyError as e:
            raise RemoteError(f"Malformed application password from {path}", ErrorKind.SERVER) from e
