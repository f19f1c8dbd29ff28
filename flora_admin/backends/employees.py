"""Employee assignments to locations through the Flora IM plugin."""

from typing import Any

import structlog

from flora_admin.backend import RelationBackend
from flora_admin.backends.taxes import parse_flag
from flora_admin.client import FloraClient, expect_list
from flora_admin.errors import ErrorKind, RemoteError
from flora_admin.models import Relation

logger = structlog.get_logger()

EMPLOYEES_PATH = "flora-im/v1/employees"


def _role(attributes: dict[str, Any]) -> str:
    """Map the ``is_manager`` attribute to the plugin's role name."""
    return "manager" if attributes.get("is_manager") else "employee"


class LocationEmployeeBackend(RelationBackend):
    """Staff members assigned to a location, optionally as manager.

    The plugin addresses assignments by their own id, so update and remove
    first look the assignment up by location and user.
    """

    relation_type = "employee"
    label = "employee"

    def __init__(self, client: FloraClient) -> None:
        """Initialize the backend.

        Args:
            client: Flora REST client
        """
        self.client = client

    def _employee_to_relation(self, owner_id: int, employee: dict[str, Any]) -> Relation:
        """Convert a Flora IM employee assignment to a Relation.

        Raises:
            RemoteError: The assignment has no usable user or location id
        """
        try:
            user_id = int(employee["user_id"])
            location_id = int(employee.get("location_id") or owner_id)
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteError(f"Malformed employee assignment: {employee!r}", ErrorKind.SERVER) from e

        return Relation(
            owner_id=location_id,
            target_id=user_id,
            relation_type=self.relation_type,
            attributes={"is_manager": employee.get("role") == "manager"},
            metadata={
                "assignment_id": employee.get("id"),
                "username": employee.get("user_name") or "",
                "email": employee.get("user_email") or "",
                "display_name": employee.get("user_name") or "",
                "assigned_at": employee.get("assigned_at"),
                "is_primary": parse_flag(employee.get("is_primary")),
            },
        )

    async def _fetch(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Query assignments; the plugin wraps them in ``{"employees": [...]}``."""
        data = await self.client.get(EMPLOYEES_PATH, params=params)
        return expect_list(data, EMPLOYEES_PATH, envelope="employees")

    async def _find_assignment(self, owner_id: int, target_id: int) -> dict[str, Any]:
        """Look up the assignment of a user at a location.

        Raises:
            RemoteError: No such assignment (404)
        """
        employees = await self._fetch({"location_id": owner_id, "user_id": target_id})
        for employee in employees:
            relation = self._employee_to_relation(owner_id, employee)
            if relation.target_id == target_id and relation.owner_id == owner_id and employee.get("id") is not None:
                return employee
        logger.warning("Employee assignment not found", owner_id=owner_id, target_id=target_id)
        raise RemoteError("Employee assignment not found", ErrorKind.CLIENT, status_code=404)

    async def list_relations(self, owner_id: int) -> list[Relation]:
        """List the employees assigned to a location."""
        logger.info("Listing location employees", owner_id=owner_id)
        employees = await self._fetch({"location_id": owner_id})
        relations = [self._employee_to_relation(owner_id, employee) for employee in employees]
        logger.info("Listed location employees", owner_id=owner_id, count=len(relations))
        return relations

    async def assign(self, owner_id: int, target_id: int, attributes: dict[str, Any]) -> Relation:
        """Assign a user to a location as an active, non-primary employee."""
        logger.info("Assigning employee to location", owner_id=owner_id, target_id=target_id, role=_role(attributes))
        data = await self.client.post(
            EMPLOYEES_PATH,
            json_data={
                "user_id": target_id,
                "location_id": owner_id,
                "role": _role(attributes),
                "is_primary": "0",
                "status": "active",
            },
        )
        logger.info("Employee assigned", owner_id=owner_id, target_id=target_id)
        assignment_id = data.get("id") if isinstance(data, dict) else None
        return Relation(
            owner_id=owner_id,
            target_id=target_id,
            relation_type=self.relation_type,
            attributes={"is_manager": bool(attributes.get("is_manager"))},
            metadata={"assignment_id": assignment_id},
        )

    async def update(self, owner_id: int, target_id: int, attributes: dict[str, Any]) -> Relation:
        """Change the role of an assigned employee."""
        logger.info("Updating employee role", owner_id=owner_id, target_id=target_id, role=_role(attributes))
        assignment = await self._find_assignment(owner_id, target_id)
        await self.client.put(f"{EMPLOYEES_PATH}/{assignment['id']}", json_data={"role": _role(attributes)})
        logger.info("Employee role updated", owner_id=owner_id, target_id=target_id)
        relation = self._employee_to_relation(owner_id, assignment)
        relation.attributes["is_manager"] = bool(attributes.get("is_manager"))
        return relation

    async def remove(self, owner_id: int, target_id: int) -> None:
        """Remove an employee from a location."""
        logger.info("Removing employee from location", owner_id=owner_id, target_id=target_id)
        assignment = await self._find_assignment(owner_id, target_id)
        await self.client.delete(f"{EMPLOYEES_PATH}/{assignment['id']}")
        logger.info("Employee removed", owner_id=owner_id, target_id=target_id)
