"""Location tax rate assignments through the Flora IM plugin."""

from typing import Any

import structlog

from flora_admin.backend import RelationBackend
from flora_admin.client import FloraClient, expect_list
from flora_admin.errors import ErrorKind, RemoteError
from flora_admin.models import Relation

logger = structlog.get_logger()


def parse_flag(value: Any) -> bool:
    """Flora IM returns booleans as "1", 1, True or their negatives."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _to_int(value: Any, default: int = 0) -> int:
    """Convert a numeric field, falling back to ``default``."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class LocationTaxBackend(RelationBackend):
    """Tax rates assigned to locations, at most one of them the default."""

    relation_type = "tax"
    label = "tax rate"

    def __init__(self, client: FloraClient) -> None:
        """Initialize the backend.

        Args:
            client: Flora REST client
        """
        self.client = client

    def _mapping_to_relation(self, owner_id: int, mapping: dict[str, Any]) -> Relation:
        """Convert a Flora IM tax mapping to a Relation.

        Raises:
            RemoteError: The mapping names no tax rate
        """
        target_id = _to_int(mapping.get("tax_rate_id"))
        if target_id <= 0:
            raise RemoteError(f"Tax mapping without a valid tax_rate_id: {mapping!r}", ErrorKind.SERVER)

        metadata = {
            "name": mapping.get("tax_rate_name") or "Unnamed Tax",
            "rate": str(mapping.get("tax_rate") or 0),
            "country": mapping.get("tax_rate_country") or "",
            "state": mapping.get("tax_rate_state") or "",
            "city": mapping.get("tax_rate_city") or "",
            "postcode": mapping.get("tax_rate_postcode") or "",
            "priority": _to_int(mapping.get("tax_rate_priority"), 1) or 1,
            "compound": parse_flag(mapping.get("tax_rate_compound")),
            "shipping": parse_flag(mapping.get("tax_rate_shipping")),
            "class": mapping.get("tax_rate_class") or "standard",
        }
        for extra in ("id", "created_at", "updated_at"):
            if mapping.get(extra) is not None:
                metadata[extra] = mapping[extra]

        return Relation(
            owner_id=_to_int(mapping.get("location_id"), owner_id) or owner_id,
            target_id=target_id,
            relation_type=self.relation_type,
            attributes={"is_default": parse_flag(mapping.get("is_default"))},
            metadata=metadata,
        )

    async def list_relations(self, owner_id: int) -> list[Relation]:
        """List the tax rates assigned to a location."""
        logger.info("Listing location taxes", owner_id=owner_id)
        path = f"flora-im/v1/locations/{owner_id}/taxes"
        mappings = expect_list(await self.client.get(path), path)
        relations = [self._mapping_to_relation(owner_id, item) for item in mappings]
        logger.info("Listed location taxes", owner_id=owner_id, count=len(relations))
        return relations

    async def _post_mapping(self, owner_id: int, target_id: int, attributes: dict[str, Any]) -> Relation:
        """Create or rewrite a mapping; the plugin upserts on POST."""
        is_default = bool(attributes.get("is_default", False))
        data = await self.client.post(
            f"flora-im/v1/locations/{owner_id}/taxes",
            json_data={"tax_rate_id": target_id, "is_default": is_default},
        )
        metadata: dict[str, Any] = {}
        if isinstance(data, dict):
            for extra in ("id", "created_at", "updated_at"):
                if data.get(extra) is not None:
                    metadata[extra] = data[extra]
        return Relation(
            owner_id=owner_id,
            target_id=target_id,
            relation_type=self.relation_type,
            attributes={"is_default": is_default},
            metadata=metadata,
        )

    async def assign(self, owner_id: int, target_id: int, attributes: dict[str, Any]) -> Relation:
        """Assign a tax rate to a location."""
        logger.info("Assigning tax rate to location", owner_id=owner_id, target_id=target_id, attributes=attributes)
        relation = await self._post_mapping(owner_id, target_id, attributes)
        logger.info("Tax rate assigned", owner_id=owner_id, target_id=target_id)
        return relation

    async def update(self, owner_id: int, target_id: int, attributes: dict[str, Any]) -> Relation:
        """Change the default flag of an assigned tax rate."""
        logger.info("Updating location tax", owner_id=owner_id, target_id=target_id, attributes=attributes)
        relation = await self._post_mapping(owner_id, target_id, attributes)
        logger.info("Location tax updated", owner_id=owner_id, target_id=target_id)
        return relation

    async def remove(self, owner_id: int, target_id: int) -> None:
        """Remove a tax rate from a location."""
        logger.info("Removing tax rate from location", owner_id=owner_id, target_id=target_id)
        await self.client.delete(f"flora-im/v1/locations/{owner_id}/taxes/{target_id}")
        logger.info("Tax rate removed", owner_id=owner_id, target_id=target_id)

    async def list_tax_rates(self, per_page: int = 100) -> list[dict[str, Any]]:
        """List the WooCommerce tax rate catalog."""
        logger.debug("Listing tax rates", per_page=per_page)
        data = await self.client.get("wc/v3/taxes", params={"per_page": per_page})
        return expect_list(data, "wc/v3/taxes")
