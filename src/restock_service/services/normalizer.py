"""Turns authenticated webhook payloads into RestockEvents.

Upstream topics populate different identifier subsets:

- ``inventory_levels/update``: ``inventory_item_id`` and ``available``
- variant payloads: ``id`` (the variant), ``product_id``,
  ``inventory_item_id`` and ``inventory_quantity``

Any subset is accepted as long as one identifier survives. A payload with no
usable identifier is malformed; it is never treated as matching everyone.
"""

import hashlib
from dataclasses import dataclass
from typing import Any

import orjson

from restock_service.errors import MalformedEvent
from restock_service.infrastructure.database.models import MATCHABLE_FIELDS

QUANTITY_FIELDS = ("available", "inventory_quantity")


@dataclass(frozen=True, slots=True)
class RestockEvent:
    """Canonical inventory change, alive for one reconciliation pass."""

    available_quantity: int
    dedupe_key: str
    inventory_item_id: str | None = None
    variant_id: str | None = None
    product_id: str | None = None
    topic: str | None = None

    @property
    def is_actionable(self) -> bool:
        return self.available_quantity > 0

    @property
    def identifiers(self) -> dict[str, str]:
        return {
            field: getattr(self, field)
            for field in MATCHABLE_FIELDS
            if getattr(self, field) is not None
        }

    def match_criterion(self) -> tuple[str, str]:
        """The single (field, value) pair used for matching.

        Priority is inventory_item_id, then variant_id, then product_id.
        """
        for field in MATCHABLE_FIELDS:
            value = getattr(self, field)
            if value is not None:
                return field, value
        raise MalformedEvent("Event carries no catalog identifier")


def _coerce_identifier(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        text = str(value).strip()
        return text or None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return None


def _coerce_quantity(payload: dict[str, Any]) -> int:
    for field in QUANTITY_FIELDS:
        if field not in payload or payload[field] is None:
            continue
        value = payload[field]
        if isinstance(value, bool):
            raise MalformedEvent(f"{field} must be an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                raise MalformedEvent(f"{field} must be an integer") from None
        raise MalformedEvent(f"{field} must be an integer")
    raise MalformedEvent("Payload has no available quantity")


def dedupe_key_for(raw_body: bytes, event_id: str | None = None) -> str:
    """Webhook id when the sender supplied one, otherwise a body digest."""
    if event_id and event_id.strip():
        return event_id.strip()
    return hashlib.sha256(raw_body).hexdigest()


def normalize(
    raw_body: bytes, *, event_id: str | None = None, topic: str | None = None
) -> RestockEvent:
    """Parse a raw webhook body into a RestockEvent or raise MalformedEvent."""
    try:
        payload = orjson.loads(raw_body)
    except orjson.JSONDecodeError as e:
        raise MalformedEvent(f"Body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedEvent("Payload must be a JSON object")

    identifiers = {field: _coerce_identifier(payload.get(field)) for field in MATCHABLE_FIELDS}

    # Variant payloads carry their own id as "id"
    if (
        identifiers["variant_id"] is None
        and "product_id" in payload
        and "inventory_quantity" in payload
    ):
        identifiers["variant_id"] = _coerce_identifier(payload.get("id"))

    if not any(identifiers.values()):
        raise MalformedEvent("Payload carries no catalog identifier")

    return RestockEvent(
        available_quantity=_coerce_quantity(payload),
        dedupe_key=dedupe_key_for(raw_body, event_id),
        topic=topic,
        **identifiers,
    )
