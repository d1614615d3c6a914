"""Unit tests for webhook payload normalization."""

import hashlib

import orjson
import pytest

from restock_service.errors import MalformedEvent
from restock_service.services.normalizer import RestockEvent, normalize


def _body(payload: object) -> bytes:
    return orjson.dumps(payload)


class TestInventoryLevelPayload:
    def test_inventory_item_and_available(self) -> None:
        event = normalize(_body({"inventory_item_id": 77, "location_id": 9, "available": 5}))
        assert event.inventory_item_id == "77"
        assert event.variant_id is None
        assert event.product_id is None
        assert event.available_quantity == 5
        assert event.is_actionable

    def test_zero_available_not_actionable(self) -> None:
        event = normalize(_body({"inventory_item_id": 77, "available": 0}))
        assert not event.is_actionable

    def test_negative_available_not_actionable(self) -> None:
        event = normalize(_body({"inventory_item_id": 77, "available": -2}))
        assert not event.is_actionable

    def test_string_quantity_coerced(self) -> None:
        event = normalize(_body({"inventory_item_id": "77", "available": " 3 "}))
        assert event.available_quantity == 3


class TestVariantPayload:
    def test_variant_id_taken_from_id(self) -> None:
        event = normalize(
            _body(
                {
                    "id": 4001,
                    "product_id": 300,
                    "inventory_item_id": 77,
                    "inventory_quantity": 2,
                }
            )
        )
        assert event.variant_id == "4001"
        assert event.product_id == "300"
        assert event.inventory_item_id == "77"
        assert event.available_quantity == 2

    def test_explicit_variant_id_wins_over_id(self) -> None:
        event = normalize(
            _body({"id": 1, "variant_id": 2, "product_id": 3, "inventory_quantity": 1})
        )
        assert event.variant_id == "2"

    def test_available_preferred_over_inventory_quantity(self) -> None:
        event = normalize(
            _body({"variant_id": 2, "available": 4, "inventory_quantity": 9})
        )
        assert event.available_quantity == 4

    def test_id_ignored_without_variant_shape(self) -> None:
        event = normalize(_body({"id": 1, "inventory_item_id": 77, "available": 1}))
        assert event.variant_id is None


class TestMatchCriterion:
    def test_inventory_item_has_priority(self) -> None:
        event = RestockEvent(
            available_quantity=1,
            dedupe_key="k",
            inventory_item_id="77",
            variant_id="2",
            product_id="3",
        )
        assert event.match_criterion() == ("inventory_item_id", "77")

    def test_variant_before_product(self) -> None:
        event = RestockEvent(available_quantity=1, dedupe_key="k", variant_id="2", product_id="3")
        assert event.match_criterion() == ("variant_id", "2")

    def test_product_last(self) -> None:
        event = RestockEvent(available_quantity=1, dedupe_key="k", product_id="3")
        assert event.match_criterion() == ("product_id", "3")

    def test_no_identifier_is_malformed(self) -> None:
        event = RestockEvent(available_quantity=1, dedupe_key="k")
        with pytest.raises(MalformedEvent):
            event.match_criterion()


class TestDedupeKey:
    def test_header_id_used_when_present(self) -> None:
        event = normalize(_body({"inventory_item_id": 1, "available": 1}), event_id="wh-123")
        assert event.dedupe_key == "wh-123"

    def test_body_digest_otherwise(self) -> None:
        body = _body({"inventory_item_id": 1, "available": 1})
        assert normalize(body).dedupe_key == hashlib.sha256(body).hexdigest()

    def test_topic_carried(self) -> None:
        event = normalize(
            _body({"inventory_item_id": 1, "available": 1}), topic="inventory_levels/update"
        )
        assert event.topic == "inventory_levels/update"


class TestMalformed:
    @pytest.mark.parametrize("body", [b"", b"not json", b"{", b"[1, 2]", b'"text"', b"42"])
    def test_non_object_bodies(self, body: bytes) -> None:
        with pytest.raises(MalformedEvent):
            normalize(body)

    def test_missing_quantity(self) -> None:
        with pytest.raises(MalformedEvent):
            normalize(_body({"inventory_item_id": 77}))

    def test_null_quantity(self) -> None:
        with pytest.raises(MalformedEvent):
            normalize(_body({"inventory_item_id": 77, "available": None}))

    @pytest.mark.parametrize("value", [True, "five", 2.5, [1], {"n": 1}])
    def test_non_integer_quantity(self, value: object) -> None:
        with pytest.raises(MalformedEvent):
            normalize(_body({"inventory_item_id": 77, "available": value}))

    def test_no_identifier_is_not_a_wildcard(self) -> None:
        with pytest.raises(MalformedEvent):
            normalize(_body({"available": 10}))

    @pytest.mark.parametrize("value", [None, "", "   ", True])
    def test_unusable_identifier_values(self, value: object) -> None:
        with pytest.raises(MalformedEvent):
            normalize(_body({"inventory_item_id": value, "available": 10}))
