"""Tests for the UnshippedItem aggregate."""

import pytest
from fulfillment.shortfall.events import UnshippedItemAuthorized, UnshippedItemFulfilled, UnshippedItemRecorded
from fulfillment.shortfall.unshipped_item import UnshippedItem
from protean.exceptions import ValidationError


def _make_item(quantity=2):
    return UnshippedItem.record(
        order_id="ord-001",
        order_number="ORD-0001",
        product_id="prod-a",
        customer_id="cust-001",
        quantity=quantity,
        notes="Partially fulfilled order. 3 out of 5 shipped.",
    )


class TestRecord:
    def test_new_item_is_outstanding(self):
        item = _make_item()
        assert item.is_outstanding
        assert item.authorized is False
        assert item.shipped is False
        assert isinstance(item._events[-1], UnshippedItemRecorded)

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _make_item(quantity=0)


class TestAuthorize:
    def test_authorize_records_actor(self):
        item = _make_item()
        item.authorize("user-front", "front_office")
        assert item.authorized is True
        assert item.authorized_by == "user-front"
        assert item.authorized_at is not None
        event = item._events[-1]
        assert isinstance(event, UnshippedItemAuthorized)
        assert event.authorizer_role == "front_office"

    def test_authorized_item_is_still_outstanding(self):
        item = _make_item()
        item.authorize("user-front", "front_office")
        assert item.is_outstanding

    def test_shipped_item_cannot_be_authorized(self):
        item = _make_item()
        item.mark_shipped("ord-002")
        with pytest.raises(ValidationError):
            item.authorize("user-front", "front_office")


class TestMarkShipped:
    def test_mark_shipped(self):
        item = _make_item()
        item.mark_shipped("ord-002")
        assert item.shipped is True
        assert item.shipped_in_order_id == "ord-002"
        assert item.shipped_at is not None
        assert not item.is_outstanding
        assert isinstance(item._events[-1], UnshippedItemFulfilled)

    def test_cannot_ship_twice(self):
        item = _make_item()
        item.mark_shipped("ord-002")
        with pytest.raises(ValidationError):
            item.mark_shipped("ord-003")
