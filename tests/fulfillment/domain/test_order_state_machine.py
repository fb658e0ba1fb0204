"""Tests for Order state machine transitions."""

import pytest
from fulfillment.errors import InvalidTransition
from fulfillment.order.events import OrderDeleted, OrderStatusChanged, PartialShipmentApproved
from fulfillment.order.order import Order, OrderStatus
from protean.exceptions import ValidationError


def _make_order(**overrides):
    defaults = {
        "order_number": "ORD-0001",
        "customer_id": "cust-001",
        "items_data": [
            {"product_id": "prod-a", "quantity": 5},
            {"product_id": "prod-b", "quantity": 2},
        ],
        "actor_id": "user-front",
    }
    defaults.update(overrides)
    order = Order.create(**defaults)
    order._events.clear()
    return order


def _advance_to_picked(order):
    order.record_pick([(item, item.quantity) for item in order.items], "user-wh", has_shortfall=False)
    order._events.clear()
    return order


def _advance_to_shipped(order):
    _advance_to_picked(order)
    order.ship("user-wh", "warehouse", unshipped_item_count=0, approved=False)
    order._events.clear()
    return order


class TestOrderCreation:
    def test_new_order_is_pending(self):
        order = _make_order()
        assert order.status == OrderStatus.PENDING.value
        assert len(order.items) == 2

    def test_quantities_below_one_become_one(self):
        order = _make_order(items_data=[{"product_id": "prod-a", "quantity": 0}, {"product_id": "prod-b", "quantity": -3}])
        assert [i.quantity for i in order.items] == [1, 1]

    def test_order_needs_items(self):
        with pytest.raises(ValidationError) as exc_info:
            Order.create(order_number="ORD-0002", customer_id="cust-001", items_data=[])
        assert "items" in exc_info.value.messages


class TestValidTransitions:
    def test_pending_to_picked(self):
        order = _advance_to_picked(_make_order())
        assert order.status == OrderStatus.PICKED.value

    def test_pick_accumulates_picked_quantity(self):
        order = _make_order()
        item = order.items[0]
        order.record_pick([(item, 3)], "user-wh", has_shortfall=True)
        order.record_pick([(item, 1)], "user-wh", has_shortfall=True)
        assert item.picked_quantity == 4
        assert order.is_partial_fulfillment is True

    def test_picked_to_picked(self):
        order = _advance_to_picked(_make_order())
        order.record_pick([], "user-wh", has_shortfall=False)
        assert order.status == OrderStatus.PICKED.value

    def test_picked_to_shipped(self):
        order = _advance_to_shipped(_make_order())
        assert order.status == OrderStatus.SHIPPED.value
        assert order.actual_shipping_date is not None
        assert order.is_partial_fulfillment is False

    def test_pending_to_cancelled(self):
        order = _make_order()
        restock = order.cancel("user-front")
        assert order.status == OrderStatus.CANCELLED.value
        assert restock == []

    def test_picked_to_cancelled_returns_picked_quantities(self):
        order = _advance_to_picked(_make_order())
        restock = order.cancel("user-front")
        assert order.status == OrderStatus.CANCELLED.value
        assert sorted(restock) == [("prod-a", 5), ("prod-b", 2)]

    def test_transition_raises_status_changed_event(self):
        order = _make_order()
        order.record_pick([(order.items[0], 5)], "user-wh", has_shortfall=False, unshipped_item_count=0)
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "pending"
        assert event.new_status == "picked"


class TestInvalidTransitions:
    def test_cannot_ship_pending(self):
        with pytest.raises(InvalidTransition):
            _make_order().ship("user-wh", "admin", unshipped_item_count=0, approved=True)

    def test_shipped_is_terminal(self):
        order = _advance_to_shipped(_make_order())
        with pytest.raises(InvalidTransition):
            order.cancel("user-front")
        with pytest.raises(InvalidTransition):
            order.record_pick([], "user-wh", has_shortfall=False)

    def test_cancelled_is_terminal(self):
        order = _make_order()
        order.cancel("user-front")
        with pytest.raises(InvalidTransition):
            order.record_pick([], "user-wh", has_shortfall=False)
        with pytest.raises(InvalidTransition):
            order.ship("user-wh", "admin", unshipped_item_count=0, approved=True)

    def test_invalid_transition_is_a_validation_error(self):
        order = _make_order()
        order.cancel("user-front")
        with pytest.raises(ValidationError) as exc_info:
            order.cancel("user-front")
        assert "status" in exc_info.value.messages


class TestPartialShipment:
    def test_ship_with_unshipped_items_needs_approval(self):
        order = _advance_to_picked(_make_order())
        with pytest.raises(ValidationError):
            order.ship("user-wh", "warehouse", unshipped_item_count=1, approved=False)
        assert order.status == OrderStatus.PICKED.value

    def test_approved_partial_shipment_records_approver(self):
        order = _advance_to_picked(_make_order())
        order.ship("user-mgr", "manager", unshipped_item_count=2, approved=True)

        assert order.status == OrderStatus.SHIPPED.value
        assert order.is_partial_fulfillment is True
        assert order.partial_fulfillment_approved is True
        assert order.partial_fulfillment_approved_by == "user-mgr"
        assert order.partial_fulfillment_approved_at is not None
        assert any(isinstance(e, PartialShipmentApproved) for e in order._events)


class TestEditing:
    def test_replace_items_on_pending_order(self):
        order = _make_order()
        previous = order.replace_items([{"product_id": "prod-c", "quantity": 4}], "user-front")
        assert previous == [{"product_id": "prod-a", "quantity": 5}, {"product_id": "prod-b", "quantity": 2}]
        assert order.item_snapshot() == [{"product_id": "prod-c", "quantity": 4}]

    def test_replace_items_rejected_after_pick(self):
        order = _advance_to_picked(_make_order())
        with pytest.raises(ValidationError):
            order.replace_items([{"product_id": "prod-c", "quantity": 4}], "user-front")

    def test_update_details_reports_changes(self):
        order = _make_order()
        changes, previous = order.update_details("user-front", priority="urgent", notes="Call before delivery")
        assert changes == {"priority": "urgent", "notes": "Call before delivery"}
        assert previous == {"priority": "medium", "notes": None}
        assert order.priority == "urgent"

    def test_terminal_order_cannot_be_edited(self):
        order = _advance_to_shipped(_make_order())
        with pytest.raises(ValidationError):
            order.update_details("user-front", notes="Too late")


class TestReturnsAndDeletion:
    def test_return_bounded_by_picked_quantity(self):
        order = _advance_to_shipped(_make_order())
        item = order.items[0]
        order.record_return([(item, 3)], "user-wh")
        assert item.returned_quantity == 3
        with pytest.raises(ValidationError):
            order.record_return([(item, 3)], "user-wh")

    def test_return_requires_shipped_order(self):
        order = _advance_to_picked(_make_order())
        with pytest.raises(ValidationError):
            order.record_return([(order.items[0], 1)], "user-wh")

    def test_shipped_order_cannot_be_deleted(self):
        order = _advance_to_shipped(_make_order())
        with pytest.raises(InvalidTransition):
            order.mark_deleted("user-admin")

    def test_mark_deleted_raises_event(self):
        order = _make_order()
        order.mark_deleted("user-admin")
        assert isinstance(order._events[-1], OrderDeleted)
