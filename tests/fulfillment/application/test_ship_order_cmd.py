"""Application tests for shipping orders and the partial-fulfillment approval gate."""

import json

import pytest
from fulfillment.errors import InvalidTransition
from fulfillment.order.changelog import changelog_for
from fulfillment.order.order import Order, OrderStatus
from fulfillment.order.picking import PickOrder
from fulfillment.order.results import ApprovalRequired, StatusChanged
from fulfillment.order.shipping import ShipOrder
from protean import current_domain


def _pick(order_id, lines=None):
    current_domain.process(
        PickOrder(order_id=order_id, lines=json.dumps(lines) if lines else None, actor_id="user-wh"),
        asynchronous=False,
    )


def _ship(order_id, approve=False, role="warehouse", actor="user-wh"):
    return current_domain.process(
        ShipOrder(order_id=order_id, approve_partial_fulfillment=approve, actor_id=actor, actor_role=role),
        asynchronous=False,
    )


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


@pytest.fixture()
def product_id(register_product):
    return register_product(sku="SKU-A", initial_stock=10)


@pytest.fixture()
def short_picked_order(product_id, place_order):
    order_id = place_order([{"product_id": product_id, "quantity": 5}])
    _pick(order_id, [{"product_id": product_id, "requested_quantity": 5, "actual_quantity": 3}])
    return order_id


class TestShipComplete:
    def test_ships_without_approval(self, product_id, place_order):
        order_id = place_order([{"product_id": product_id, "quantity": 2}])
        _pick(order_id)

        result = _ship(order_id)

        assert isinstance(result, StatusChanged)
        assert result.new_status == OrderStatus.SHIPPED.value
        order = _order(order_id)
        assert order.status == OrderStatus.SHIPPED.value
        assert order.actual_shipping_date is not None
        assert order.is_partial_fulfillment is False

    def test_pending_order_cannot_ship(self, product_id, place_order):
        order_id = place_order([{"product_id": product_id, "quantity": 2}])
        with pytest.raises(InvalidTransition):
            _ship(order_id)


class TestShipWithRemainder:
    def test_refused_without_approval(self, short_picked_order):
        changelog_before = len(changelog_for(short_picked_order))

        result = _ship(short_picked_order, approve=False, role="admin")

        assert isinstance(result, ApprovalRequired)
        assert result.requires_approval is True
        assert result.is_partial_fulfillment is True
        assert result.unshipped_item_count == 1
        assert result.order_id == short_picked_order
        assert _order(short_picked_order).status == OrderStatus.PICKED.value
        assert len(changelog_for(short_picked_order)) == changelog_before

    def test_can_approve_reflects_role(self, short_picked_order):
        assert _ship(short_picked_order, role="manager").can_approve is True
        assert _ship(short_picked_order, role="warehouse").can_approve is False

    def test_approved_shipment(self, short_picked_order):
        result = _ship(short_picked_order, approve=True, role="manager", actor="user-mgr")

        assert isinstance(result, StatusChanged)
        assert result.unshipped_item_count == 1
        order = _order(short_picked_order)
        assert order.status == OrderStatus.SHIPPED.value
        assert order.is_partial_fulfillment is True
        assert order.partial_fulfillment_approved is True
        assert order.partial_fulfillment_approved_by == "user-mgr"

    def test_approval_is_logged_with_role(self, short_picked_order):
        _ship(short_picked_order, approve=True, role="manager", actor="user-mgr")

        entries = changelog_for(short_picked_order)
        assert [e.action for e in entries][-2:] == ["status_change", "partial_approval"]
        approval = entries[-1]
        assert approval.user_id == "user-mgr"
        assert approval.changes_data["approver_role"] == "manager"

    def test_approval_flag_alone_is_enough(self, short_picked_order):
        result = _ship(short_picked_order, approve=True, role="warehouse")
        assert isinstance(result, StatusChanged)

    def test_shipped_order_is_terminal(self, short_picked_order):
        _ship(short_picked_order, approve=True, role="admin")
        with pytest.raises(InvalidTransition):
            _ship(short_picked_order, approve=True, role="admin")
