"""Application tests for authorizing and fulfilling unshipped items."""

import json

import pytest
from fulfillment.errors import PermissionDenied
from fulfillment.order.changelog import changelog_for
from fulfillment.order.picking import PickOrder
from fulfillment.shortfall.authorization import AuthorizeUnshippedItems, FulfillUnshippedItems
from fulfillment.shortfall.ledger import UnshippedItemLedger
from fulfillment.shortfall.unshipped_item import UnshippedItem
from protean import current_domain
from protean.exceptions import ValidationError


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _authorize(item_ids, role="front_office", actor="user-front"):
    return _process(AuthorizeUnshippedItems(item_ids=json.dumps(item_ids), actor_id=actor, actor_role=role))


@pytest.fixture()
def short_order(register_product, place_order):
    """An order picked short by two units, returning (order_id, item_id)."""
    product_id = register_product(sku="SKU-A", initial_stock=10)
    order_id = place_order([{"product_id": product_id, "quantity": 5}], customer_id="Cust-042")
    _process(
        PickOrder(
            order_id=order_id,
            lines=json.dumps([{"product_id": product_id, "requested_quantity": 5, "actual_quantity": 3}]),
            actor_id="user-wh",
        )
    )
    item_id = str(UnshippedItemLedger().list_by_order(order_id)[0].id)
    return order_id, item_id


class TestAuthorize:
    @pytest.mark.parametrize("role", ["admin", "manager", "front_office"])
    def test_office_roles_can_authorize(self, short_order, role):
        _, item_id = short_order

        assert _authorize([item_id], role=role) == [item_id]

        item = current_domain.repository_for(UnshippedItem).get(item_id)
        assert item.authorized is True
        assert item.authorized_by == "user-front"
        assert item.authorized_at is not None

    def test_warehouse_cannot_authorize(self, short_order):
        _, item_id = short_order

        with pytest.raises(PermissionDenied):
            _authorize([item_id], role="warehouse")
        assert current_domain.repository_for(UnshippedItem).get(item_id).authorized is False

    def test_authorization_is_logged_on_the_order(self, short_order):
        order_id, item_id = short_order
        _authorize([item_id], role="manager", actor="user-mgr")

        entry = changelog_for(order_id)[-1]
        assert entry.action == "unshipped_authorization"
        assert entry.user_id == "user-mgr"
        assert entry.notes == "Authorized unshipped item for future fulfillment by manager"
        assert entry.changes_data["item_id"] == item_id

    def test_unknown_ids_are_skipped(self, short_order):
        _, item_id = short_order
        assert _authorize(["does-not-exist", item_id]) == [item_id]

    def test_reauthorizing_is_a_no_op(self, short_order):
        order_id, item_id = short_order
        _authorize([item_id])
        entries_before = len(changelog_for(order_id))

        assert _authorize([item_id]) == []
        assert len(changelog_for(order_id)) == entries_before

    def test_empty_id_list_rejected(self):
        with pytest.raises(ValidationError):
            _authorize([])


class TestListings:
    def test_pending_authorization(self, short_order):
        _, item_id = short_order
        ledger = UnshippedItemLedger()
        assert [str(i.id) for i in ledger.list_pending_authorization()] == [item_id]

        _authorize([item_id])

        assert ledger.list_pending_authorization() == []

    def test_customer_lookup_ignores_case(self, short_order):
        _, item_id = short_order
        ledger = UnshippedItemLedger()

        assert [str(i.id) for i in ledger.list_by_customer("cust-042")] == [item_id]
        assert [str(i.id) for i in ledger.list_by_customer(" CUST-042 ")] == [item_id]
        assert ledger.list_by_customer("cust-999") == []

    @pytest.mark.slow
    def test_listings_are_not_truncated(self, register_product, place_order):
        product_id = register_product(sku="SKU-BULK", initial_stock=500)

        def short_pick_for(customer_id):
            order_id = place_order([{"product_id": product_id, "quantity": 2}], customer_id=customer_id)
            _process(
                PickOrder(
                    order_id=order_id,
                    lines=json.dumps([{"product_id": product_id, "requested_quantity": 2, "actual_quantity": 1}]),
                )
            )
            return order_id

        for n in range(110):
            short_pick_for(f"cust-{n:03d}")
        target_order = short_pick_for("Target")

        ledger = UnshippedItemLedger()
        assert [str(i.order_id) for i in ledger.list_by_customer("target")] == [target_order]
        assert len(ledger.list_pending_authorization()) == 111

    def test_authorized_items_stay_outstanding(self, short_order):
        order_id, item_id = short_order
        _authorize([item_id])
        assert len(UnshippedItemLedger().list_by_order(order_id)) == 1


class TestFulfill:
    def test_fulfilled_items_leave_the_outstanding_lists(self, short_order, place_order, register_product):
        order_id, item_id = short_order
        _authorize([item_id])
        follow_up = place_order([{"product_id": register_product(sku="SKU-F"), "quantity": 2}], customer_id="cust-042")

        result = _process(
            FulfillUnshippedItems(item_ids=json.dumps([item_id]), fulfilled_in_order_id=follow_up, actor_id="user-wh")
        )

        assert result == [item_id]
        item = current_domain.repository_for(UnshippedItem).get(item_id)
        assert item.shipped is True
        assert str(item.shipped_in_order_id) == follow_up
        assert item.shipped_at is not None
        ledger = UnshippedItemLedger()
        assert ledger.list_by_order(order_id) == []
        assert ledger.list_by_customer("cust-042") == []

    def test_fulfilling_twice_is_a_no_op(self, short_order):
        _, item_id = short_order
        _process(FulfillUnshippedItems(item_ids=json.dumps([item_id]), fulfilled_in_order_id="ord-next"))

        again = _process(FulfillUnshippedItems(item_ids=json.dumps([item_id]), fulfilled_in_order_id="ord-later"))

        assert again == []

    def test_shipped_items_cannot_be_authorized(self, short_order):
        _, item_id = short_order
        _process(FulfillUnshippedItems(item_ids=json.dumps([item_id]), fulfilled_in_order_id="ord-next"))

        assert _authorize([item_id]) == []
