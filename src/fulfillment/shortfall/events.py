"""Unshipped item events."""

from protean.fields import DateTime, Identifier, Integer, String

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="UnshippedItem")
class UnshippedItemRecorded:
    """A short-picked quantity was recorded against an order."""

    __version__ = "v1"

    item_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = String(required=True)
    quantity = Integer(required=True)
    recorded_at = DateTime(required=True)


@fulfillment.event(part_of="UnshippedItem")
class UnshippedItemAuthorized:
    """An unshipped item was cleared for a follow-up order."""

    __version__ = "v1"

    item_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = String(required=True)
    quantity = Integer(required=True)
    authorized_by = String(required=True)
    authorizer_role = String()
    authorized_at = DateTime(required=True)


@fulfillment.event(part_of="UnshippedItem")
class UnshippedItemFulfilled:
    """An unshipped item was delivered by a follow-up order."""

    __version__ = "v1"

    item_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = String(required=True)
    shipped_in_order_id = Identifier(required=True)
    shipped_at = DateTime(required=True)
