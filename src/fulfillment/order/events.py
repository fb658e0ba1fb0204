"""Order domain events — immutable facts about order changes.

All events are past tense, versioned, and carry what the notification
emitter needs to build its broadcast payloads.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Order")
class OrderCreated:
    """A new order was entered."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = String(required=True)
    item_count = Integer(required=True)
    customer_unshipped_item_count = Integer(default=0)
    created_by = String()
    created_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderItemsReplaced:
    """The item list of a pending order was rewritten."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    items = Text(required=True)  # JSON list of item dicts
    previous_items = Text(required=True)  # JSON list of item dicts
    updated_by = String()
    updated_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderStatusChanged:
    """The order moved between statuses."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    unshipped_item_count = Integer(default=0)
    changed_by = String()
    changed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class PartialShipmentApproved:
    """An order shipped with items still owed, on explicit approval."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    unshipped_item_count = Integer(required=True)
    approved_by = String()
    approver_role = String()
    approved_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderDeleted:
    """An order was removed."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    deleted_by = String()
    deleted_at = DateTime(required=True)
