"""Order edits — item replacement and detail updates."""

from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.changelog import ChangelogAction, record_change
from fulfillment.order.creation import assert_products_exist, parse_items
from fulfillment.order.order import Order, OrderPriority, load_order


@fulfillment.command(part_of="Order")
class ReplaceOrderItems:
    """Replace every item on a pending order."""

    order_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of {product_id, quantity}
    actor_id = String(max_length=100)


@fulfillment.command(part_of="Order")
class UpdateOrderDetails:
    """Edit scheduling fields of an open order."""

    order_id = Identifier(required=True)
    estimated_shipping_date = DateTime()
    priority = String(max_length=20, choices=OrderPriority)
    notes = Text()
    actor_id = String(max_length=100)


@fulfillment.command_handler(part_of=Order)
class OrderEditingHandler:
    @handle(ReplaceOrderItems)
    def replace_items(self, command):
        order = load_order(command.order_id)
        items_data = parse_items(command.items)
        assert_products_exist(items_data)

        previous_items = order.replace_items(items_data, command.actor_id)
        current_domain.repository_for(Order).add(order)
        record_change(
            order_id=str(order.id),
            user_id=command.actor_id,
            action=ChangelogAction.UPDATE,
            changes={"items": order.item_snapshot()},
            previous_values={"items": previous_items},
        )

    @handle(UpdateOrderDetails)
    def update_details(self, command):
        order = load_order(command.order_id)
        changes, previous = order.update_details(
            command.actor_id,
            estimated_shipping_date=command.estimated_shipping_date,
            priority=command.priority,
            notes=command.notes,
        )
        if not changes:
            return

        current_domain.repository_for(Order).add(order)
        record_change(
            order_id=str(order.id),
            user_id=command.actor_id,
            action=ChangelogAction.UPDATE,
            changes=changes,
            previous_values=previous,
        )
