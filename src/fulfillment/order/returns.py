"""Customer returns against shipped orders — command and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.changelog import ChangelogAction, record_change
from fulfillment.order.order import Order, load_order
from fulfillment.stock.ledger import StockLedger
from fulfillment.stock.product import ChangeType


@fulfillment.command(part_of="Order")
class RecordReturn:
    """Restock goods a customer sent back."""

    order_id = Identifier(required=True)
    lines = Text(required=True)  # JSON list of {product_id, quantity, order_item_id?}
    reason = Text()
    actor_id = String(max_length=100)


@fulfillment.command_handler(part_of=Order)
class RecordReturnHandler:
    @handle(RecordReturn)
    def record_return(self, command):
        order = load_order(command.order_id)
        lines = json.loads(command.lines) if isinstance(command.lines, str) else command.lines
        if not lines:
            raise ValidationError({"lines": ["At least one return line is required"]})

        returns = []
        for line in lines:
            item = order.find_item(order_item_id=line.get("order_item_id"), product_id=line.get("product_id"))
            if item is None:
                raise ValidationError({"lines": [f"Product {line.get('product_id')} is not on order {order.order_number}"]})
            quantity = int(line.get("quantity") or 0)
            if quantity < 1:
                raise ValidationError({"quantity": ["Returned quantity must be at least 1"]})
            returns.append((item, quantity))

        order.record_return(returns, command.actor_id)

        stock = StockLedger()
        for item, quantity in returns:
            stock.adjust_stock(
                str(item.product_id),
                quantity,
                ChangeType.RETURN,
                command.actor_id,
                reference=order.order_number,
                notes=command.reason,
            )

        current_domain.repository_for(Order).add(order)
        record_change(
            order_id=str(order.id),
            user_id=command.actor_id,
            action=ChangelogAction.RETURN,
            changes={
                "returned": [{"product_id": str(item.product_id), "quantity": qty} for item, qty in returns],
            },
            notes=command.reason,
        )
