"""Order cancellation — command and handler.

Cancelling a picked order puts the picked quantities back on the shelf.
Unshipped items recorded against the order are left in place.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.changelog import ChangelogAction, record_change
from fulfillment.order.order import Order, OrderStatus, load_order
from fulfillment.order.results import StatusChanged
from fulfillment.stock.ledger import StockLedger
from fulfillment.stock.product import ChangeType

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class CancelOrder:
    """Cancel an order that has not shipped."""

    order_id = Identifier(required=True)
    actor_id = String(max_length=100)


@fulfillment.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id)
        previous_status = order.status
        restock = order.cancel(command.actor_id)

        stock = StockLedger()
        for product_id, quantity in restock:
            stock.adjust_stock(
                product_id,
                quantity,
                ChangeType.CANCEL_RESTORE,
                command.actor_id,
                reference=f"Order {order.order_number} cancelled",
            )
        if restock:
            logger.info("Stock restored on cancellation", order_id=str(order.id), lines=len(restock))

        current_domain.repository_for(Order).add(order)
        record_change(
            order_id=str(order.id),
            user_id=command.actor_id,
            action=ChangelogAction.STATUS_CHANGE,
            changes={"status": OrderStatus.CANCELLED.value},
            previous_values={"status": previous_status},
            notes=f"Order status changed to {OrderStatus.CANCELLED.value}",
        )
        return StatusChanged(
            order_id=str(order.id),
            previous_status=previous_status,
            new_status=order.status,
        )
