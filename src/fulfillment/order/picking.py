"""Order picking — command and handler.

Each pick line takes the picked quantity off the shelf and, when less was
picked than requested, records the difference as an unshipped item. Stock
decrements, shortfall rows, the status change and its changelog entry all
commit together.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.changelog import ChangelogAction, record_change
from fulfillment.order.order import Order, OrderStatus, load_order
from fulfillment.order.results import StatusChanged
from fulfillment.shortfall.ledger import UnshippedItemLedger
from fulfillment.stock.ledger import StockLedger
from fulfillment.stock.product import ChangeType

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class PickOrder:
    """Record a picking pass; lines default to every item picked in full."""

    order_id = Identifier(required=True)
    lines = Text()  # JSON list of {product_id, order_item_id?, requested_quantity?, actual_quantity?}
    actor_id = String(max_length=100)


def _positive(value, fallback: int) -> int:
    if value is None:
        return fallback
    value = int(value)
    return value if value > 0 else 1


def resolve_pick_lines(order: Order, raw_lines) -> list[dict]:
    """Normalise pick lines against the order's items."""
    lines = json.loads(raw_lines) if isinstance(raw_lines, str) else raw_lines
    if not lines:
        return [
            {"item": item, "product_id": str(item.product_id), "requested": item.quantity, "actual": item.quantity}
            for item in order.items or []
        ]

    resolved = []
    for line in lines:
        item = order.find_item(order_item_id=line.get("order_item_id"), product_id=line.get("product_id"))
        if item is None:
            raise ValidationError({"lines": [f"Product {line.get('product_id')} is not on order {order.order_number}"]})
        requested = _positive(line.get("requested_quantity"), item.quantity)
        actual = _positive(line.get("actual_quantity"), requested)
        resolved.append({"item": item, "product_id": str(item.product_id), "requested": requested, "actual": actual})
    return resolved


@fulfillment.command_handler(part_of=Order)
class PickOrderHandler:
    @handle(PickOrder)
    def pick_order(self, command):
        order = load_order(command.order_id)
        order._assert_can_transition(OrderStatus.PICKED)
        previous_status = order.status
        lines = resolve_pick_lines(order, command.lines)

        stock = StockLedger()
        shortfalls = UnshippedItemLedger()
        has_shortfall = False
        for line in lines:
            stock.adjust_stock(
                line["product_id"],
                -line["actual"],
                ChangeType.PICK,
                command.actor_id,
                reference=order.order_number,
            )
            if line["actual"] < line["requested"]:
                has_shortfall = True
                shortfalls.record_shortfall(
                    order,
                    line["product_id"],
                    line["requested"] - line["actual"],
                    notes=f"Partially fulfilled order. {line['actual']} out of {line['requested']} shipped.",
                )

        unshipped_count = len(shortfalls.list_by_order(str(order.id)))
        order.record_pick(
            [(line["item"], line["actual"]) for line in lines],
            command.actor_id,
            has_shortfall,
            unshipped_count,
        )
        current_domain.repository_for(Order).add(order)
        record_change(
            order_id=str(order.id),
            user_id=command.actor_id,
            action=ChangelogAction.STATUS_CHANGE,
            changes={
                "status": OrderStatus.PICKED.value,
                "picked": [
                    {"product_id": line["product_id"], "requested": line["requested"], "actual": line["actual"]}
                    for line in lines
                ],
            },
            previous_values={"status": previous_status},
            notes=f"Order status changed to {OrderStatus.PICKED.value}",
        )
        if has_shortfall:
            logger.info("Order picked short", order_id=str(order.id), unshipped_item_count=unshipped_count)

        return StatusChanged(
            order_id=str(order.id),
            previous_status=previous_status,
            new_status=order.status,
            unshipped_item_count=unshipped_count,
            is_partial_fulfillment=bool(order.is_partial_fulfillment),
        )
