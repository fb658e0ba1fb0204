"""Order creation — command and handler.

A customer who still has unshipped items from earlier orders gets the new
order anyway; the count is returned and broadcast as a warning.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.changelog import ChangelogAction, record_change
from fulfillment.order.order import Order, OrderPriority
from fulfillment.order.results import OrderPlaced
from fulfillment.shortfall.ledger import UnshippedItemLedger
from fulfillment.stock.ledger import StockLedger

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class CreateOrder:
    """Enter a new pending order."""

    customer_id = String(required=True, max_length=255)
    items = Text(required=True)  # JSON list of {product_id, quantity}
    order_number = String(max_length=50)
    estimated_shipping_date = DateTime()
    priority = String(max_length=20, choices=OrderPriority)
    notes = Text()
    actor_id = String(max_length=100)


def _next_order_number(repo) -> str:
    taken = {o.order_number for o in repo._dao.query.limit(None).all().items}
    sequence = len(taken) + 1
    while f"ORD-{sequence:04d}" in taken:
        sequence += 1
    return f"ORD-{sequence:04d}"


def parse_items(raw) -> list[dict]:
    items = json.loads(raw) if isinstance(raw, str) else raw
    return list(items or [])


def assert_products_exist(items_data: list[dict]) -> None:
    ledger = StockLedger()
    for item in items_data:
        ledger.load(str(item["product_id"]))


@fulfillment.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        repo = current_domain.repository_for(Order)

        order_number = command.order_number or _next_order_number(repo)
        if repo._dao.query.filter(order_number=order_number).limit(None).all().items:
            raise ValidationError({"order_number": [f"Order number {order_number} is already in use"]})

        items_data = parse_items(command.items)
        assert_products_exist(items_data)

        outstanding = UnshippedItemLedger().list_by_customer(command.customer_id)
        if outstanding:
            logger.warning(
                "Customer has unshipped items from earlier orders",
                customer_id=command.customer_id,
                unshipped_item_count=len(outstanding),
            )

        order = Order.create(
            order_number=order_number,
            customer_id=command.customer_id,
            items_data=items_data,
            actor_id=command.actor_id,
            priority=command.priority,
            notes=command.notes,
            estimated_shipping_date=command.estimated_shipping_date,
            customer_unshipped_item_count=len(outstanding),
        )
        repo.add(order)
        record_change(
            order_id=str(order.id),
            user_id=command.actor_id,
            action=ChangelogAction.CREATE,
            changes={
                "order_number": order_number,
                "customer_id": command.customer_id,
                "items": order.item_snapshot(),
            },
        )
        return OrderPlaced(
            order_id=str(order.id),
            order_number=order_number,
            customer_unshipped_item_count=len(outstanding),
        )
