"""Broadcasts for order events.

Runs after the unit of work that raised the event has committed.
"""

from protean.utils.mixins import handle

from fulfillment.domain import fulfillment
from fulfillment.notification.emitter import NotificationEmitter
from fulfillment.order.events import (
    OrderCreated,
    OrderDeleted,
    OrderItemsReplaced,
    OrderStatusChanged,
    PartialShipmentApproved,
)
from fulfillment.order.order import Order


@fulfillment.event_handler(part_of=Order)
class OrderBroadcastHandler:
    @handle(OrderCreated)
    def on_order_created(self, event: OrderCreated) -> None:
        NotificationEmitter().order_created(event)

    @handle(OrderItemsReplaced)
    def on_order_items_replaced(self, event: OrderItemsReplaced) -> None:
        NotificationEmitter().order_items_updated(event)

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        NotificationEmitter().order_status_changed(event)

    @handle(PartialShipmentApproved)
    def on_partial_shipment_approved(self, event: PartialShipmentApproved) -> None:
        NotificationEmitter().partial_shipment_approved(event)

    @handle(OrderDeleted)
    def on_order_deleted(self, event: OrderDeleted) -> None:
        NotificationEmitter().order_deleted(event)
