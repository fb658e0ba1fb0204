"""Notification emitter — turns committed domain events into broadcasts.

Publishing is fire-and-forget: a failing broadcast or chat channel is
logged and never propagates back into the transition that caused it.
"""

import json
import os

import structlog

from fulfillment.notification import get_broadcaster, get_chat_channel
from fulfillment.order.order import OrderStatus

logger = structlog.get_logger(__name__)

ORDER_CREATED = "orderCreated"
ORDER_STATUS_CHANGE = "orderStatusChange"
ORDER_ITEMS_UPDATED = "orderItemsUpdated"
ORDER_DELETED = "orderDeleted"
UNSHIPPED_ITEM_AUTHORIZED = "unshippedItemAuthorized"
UNSHIPPED_ITEM_FULFILLED = "unshippedItemFulfilled"
NOTIFICATION = "notification"


class NotificationEmitter:
    def __init__(self, broadcaster=None, chat=None):
        self._broadcaster = broadcaster
        self._chat = chat

    @property
    def broadcaster(self):
        return self._broadcaster or get_broadcaster()

    @property
    def chat(self):
        return self._chat or get_chat_channel()

    def publish(self, event_type: str, payload: dict) -> bool:
        """Publish one event. Returns False when delivery failed."""
        try:
            self.broadcaster.publish({"type": event_type, "payload": payload})
        except Exception as exc:
            logger.error("Broadcast publish failed", event_type=event_type, error=str(exc))
            return False
        return True

    def post_to_chat(self, message: str) -> None:
        channel = os.environ.get("NOTIFICATION_CHAT_CHANNEL", "#warehouse")
        try:
            result = self.chat.send(channel, message)
        except Exception as exc:
            logger.error("Chat message failed", channel=channel, error=str(exc))
            return
        if result.get("status") != "sent":
            logger.warning("Chat message not delivered", channel=channel, error=result.get("error"))

    # -------------------------------------------------------------------
    # Order events
    # -------------------------------------------------------------------
    def order_created(self, event) -> None:
        self.publish(
            ORDER_CREATED,
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "customer_id": event.customer_id,
                "item_count": event.item_count,
            },
        )
        if event.customer_unshipped_item_count:
            self.publish(
                NOTIFICATION,
                {
                    "level": "warning",
                    "message": (
                        f"Customer {event.customer_id} has {event.customer_unshipped_item_count} "
                        "unshipped item(s) from previous orders"
                    ),
                    "order_id": str(event.order_id),
                    "customer_id": event.customer_id,
                    "unshipped_item_count": event.customer_unshipped_item_count,
                    "requires_authorization": False,
                },
            )
        self.post_to_chat(f"New order {event.order_number} for {event.customer_id} ({event.item_count} item(s))")

    def order_items_updated(self, event) -> None:
        self.publish(
            ORDER_ITEMS_UPDATED,
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "items": json.loads(event.items),
            },
        )

    def order_status_changed(self, event) -> None:
        self.publish(
            ORDER_STATUS_CHANGE,
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "previous_status": event.previous_status,
                "new_status": event.new_status,
                "unshipped_item_count": event.unshipped_item_count or 0,
            },
        )
        if event.new_status == OrderStatus.SHIPPED.value and event.unshipped_item_count:
            self.publish(
                NOTIFICATION,
                {
                    "level": "info",
                    "message": (
                        f"Order {event.order_number} shipped with {event.unshipped_item_count} "
                        "unshipped item(s) awaiting authorization"
                    ),
                    "order_id": str(event.order_id),
                    "order_number": event.order_number,
                    "customer_id": event.customer_id,
                    "unshipped_item_count": event.unshipped_item_count,
                    "requires_authorization": True,
                },
            )

    def partial_shipment_approved(self, event) -> None:
        self.post_to_chat(
            f"Order {event.order_number} shipped partially, {event.unshipped_item_count} item(s) outstanding "
            f"(approved by {event.approved_by})"
        )

    def order_deleted(self, event) -> None:
        self.publish(
            ORDER_DELETED,
            {"order_id": str(event.order_id), "order_number": event.order_number},
        )

    # -------------------------------------------------------------------
    # Unshipped item events
    # -------------------------------------------------------------------
    def unshipped_item_recorded(self, event) -> None:
        self.publish(
            NOTIFICATION,
            {
                "level": "warning",
                "message": f"{event.quantity} unit(s) of product {event.product_id} could not be picked",
                "item_id": str(event.item_id),
                "order_id": str(event.order_id),
                "product_id": str(event.product_id),
                "customer_id": event.customer_id,
                "quantity": event.quantity,
                "requires_authorization": True,
            },
        )

    def unshipped_item_authorized(self, event) -> None:
        self.publish(
            UNSHIPPED_ITEM_AUTHORIZED,
            {
                "item_id": str(event.item_id),
                "order_id": str(event.order_id),
                "product_id": str(event.product_id),
                "quantity": event.quantity,
                "authorized_by": event.authorized_by,
                "authorizer_role": event.authorizer_role,
            },
        )

    def unshipped_item_fulfilled(self, event) -> None:
        self.publish(
            UNSHIPPED_ITEM_FULFILLED,
            {
                "item_id": str(event.item_id),
                "order_id": str(event.order_id),
                "shipped_in_order_id": str(event.shipped_in_order_id),
            },
        )
