"""Broadcasts for unshipped item events."""

from protean.utils.mixins import handle

from fulfillment.domain import fulfillment
from fulfillment.notification.emitter import NotificationEmitter
from fulfillment.shortfall.events import UnshippedItemAuthorized, UnshippedItemFulfilled, UnshippedItemRecorded
from fulfillment.shortfall.unshipped_item import UnshippedItem


@fulfillment.event_handler(part_of=UnshippedItem)
class UnshippedItemBroadcastHandler:
    @handle(UnshippedItemRecorded)
    def on_unshipped_item_recorded(self, event: UnshippedItemRecorded) -> None:
        NotificationEmitter().unshipped_item_recorded(event)

    @handle(UnshippedItemAuthorized)
    def on_unshipped_item_authorized(self, event: UnshippedItemAuthorized) -> None:
        NotificationEmitter().unshipped_item_authorized(event)

    @handle(UnshippedItemFulfilled)
    def on_unshipped_item_fulfilled(self, event: UnshippedItemFulfilled) -> None:
        NotificationEmitter().unshipped_item_fulfilled(event)
