"""Unshipped item resolution — authorization and follow-up fulfillment.

Authorization is restricted to office roles; warehouse staff record
shortfalls but cannot clear them.
"""

import json

from protean import handle
from protean.fields import Identifier, String, Text

from fulfillment.domain import fulfillment
from fulfillment.errors import PermissionDenied
from fulfillment.roles import AUTHORIZING_ROLES, Role
from fulfillment.shortfall.ledger import UnshippedItemLedger
from fulfillment.shortfall.unshipped_item import UnshippedItem


@fulfillment.command(part_of="UnshippedItem")
class AuthorizeUnshippedItems:
    """Clear unshipped items for shipment in a follow-up order."""

    item_ids = Text(required=True)  # JSON list of UnshippedItem IDs
    actor_id = String(required=True, max_length=100)
    actor_role = String(max_length=50, choices=Role)


@fulfillment.command(part_of="UnshippedItem")
class FulfillUnshippedItems:
    """Mark unshipped items as delivered by a follow-up order."""

    item_ids = Text(required=True)  # JSON list of UnshippedItem IDs
    fulfilled_in_order_id = Identifier(required=True)
    actor_id = String(max_length=100)


def _parse_ids(raw) -> list[str]:
    ids = json.loads(raw) if isinstance(raw, str) else raw
    return [str(i) for i in ids or []]


@fulfillment.command_handler(part_of=UnshippedItem)
class UnshippedItemHandler:
    @handle(AuthorizeUnshippedItems)
    def authorize(self, command):
        if command.actor_role not in AUTHORIZING_ROLES:
            raise PermissionDenied(
                {"actor_role": [f"Role {command.actor_role} cannot authorize unshipped items"]}
            )
        items = UnshippedItemLedger().authorize(
            _parse_ids(command.item_ids),
            command.actor_id,
            command.actor_role,
        )
        return [str(item.id) for item in items]

    @handle(FulfillUnshippedItems)
    def fulfill(self, command):
        items = UnshippedItemLedger().mark_fulfilled(
            _parse_ids(command.item_ids),
            str(command.fulfilled_in_order_id),
        )
        return [str(item.id) for item in items]
