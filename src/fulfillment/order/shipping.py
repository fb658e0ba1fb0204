"""Order shipping — command and handler.

An order with outstanding unshipped items ships only when the request
carries explicit approval. Without it the handler returns ApprovalRequired
and writes nothing.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.approval import can_ship
from fulfillment.order.changelog import ChangelogAction, record_change
from fulfillment.order.order import Order, OrderStatus, load_order
from fulfillment.order.results import ApprovalRequired, StatusChanged
from fulfillment.roles import Role
from fulfillment.shortfall.ledger import UnshippedItemLedger

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class ShipOrder:
    """Ship a picked order, optionally approving a partial shipment."""

    order_id = Identifier(required=True)
    approve_partial_fulfillment = Boolean(default=False)
    actor_id = String(max_length=100)
    actor_role = String(max_length=50, choices=Role)


@fulfillment.command_handler(part_of=Order)
class ShipOrderHandler:
    @handle(ShipOrder)
    def ship_order(self, command):
        order = load_order(command.order_id)
        order._assert_can_transition(OrderStatus.SHIPPED)
        previous_status = order.status

        outstanding = len(UnshippedItemLedger().list_by_order(str(order.id)))
        decision = can_ship(order, outstanding, command.approve_partial_fulfillment, command.actor_role)
        if not decision.allowed:
            logger.info(
                "Partial shipment needs approval",
                order_id=str(order.id),
                unshipped_item_count=outstanding,
                can_approve=decision.can_approve,
            )
            return ApprovalRequired(
                order_id=str(order.id),
                unshipped_item_count=outstanding,
                can_approve=decision.can_approve,
            )

        order.ship(command.actor_id, command.actor_role, outstanding, approved=decision.allowed)
        current_domain.repository_for(Order).add(order)
        record_change(
            order_id=str(order.id),
            user_id=command.actor_id,
            action=ChangelogAction.STATUS_CHANGE,
            changes={"status": OrderStatus.SHIPPED.value},
            previous_values={"status": previous_status},
            notes=f"Order status changed to {OrderStatus.SHIPPED.value}",
        )
        if outstanding:
            record_change(
                order_id=str(order.id),
                user_id=command.actor_id,
                action=ChangelogAction.PARTIAL_APPROVAL,
                changes={
                    "approved_by": command.actor_id,
                    "approver_role": command.actor_role,
                    "unshipped_item_count": outstanding,
                },
                notes=f"Partial fulfillment approved by {command.actor_role}",
            )
            logger.info(
                "Partial shipment approved",
                order_id=str(order.id),
                approved_by=command.actor_id,
                unshipped_item_count=outstanding,
            )

        return StatusChanged(
            order_id=str(order.id),
            previous_status=previous_status,
            new_status=order.status,
            unshipped_item_count=outstanding,
            is_partial_fulfillment=outstanding > 0,
        )
