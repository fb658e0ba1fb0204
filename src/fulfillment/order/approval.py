"""Partial-fulfillment approval gate.

Shipping an order that still has unshipped items needs an explicit approval
flag on the request. The caller's role only decides whether the client may
offer that approval (``can_approve``); it never grants shipment by itself.
"""

from dataclasses import dataclass

from fulfillment.roles import PRIVILEGED_ROLES


@dataclass(frozen=True)
class ShipDecision:
    order_id: str
    allowed: bool
    requires_approval: bool
    can_approve: bool


def can_ship(order, outstanding_count: int, approval_flag: bool | None, caller_role: str | None) -> ShipDecision:
    can_approve = caller_role in PRIVILEGED_ROLES
    if outstanding_count == 0:
        return ShipDecision(order_id=str(order.id), allowed=True, requires_approval=False, can_approve=can_approve)

    approved = approval_flag is True
    return ShipDecision(
        order_id=str(order.id),
        allowed=approved,
        requires_approval=not approved,
        can_approve=can_approve,
    )
