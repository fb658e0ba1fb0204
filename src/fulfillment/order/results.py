"""Outcomes returned by order commands."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StatusChanged:
    """The transition was applied."""

    order_id: str
    previous_status: str
    new_status: str
    unshipped_item_count: int = 0
    is_partial_fulfillment: bool = False
    requires_approval: bool = False


@dataclass(frozen=True)
class ApprovalRequired:
    """Shipment refused until a caller confirms leaving items behind.

    Nothing was changed; the client should re-submit with approval.
    """

    order_id: str
    unshipped_item_count: int
    can_approve: bool
    is_partial_fulfillment: bool = True
    requires_approval: bool = True


@dataclass(frozen=True)
class OrderPlaced:
    order_id: str
    order_number: str
    customer_unshipped_item_count: int = 0
