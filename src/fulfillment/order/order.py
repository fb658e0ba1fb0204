"""Order aggregate (CQRS) — the order state machine.

Only the transition methods below change ``status``. Stock movements and
shortfall rows that accompany a transition are written by the command
handlers through the stock and unshipped item ledgers, in the same unit of
work as the status change.

State Machine:
    PENDING → PICKED → SHIPPED
    PICKED → PICKED            (re-pick)
    {PENDING, PICKED} → CANCELLED
    SHIPPED and CANCELLED are terminal.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.errors import InvalidTransition, OrderNotFound
from fulfillment.order.events import (
    OrderCreated,
    OrderDeleted,
    OrderItemsReplaced,
    OrderStatusChanged,
    PartialShipmentApproved,
)


class OrderStatus(Enum):
    PENDING = "pending"
    PICKED = "picked"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"


class OrderPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PICKED, OrderStatus.CANCELLED},
    OrderStatus.PICKED: {OrderStatus.PICKED, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: set(),  # terminal
    OrderStatus.CANCELLED: set(),  # terminal
}

_TERMINAL_STATUSES = {OrderStatus.SHIPPED, OrderStatus.CANCELLED}


@fulfillment.entity(part_of="Order")
class OrderItem:
    """A product line on the order."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    picked_quantity = Integer(default=0, min_value=0)
    returned_quantity = Integer(default=0, min_value=0)


@fulfillment.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    customer_id = String(required=True, max_length=255)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    items = HasMany(OrderItem)
    priority = String(
        max_length=20,
        choices=OrderPriority,
        default=OrderPriority.MEDIUM.value,
    )
    notes = Text()
    estimated_shipping_date = DateTime()
    actual_shipping_date = DateTime()
    is_partial_fulfillment = Boolean(default=False)
    partial_fulfillment_approved = Boolean(default=False)
    partial_fulfillment_approved_by = String(max_length=100)
    partial_fulfillment_approved_at = DateTime()
    created_by = String(max_length=100)
    updated_by = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number: str,
        customer_id: str,
        items_data: list[dict],
        actor_id: str | None = None,
        priority: str | None = None,
        notes: str | None = None,
        estimated_shipping_date: datetime | None = None,
        customer_unshipped_item_count: int = 0,
    ):
        """Create a pending order. Quantities below one are raised to one."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            priority=priority or OrderPriority.MEDIUM.value,
            notes=notes,
            estimated_shipping_date=estimated_shipping_date,
            created_by=actor_id,
            updated_by=actor_id,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(_build_item(item_data))

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=customer_id,
                item_count=len(items_data),
                customer_unshipped_item_count=customer_unshipped_item_count,
                created_by=actor_id,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in _TERMINAL_STATUSES

    def item_snapshot(self) -> list[dict]:
        return [{"product_id": str(i.product_id), "quantity": i.quantity} for i in (self.items or [])]

    def find_item(self, order_item_id: str | None = None, product_id: str | None = None):
        """Locate a line by its own id, or by the first line for a product."""
        for item in self.items or []:
            if order_item_id and str(item.id) == str(order_item_id):
                return item
        if product_id:
            for item in self.items or []:
                if str(item.product_id) == str(product_id):
                    return item
        return None

    def _status_changed(self, previous: OrderStatus, actor_id: str | None, unshipped_item_count: int, now) -> None:
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=self.customer_id,
                previous_status=previous.value,
                new_status=self.status,
                unshipped_item_count=unshipped_item_count,
                changed_by=actor_id,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------
    def replace_items(self, items_data: list[dict], actor_id: str | None) -> list[dict]:
        """Rewrite the item list of a pending order. Returns the previous items."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": ["Items can only be changed while the order is pending"]})
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        previous_items = self.item_snapshot()
        for item in list(self.items or []):
            self.remove_items(item)
        for item_data in items_data:
            self.add_items(_build_item(item_data))

        now = datetime.now(UTC)
        self.updated_by = actor_id
        self.updated_at = now
        self.raise_(
            OrderItemsReplaced(
                order_id=str(self.id),
                order_number=self.order_number,
                items=json.dumps(self.item_snapshot()),
                previous_items=json.dumps(previous_items),
                updated_by=actor_id,
                updated_at=now,
            )
        )
        return previous_items

    def update_details(
        self,
        actor_id: str | None,
        estimated_shipping_date: datetime | None = None,
        priority: str | None = None,
        notes: str | None = None,
    ) -> tuple[dict, dict]:
        """Edit scheduling fields. Returns (changes, previous_values)."""
        if self.is_terminal:
            raise ValidationError({"status": [f"Cannot edit an order in {self.status} state"]})

        changes, previous = {}, {}
        for field_name, value in (
            ("estimated_shipping_date", estimated_shipping_date),
            ("priority", priority),
            ("notes", notes),
        ):
            if value is None:
                continue
            previous[field_name] = getattr(self, field_name)
            setattr(self, field_name, value)
            changes[field_name] = value

        if changes:
            self.updated_by = actor_id
            self.updated_at = datetime.now(UTC)
        return changes, previous

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def record_pick(
        self,
        picks: list[tuple],
        actor_id: str | None,
        has_shortfall: bool,
        unshipped_item_count: int = 0,
    ) -> None:
        """Record a picking pass. ``picks`` holds (OrderItem, actual quantity) pairs."""
        self._assert_can_transition(OrderStatus.PICKED)
        previous = OrderStatus(self.status)
        now = datetime.now(UTC)

        for item, actual in picks:
            item.picked_quantity = (item.picked_quantity or 0) + actual

        self.status = OrderStatus.PICKED.value
        if has_shortfall:
            self.is_partial_fulfillment = True
        self.updated_by = actor_id
        self.updated_at = now
        self._status_changed(previous, actor_id, unshipped_item_count, now)

    def ship(
        self,
        actor_id: str | None,
        actor_role: str | None,
        unshipped_item_count: int,
        approved: bool,
    ) -> None:
        """Ship the order. Leaving items behind needs explicit approval."""
        self._assert_can_transition(OrderStatus.SHIPPED)
        if unshipped_item_count and not approved:
            raise ValidationError({"approve_partial_fulfillment": ["Partial shipment requires approval"]})

        previous = OrderStatus(self.status)
        now = datetime.now(UTC)
        self.status = OrderStatus.SHIPPED.value
        self.actual_shipping_date = now
        self.is_partial_fulfillment = unshipped_item_count > 0
        self.updated_by = actor_id
        self.updated_at = now

        if unshipped_item_count:
            self.partial_fulfillment_approved = True
            self.partial_fulfillment_approved_by = actor_id
            self.partial_fulfillment_approved_at = now
            self.raise_(
                PartialShipmentApproved(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    unshipped_item_count=unshipped_item_count,
                    approved_by=actor_id,
                    approver_role=actor_role,
                    approved_at=now,
                )
            )
        self._status_changed(previous, actor_id, unshipped_item_count, now)

    def cancel(self, actor_id: str | None) -> list[tuple[str, int]]:
        """Cancel the order.

        Returns the (product_id, quantity) pairs to put back on the shelf,
        which is everything picked when the order was already picked.
        """
        self._assert_can_transition(OrderStatus.CANCELLED)
        previous = OrderStatus(self.status)
        now = datetime.now(UTC)

        restock = []
        if previous == OrderStatus.PICKED:
            restock = [
                (str(item.product_id), item.picked_quantity)
                for item in self.items or []
                if item.picked_quantity
            ]

        self.status = OrderStatus.CANCELLED.value
        self.updated_by = actor_id
        self.updated_at = now
        self._status_changed(previous, actor_id, 0, now)
        return restock

    def record_return(self, returns: list[tuple], actor_id: str | None) -> None:
        """Record goods coming back from a shipped order.

        ``returns`` holds (OrderItem, quantity) pairs; a line can return at
        most what was picked for it.
        """
        if OrderStatus(self.status) != OrderStatus.SHIPPED:
            raise ValidationError({"status": ["Only shipped orders can record returns"]})

        for item, quantity in returns:
            returnable = (item.picked_quantity or 0) - (item.returned_quantity or 0)
            if quantity > returnable:
                raise ValidationError(
                    {"quantity": [f"Cannot return {quantity} of product {item.product_id}, only {returnable} returnable"]}
                )

        for item, quantity in returns:
            item.returned_quantity = (item.returned_quantity or 0) + quantity

        self.updated_by = actor_id
        self.updated_at = datetime.now(UTC)

    def mark_deleted(self, actor_id: str | None) -> None:
        if OrderStatus(self.status) == OrderStatus.SHIPPED:
            raise InvalidTransition({"status": ["Shipped orders cannot be deleted"]})

        self.raise_(
            OrderDeleted(
                order_id=str(self.id),
                order_number=self.order_number,
                deleted_by=actor_id,
                deleted_at=datetime.now(UTC),
            )
        )


def _build_item(item_data: dict) -> OrderItem:
    quantity = int(item_data.get("quantity") or 0)
    return OrderItem(
        product_id=str(item_data["product_id"]),
        quantity=max(1, quantity),
    )


def load_order(order_id: str) -> Order:
    """Fetch an order, translating not-found into OrderNotFound."""
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError as exc:
        raise OrderNotFound({"order_id": [f"Order {order_id} does not exist"]}) from exc
