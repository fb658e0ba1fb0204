"""UnshippedItem aggregate — a short-picked quantity owed to a customer.

Rows are never deleted. They move from outstanding to authorized (cleared
for a follow-up order) to shipped (fulfilled by that follow-up order).
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment
from fulfillment.shortfall.events import (
    UnshippedItemAuthorized,
    UnshippedItemFulfilled,
    UnshippedItemRecorded,
)


@fulfillment.aggregate
class UnshippedItem:
    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    product_id = Identifier(required=True)
    customer_id = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    authorized = Boolean(default=False)
    authorized_by = String(max_length=100)
    authorized_at = DateTime()
    shipped = Boolean(default=False)
    shipped_in_order_id = Identifier()
    shipped_at = DateTime()
    notes = Text()
    created_at = DateTime()

    @classmethod
    def record(
        cls,
        order_id: str,
        order_number: str,
        product_id: str,
        customer_id: str,
        quantity: int,
        notes: str | None = None,
    ):
        now = datetime.now(UTC)
        item = cls(
            order_id=order_id,
            order_number=order_number,
            product_id=product_id,
            customer_id=customer_id.strip(),
            quantity=quantity,
            authorized=False,
            shipped=False,
            notes=notes,
            created_at=now,
        )
        item.raise_(
            UnshippedItemRecorded(
                item_id=str(item.id),
                order_id=order_id,
                product_id=product_id,
                customer_id=customer_id,
                quantity=quantity,
                recorded_at=now,
            )
        )
        return item

    @property
    def is_outstanding(self) -> bool:
        return not self.shipped

    def authorize(self, actor_id: str, actor_role: str | None = None) -> None:
        """Clear the item for shipment in a follow-up order."""
        if self.shipped:
            raise ValidationError({"item_id": ["Shipped items cannot be authorized"]})

        now = datetime.now(UTC)
        self.authorized = True
        self.authorized_by = actor_id
        self.authorized_at = now
        self.raise_(
            UnshippedItemAuthorized(
                item_id=str(self.id),
                order_id=str(self.order_id),
                product_id=str(self.product_id),
                customer_id=self.customer_id,
                quantity=self.quantity,
                authorized_by=actor_id,
                authorizer_role=actor_role,
                authorized_at=now,
            )
        )

    def mark_shipped(self, shipped_in_order_id: str) -> None:
        """Record that a follow-up order delivered this item."""
        if self.shipped:
            raise ValidationError({"item_id": ["Item has already been shipped"]})

        now = datetime.now(UTC)
        self.shipped = True
        self.shipped_in_order_id = shipped_in_order_id
        self.shipped_at = now
        self.raise_(
            UnshippedItemFulfilled(
                item_id=str(self.id),
                order_id=str(self.order_id),
                customer_id=self.customer_id,
                shipped_in_order_id=shipped_in_order_id,
                shipped_at=now,
            )
        )
