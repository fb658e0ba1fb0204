"""Product stock counter and the append-only inventory change log.

Product.current_stock never goes below zero: a decrement larger than the
available quantity is clamped, and the change row records the amount that
was actually applied. Both aggregates are written only by the StockLedger.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment


class ChangeType(Enum):
    PICK = "pick"
    CANCEL_RESTORE = "cancel_restore"
    MANUAL_ADJUSTMENT = "manual_adjustment"
    STOCK_COUNT = "stock_count"
    REPLENISHMENT = "replenishment"
    RETURN = "return"


@fulfillment.aggregate
class Product:
    sku = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    current_stock = Integer(default=0, min_value=0)
    last_stock_update = DateTime()
    created_at = DateTime()

    @classmethod
    def register(cls, sku: str, name: str):
        """Create a product with an empty stock counter."""
        return cls(
            sku=sku,
            name=name,
            current_stock=0,
            created_at=datetime.now(UTC),
        )

    def apply_stock_change(self, delta: int) -> int:
        """Move the counter by ``delta``, clamped at zero.

        Returns the delta that was actually applied.
        """
        previous = self.current_stock or 0
        new_quantity = max(0, previous + delta)
        self.current_stock = new_quantity
        self.last_stock_update = datetime.now(UTC)
        return new_quantity - previous


@fulfillment.aggregate
class InventoryChange:
    """One stock movement. Rows are only ever appended."""

    product_id = Identifier(required=True)
    user_id = String(max_length=100)
    change_type = String(required=True, max_length=50, choices=ChangeType)
    previous_quantity = Integer(required=True, min_value=0)
    new_quantity = Integer(required=True, min_value=0)
    quantity_changed = Integer(required=True)
    reference = String(max_length=255)
    notes = Text()
    changed_at = DateTime(required=True)

    @classmethod
    def record(
        cls,
        product_id: str,
        change_type: str,
        previous_quantity: int,
        new_quantity: int,
        user_id: str | None = None,
        reference: str | None = None,
        notes: str | None = None,
    ):
        return cls(
            product_id=product_id,
            user_id=user_id,
            change_type=change_type,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            quantity_changed=new_quantity - previous_quantity,
            reference=reference,
            notes=notes,
            changed_at=datetime.now(UTC),
        )
