"""Stock ledger — the single writer of product stock counters.

Every change to ``Product.current_stock`` goes through ``StockLedger`` and
produces exactly one InventoryChange row, so a product's counter always
equals the sum of its logged deltas.

A ledger instance lives for one transition (one command handler call) and
caches the products it loads: two lines for the same product in one pick
see each other's decrements before the unit of work commits.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from fulfillment.errors import ProductNotFound
from fulfillment.stock.product import ChangeType, InventoryChange, Product

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockReconciliation:
    """Comparison of a product's counter with its change log."""

    product_id: str
    current_stock: int
    ledger_total: int

    @property
    def is_consistent(self) -> bool:
        return self.current_stock == self.ledger_total


class StockLedger:
    def __init__(self):
        self._products: dict[str, Product] = {}

    def track(self, product: Product) -> None:
        """Make a product created in this transition visible to the ledger."""
        self._products[str(product.id)] = product

    def load(self, product_id: str) -> Product:
        key = str(product_id)
        if key not in self._products:
            try:
                self._products[key] = current_domain.repository_for(Product).get(key)
            except ObjectNotFoundError as exc:
                raise ProductNotFound({"product_id": [f"Product {key} does not exist"]}) from exc
        return self._products[key]

    def adjust_stock(
        self,
        product_id: str,
        delta: int,
        change_type: ChangeType | str,
        actor_id: str | None,
        reference: str | None,
        notes: str | None = None,
    ) -> int:
        """Apply ``delta`` to the product's stock, clamped at zero.

        Returns the new quantity. The change row records the delta that was
        actually applied, which differs from ``delta`` when clamped.
        """
        if isinstance(change_type, ChangeType):
            change_type = change_type.value

        product = self.load(product_id)
        previous = product.current_stock or 0
        applied = product.apply_stock_change(delta)

        current_domain.repository_for(Product).add(product)
        current_domain.repository_for(InventoryChange).add(
            InventoryChange.record(
                product_id=str(product.id),
                change_type=change_type,
                previous_quantity=previous,
                new_quantity=product.current_stock,
                user_id=actor_id,
                reference=reference,
                notes=notes,
            )
        )

        if applied != delta:
            logger.warning(
                "Stock adjustment clamped at zero",
                product_id=str(product.id),
                requested_delta=delta,
                applied_delta=applied,
                reference=reference,
            )
        else:
            logger.info(
                "Stock adjusted",
                product_id=str(product.id),
                change_type=change_type,
                previous_quantity=previous,
                new_quantity=product.current_stock,
            )
        return product.current_stock

    def set_stock(
        self,
        product_id: str,
        absolute_quantity: int,
        actor_id: str | None,
        reference: str | None,
        notes: str | None = None,
    ) -> int:
        """Record a manual count by setting the counter to an absolute value."""
        if absolute_quantity < 0:
            raise ValidationError({"quantity": ["Stock quantity cannot be negative"]})

        product = self.load(product_id)
        delta = absolute_quantity - (product.current_stock or 0)
        return self.adjust_stock(product_id, delta, ChangeType.STOCK_COUNT, actor_id, reference, notes)


def stock_history(product_id: str) -> list[InventoryChange]:
    """Inventory change rows for a product, oldest first."""
    rows = current_domain.repository_for(InventoryChange)._dao.query.filter(product_id=str(product_id)).limit(None).all().items
    return sorted(rows, key=lambda row: row.changed_at)


def reconcile(product_id: str) -> StockReconciliation:
    """Compare the product's counter with the sum of its logged deltas."""
    product = StockLedger().load(product_id)
    ledger_total = sum(row.quantity_changed for row in stock_history(product_id))
    return StockReconciliation(
        product_id=str(product.id),
        current_stock=product.current_stock or 0,
        ledger_total=ledger_total,
    )
