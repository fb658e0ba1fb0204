"""Product registration and manual stock changes — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.stock.ledger import StockLedger
from fulfillment.stock.product import ChangeType, Product


@fulfillment.command(part_of="Product")
class RegisterProduct:
    """Register a product; a non-zero initial stock is booked as a replenishment."""

    sku = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    initial_stock = Integer(default=0, min_value=0)
    actor_id = String(max_length=100)


@fulfillment.command(part_of="Product")
class AdjustStock:
    """Move a product's stock by a signed delta."""

    product_id = Identifier(required=True)
    delta = Integer(required=True)
    change_type = String(
        max_length=50,
        choices=ChangeType,
        default=ChangeType.MANUAL_ADJUSTMENT.value,
    )
    reference = String(max_length=255)
    notes = Text()
    actor_id = String(max_length=100)


@fulfillment.command(part_of="Product")
class SetStock:
    """Record a physical count by setting stock to an absolute quantity."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    reference = String(max_length=255)
    notes = Text()
    actor_id = String(max_length=100)


@fulfillment.command_handler(part_of=Product)
class StockManagementHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        repo = current_domain.repository_for(Product)
        existing = repo._dao.query.filter(sku=command.sku).limit(None).all().items
        if existing:
            raise ValidationError({"sku": [f"Product with SKU {command.sku} already exists"]})

        product = Product.register(sku=command.sku, name=command.name)
        repo.add(product)

        if command.initial_stock:
            ledger = StockLedger()
            ledger.track(product)
            ledger.adjust_stock(
                str(product.id),
                command.initial_stock,
                ChangeType.REPLENISHMENT,
                command.actor_id,
                reference="Initial stock",
            )
        return str(product.id)

    @handle(AdjustStock)
    def adjust_stock(self, command):
        return StockLedger().adjust_stock(
            command.product_id,
            command.delta,
            command.change_type,
            command.actor_id,
            command.reference,
            command.notes,
        )

    @handle(SetStock)
    def set_stock(self, command):
        return StockLedger().set_stock(
            command.product_id,
            command.quantity,
            command.actor_id,
            command.reference,
            command.notes,
        )
