"""Unshipped item ledger — records short picks and tracks their resolution.

Shortfalls are deduplicated on (order, product, quantity) among outstanding,
unauthorized rows, so re-running a pick with the same result records
nothing new.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from fulfillment.order.changelog import ChangelogAction, record_change
from fulfillment.shortfall.unshipped_item import UnshippedItem

logger = structlog.get_logger(__name__)


class UnshippedItemLedger:
    def __init__(self):
        # Rows added in the current transition, not yet visible to queries
        self._pending: list[UnshippedItem] = []

    def _repo(self):
        return current_domain.repository_for(UnshippedItem)

    def _is_duplicate(self, order_id: str, product_id: str, quantity: int) -> bool:
        existing = (
            self._repo()
            ._dao.query.filter(
                order_id=order_id,
                product_id=product_id,
                quantity=quantity,
                shipped=False,
                authorized=False,
            )
            .limit(None)
            .all()
            .items
        )
        if existing:
            return True
        return any(
            str(row.order_id) == order_id and str(row.product_id) == product_id and row.quantity == quantity
            for row in self._pending
        )

    def record_shortfall(self, order, product_id: str, quantity: int, notes: str | None = None) -> UnshippedItem | None:
        """Record ``quantity`` of ``product_id`` as owed on ``order``.

        Returns the new row, or None when an identical outstanding row exists.
        """
        order_id = str(order.id)
        product_id = str(product_id)

        if self._is_duplicate(order_id, product_id, quantity):
            logger.info(
                "Duplicate shortfall suppressed",
                order_id=order_id,
                product_id=product_id,
                quantity=quantity,
            )
            return None

        item = UnshippedItem.record(
            order_id=order_id,
            order_number=order.order_number,
            product_id=product_id,
            customer_id=order.customer_id,
            quantity=quantity,
            notes=notes,
        )
        self._repo().add(item)
        self._pending.append(item)
        logger.info(
            "Shortfall recorded",
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            item_id=str(item.id),
        )
        return item

    def authorize(self, item_ids: list[str], actor_id: str, actor_role: str | None) -> list[UnshippedItem]:
        """Clear outstanding items for a follow-up order.

        Unknown ids are skipped with a warning; already authorized items are
        left as they are. Each newly authorized item gets a changelog entry on
        its parent order.
        """
        if not item_ids:
            raise ValidationError({"item_ids": ["At least one unshipped item id is required"]})

        repo = self._repo()
        authorized = []
        for item_id in item_ids:
            try:
                item = repo.get(item_id)
            except ObjectNotFoundError:
                logger.warning("Unshipped item not found, skipping", item_id=item_id)
                continue

            if item.authorized or item.shipped:
                continue

            item.authorize(actor_id, actor_role)
            repo.add(item)
            record_change(
                order_id=str(item.order_id),
                user_id=actor_id,
                action=ChangelogAction.UNSHIPPED_AUTHORIZATION,
                changes={
                    "item_id": str(item.id),
                    "product_id": str(item.product_id),
                    "quantity": item.quantity,
                    "authorized_by": actor_id,
                    "authorizer_role": actor_role,
                },
                notes=f"Authorized unshipped item for future fulfillment by {actor_role}",
            )
            authorized.append(item)

        return authorized

    def mark_fulfilled(self, item_ids: list[str], fulfilled_in_order_id: str) -> list[UnshippedItem]:
        """Mark outstanding items as shipped in a follow-up order."""
        if not item_ids:
            raise ValidationError({"item_ids": ["At least one unshipped item id is required"]})

        repo = self._repo()
        fulfilled = []
        for item_id in item_ids:
            try:
                item = repo.get(item_id)
            except ObjectNotFoundError:
                logger.warning("Unshipped item not found, skipping", item_id=item_id)
                continue

            if item.shipped:
                continue

            item.mark_shipped(fulfilled_in_order_id)
            repo.add(item)
            fulfilled.append(item)

        return fulfilled

    def list_by_customer(self, customer_id: str) -> list[UnshippedItem]:
        """Outstanding items for a customer, matched case-insensitively."""
        wanted = (customer_id or "").strip()
        if not wanted:
            return []
        return self._repo()._dao.query.filter(customer_id__iexact=wanted, shipped=False).limit(None).all().items

    def list_by_order(self, order_id: str) -> list[UnshippedItem]:
        """Outstanding items recorded against an order."""
        rows = self._repo()._dao.query.filter(order_id=str(order_id), shipped=False).limit(None).all().items
        pending = [row for row in self._pending if str(row.order_id) == str(order_id) and not row.shipped]
        known = {str(row.id) for row in rows}
        return rows + [row for row in pending if str(row.id) not in known]

    def list_pending_authorization(self) -> list[UnshippedItem]:
        """Outstanding items nobody has authorized yet."""
        return self._repo()._dao.query.filter(shipped=False, authorized=False).limit(None).all().items
