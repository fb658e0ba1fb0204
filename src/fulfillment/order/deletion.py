"""Order deletion — command and handler.

Only admins delete orders, and only orders nothing else depends on. The
changelog is kept and gains a ``delete`` entry.

Other parts of the system (shipping labels, invoices) can veto deletion by
registering a dependency check: a callable taking the order and returning a
description of the blocking records, or None.
"""

from collections.abc import Callable

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.errors import PermissionDenied
from fulfillment.order.changelog import ChangelogAction, record_change
from fulfillment.order.order import Order, load_order
from fulfillment.roles import Role
from fulfillment.shortfall.unshipped_item import UnshippedItem

_dependency_checks: list[Callable] = []


def register_dependency_check(check: Callable) -> None:
    _dependency_checks.append(check)


def reset_dependency_checks() -> None:
    _dependency_checks.clear()


def _blocking_records(order: Order) -> list[str]:
    blockers = []
    unshipped = current_domain.repository_for(UnshippedItem)._dao.query.filter(order_id=str(order.id)).limit(None).all().items
    if unshipped:
        blockers.append(f"{len(unshipped)} unshipped item(s)")
    for check in _dependency_checks:
        blocker = check(order)
        if blocker:
            blockers.append(blocker)
    return blockers


@fulfillment.command(part_of="Order")
class DeleteOrder:
    """Remove an order that has no dependent records."""

    order_id = Identifier(required=True)
    actor_id = String(max_length=100)
    actor_role = String(max_length=50, choices=Role)


@fulfillment.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        if command.actor_role != Role.ADMIN.value:
            raise PermissionDenied({"actor_role": ["Only admins can delete orders"]})

        order = load_order(command.order_id)
        order.mark_deleted(command.actor_id)

        blockers = _blocking_records(order)
        if blockers:
            raise ValidationError({"order_id": [f"Order has dependent records: {', '.join(blockers)}"]})

        record_change(
            order_id=str(order.id),
            user_id=command.actor_id,
            action=ChangelogAction.DELETE,
            previous_values={
                "order_number": order.order_number,
                "status": order.status,
                "items": order.item_snapshot(),
            },
        )
        repo = current_domain.repository_for(Order)
        # Registers the OrderDeleted event with the unit of work before the row goes
        repo.add(order)
        repo._dao.delete(order)
