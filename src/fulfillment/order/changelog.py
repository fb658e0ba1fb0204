"""Order changelog — append-only audit trail of everything done to an order.

Entries outlive the order: deleting an order adds a ``delete`` entry and
keeps the rest.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment


class ChangelogAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    STATUS_CHANGE = "status_change"
    UNSHIPPED_AUTHORIZATION = "unshipped_authorization"
    PARTIAL_APPROVAL = "partial_approval"
    RETURN = "return"


@fulfillment.aggregate
class OrderChangelog:
    order_id = Identifier(required=True)
    user_id = String(max_length=100)
    action = String(required=True, max_length=50, choices=ChangelogAction)
    changes = Text()  # JSON dict
    previous_values = Text()  # JSON dict
    notes = Text()
    recorded_at = DateTime(required=True)

    @property
    def changes_data(self) -> dict:
        return json.loads(self.changes) if self.changes else {}

    @property
    def previous_values_data(self) -> dict:
        return json.loads(self.previous_values) if self.previous_values else {}


def record_change(
    order_id: str,
    user_id: str | None,
    action: ChangelogAction,
    changes: dict | None = None,
    previous_values: dict | None = None,
    notes: str | None = None,
) -> OrderChangelog:
    """Append a changelog entry within the current unit of work."""
    entry = OrderChangelog(
        order_id=order_id,
        user_id=user_id,
        action=action.value,
        changes=json.dumps(changes, default=str) if changes is not None else None,
        previous_values=json.dumps(previous_values, default=str) if previous_values is not None else None,
        notes=notes,
        recorded_at=datetime.now(UTC),
    )
    current_domain.repository_for(OrderChangelog).add(entry)
    return entry


def changelog_for(order_id: str) -> list[OrderChangelog]:
    """Changelog entries for an order, oldest first."""
    rows = current_domain.repository_for(OrderChangelog)._dao.query.filter(order_id=str(order_id)).limit(None).all().items
    return sorted(rows, key=lambda row: row.recorded_at)
