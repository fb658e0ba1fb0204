"""Caller roles recognised by the fulfillment domain."""

from enum import Enum


class Role(Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    FRONT_OFFICE = "front_office"
    WAREHOUSE = "warehouse"


# Roles allowed to approve shipping an order that leaves items behind
PRIVILEGED_ROLES = frozenset({Role.ADMIN.value, Role.MANAGER.value})

# Roles allowed to authorize unshipped items for a follow-up order
AUTHORIZING_ROLES = frozenset({Role.ADMIN.value, Role.MANAGER.value, Role.FRONT_OFFICE.value})
