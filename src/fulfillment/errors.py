"""Typed failures raised by fulfillment operations.

All of them extend Protean's exception hierarchy and are raised with a
``{field: [messages]}`` dict, so API handlers can map them generically.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class ProductNotFound(ObjectNotFoundError):
    """No product exists for the given identifier."""


class OrderNotFound(ObjectNotFoundError):
    """No order exists for the given identifier."""


class InvalidTransition(ValidationError):
    """The requested order status change is not allowed from the current status."""


class PermissionDenied(InvalidOperationError):
    """The caller's role may not perform this operation."""
