"""Fulfillment bounded context — Warehouse Orders and Stock Reconciliation.

Drives orders from picking to shipment or cancellation, keeps per-product
stock counters consistent with every movement, tracks short-picked items
until they are authorized and shipped, and broadcasts every transition.
Uses CQRS: each transition is one command processed in one unit of work.
"""

from protean.domain import Domain

from fulfillment.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

fulfillment = Domain(name="fulfillment")
