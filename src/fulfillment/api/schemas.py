"""Pydantic API schemas for the Fulfillment domain.

These are the external API contracts — separate from domain commands.
The API layer translates between these schemas and domain commands.
"""

from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class RegisterProductRequest(BaseModel):
    sku: str
    name: str
    initial_stock: int = Field(default=0, ge=0)


class AdjustStockRequest(BaseModel):
    delta: int
    change_type: str = "manual_adjustment"
    reference: str | None = None
    notes: str | None = None


class SetStockRequest(BaseModel):
    quantity: int
    reference: str | None = None
    notes: str | None = None


class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int


class CreateOrderRequest(BaseModel):
    customer_id: str
    items: list[OrderItemRequest]
    order_number: str | None = None
    estimated_shipping_date: str | None = None
    priority: str | None = None
    notes: str | None = None


class ReplaceOrderItemsRequest(BaseModel):
    items: list[OrderItemRequest]


class UpdateOrderDetailsRequest(BaseModel):
    estimated_shipping_date: str | None = None
    priority: str | None = None
    notes: str | None = None


class PickLineRequest(BaseModel):
    product_id: str
    order_item_id: str | None = None
    requested_quantity: int | None = None
    actual_quantity: int | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: Literal["picked", "shipped", "cancelled"]
    item_quantities: list[PickLineRequest] | None = None
    approve_partial_fulfillment: bool = False


class ReturnLineRequest(BaseModel):
    product_id: str
    quantity: int
    order_item_id: str | None = None


class RecordReturnRequest(BaseModel):
    lines: list[ReturnLineRequest]
    reason: str | None = None


class AuthorizeUnshippedItemsRequest(BaseModel):
    item_ids: list[str]


class FulfillUnshippedItemsRequest(BaseModel):
    item_ids: list[str]
    fulfilled_in_order_id: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class ProductIdResponse(BaseModel):
    product_id: str


class StockLevelResponse(BaseModel):
    product_id: str
    current_stock: int


class InventoryChangeResponse(BaseModel):
    id: str
    change_type: str
    previous_quantity: int
    new_quantity: int
    quantity_changed: int
    user_id: str | None = None
    reference: str | None = None
    notes: str | None = None
    changed_at: str


class ReconciliationResponse(BaseModel):
    product_id: str
    current_stock: int
    ledger_total: int
    is_consistent: bool


class OrderCreatedResponse(BaseModel):
    order_id: str
    order_number: str
    customer_unshipped_item_count: int = 0
    warning: str | None = None


class StatusResponse(BaseModel):
    status: str


class OrderStatusResponse(BaseModel):
    order_id: str
    previous_status: str
    new_status: str
    unshipped_item_count: int = 0
    is_partial_fulfillment: bool = False
    requires_approval: bool = False


class ApprovalRequiredResponse(BaseModel):
    message: str
    order_id: str
    unshipped_item_count: int
    can_approve: bool
    is_partial_fulfillment: bool = True
    requires_approval: bool = True


class ChangelogEntryResponse(BaseModel):
    id: str
    action: str
    user_id: str | None = None
    changes: dict
    previous_values: dict
    notes: str | None = None
    recorded_at: str


class UnshippedItemResponse(BaseModel):
    id: str
    order_id: str
    order_number: str | None = None
    product_id: str
    customer_id: str
    quantity: int
    authorized: bool
    authorized_by: str | None = None
    shipped: bool
    shipped_in_order_id: str | None = None
    notes: str | None = None


class ItemIdsResponse(BaseModel):
    item_ids: list[str]
