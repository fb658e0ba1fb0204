"""FastAPI routes for the Fulfillment domain.

Caller identity arrives in the X-Actor-Id and X-Actor-Role headers; the
routes translate requests into commands and hold no business rules.
"""

import json
from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from fulfillment.api.schemas import (
    AdjustStockRequest,
    ApprovalRequiredResponse,
    AuthorizeUnshippedItemsRequest,
    ChangelogEntryResponse,
    CreateOrderRequest,
    FulfillUnshippedItemsRequest,
    InventoryChangeResponse,
    ItemIdsResponse,
    OrderCreatedResponse,
    OrderStatusResponse,
    ProductIdResponse,
    ReconciliationResponse,
    RecordReturnRequest,
    RegisterProductRequest,
    ReplaceOrderItemsRequest,
    SetStockRequest,
    StatusResponse,
    StockLevelResponse,
    UnshippedItemResponse,
    UpdateOrderDetailsRequest,
    UpdateOrderStatusRequest,
)
from fulfillment.order.cancellation import CancelOrder
from fulfillment.order.changelog import changelog_for
from fulfillment.order.creation import CreateOrder
from fulfillment.order.deletion import DeleteOrder
from fulfillment.order.editing import ReplaceOrderItems, UpdateOrderDetails
from fulfillment.order.order import load_order
from fulfillment.order.picking import PickOrder
from fulfillment.order.results import ApprovalRequired
from fulfillment.order.returns import RecordReturn
from fulfillment.order.shipping import ShipOrder
from fulfillment.shortfall.authorization import AuthorizeUnshippedItems, FulfillUnshippedItems
from fulfillment.shortfall.ledger import UnshippedItemLedger
from fulfillment.stock.ledger import StockLedger, reconcile, stock_history
from fulfillment.stock.locks import process_with_product_locks
from fulfillment.stock.management import AdjustStock, RegisterProduct, SetStock


def _parse_date(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _order_product_ids(order_id: str) -> list[str]:
    return [str(item.product_id) for item in load_order(order_id).items or []]


def _unshipped_item_response(item) -> UnshippedItemResponse:
    return UnshippedItemResponse(
        id=str(item.id),
        order_id=str(item.order_id),
        order_number=item.order_number,
        product_id=str(item.product_id),
        customer_id=item.customer_id,
        quantity=item.quantity,
        authorized=bool(item.authorized),
        authorized_by=item.authorized_by,
        shipped=bool(item.shipped),
        shipped_in_order_id=str(item.shipped_in_order_id) if item.shipped_in_order_id else None,
        notes=item.notes,
    )


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["stock"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def register_product(
    body: RegisterProductRequest,
    x_actor_id: str | None = Header(default=None),
) -> ProductIdResponse:
    """Register a product with an optional opening stock."""
    command = RegisterProduct(
        sku=body.sku,
        name=body.name,
        initial_stock=body.initial_stock,
        actor_id=x_actor_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.post("/{product_id}/stock/adjust", response_model=StockLevelResponse)
async def adjust_stock(
    product_id: str,
    body: AdjustStockRequest,
    x_actor_id: str | None = Header(default=None),
) -> StockLevelResponse:
    """Move stock by a signed delta (clamped at zero)."""
    command = AdjustStock(
        product_id=product_id,
        delta=body.delta,
        change_type=body.change_type,
        reference=body.reference,
        notes=body.notes,
        actor_id=x_actor_id,
    )
    new_quantity = process_with_product_locks(command, [product_id])
    return StockLevelResponse(product_id=product_id, current_stock=new_quantity)


@product_router.put("/{product_id}/stock", response_model=StockLevelResponse)
async def set_stock(
    product_id: str,
    body: SetStockRequest,
    x_actor_id: str | None = Header(default=None),
) -> StockLevelResponse:
    """Record a physical stock count."""
    command = SetStock(
        product_id=product_id,
        quantity=body.quantity,
        reference=body.reference,
        notes=body.notes,
        actor_id=x_actor_id,
    )
    new_quantity = process_with_product_locks(command, [product_id])
    return StockLevelResponse(product_id=product_id, current_stock=new_quantity)


@product_router.get("/{product_id}/stock/history", response_model=list[InventoryChangeResponse])
async def get_stock_history(product_id: str) -> list[InventoryChangeResponse]:
    StockLedger().load(product_id)
    return [
        InventoryChangeResponse(
            id=str(row.id),
            change_type=row.change_type,
            previous_quantity=row.previous_quantity,
            new_quantity=row.new_quantity,
            quantity_changed=row.quantity_changed,
            user_id=row.user_id,
            reference=row.reference,
            notes=row.notes,
            changed_at=row.changed_at.isoformat(),
        )
        for row in stock_history(product_id)
    ]


@product_router.get("/{product_id}/stock/reconciliation", response_model=ReconciliationResponse)
async def get_stock_reconciliation(product_id: str) -> ReconciliationResponse:
    result = reconcile(product_id)
    return ReconciliationResponse(
        product_id=result.product_id,
        current_stock=result.current_stock,
        ledger_total=result.ledger_total,
        is_consistent=result.is_consistent,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderCreatedResponse)
async def create_order(
    body: CreateOrderRequest,
    x_actor_id: str | None = Header(default=None),
) -> OrderCreatedResponse:
    """Enter a new pending order."""
    command = CreateOrder(
        customer_id=body.customer_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        order_number=body.order_number,
        estimated_shipping_date=_parse_date(body.estimated_shipping_date),
        priority=body.priority,
        notes=body.notes,
        actor_id=x_actor_id,
    )
    result = current_domain.process(command, asynchronous=False)
    warning = None
    if result.customer_unshipped_item_count:
        warning = f"Customer has {result.customer_unshipped_item_count} unshipped item(s) from previous orders"
    return OrderCreatedResponse(
        order_id=result.order_id,
        order_number=result.order_number,
        customer_unshipped_item_count=result.customer_unshipped_item_count,
        warning=warning,
    )


@order_router.put("/{order_id}/items", response_model=StatusResponse)
async def replace_order_items(
    order_id: str,
    body: ReplaceOrderItemsRequest,
    x_actor_id: str | None = Header(default=None),
) -> StatusResponse:
    command = ReplaceOrderItems(
        order_id=order_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        actor_id=x_actor_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="items_updated")


@order_router.patch("/{order_id}", response_model=StatusResponse)
async def update_order_details(
    order_id: str,
    body: UpdateOrderDetailsRequest,
    x_actor_id: str | None = Header(default=None),
) -> StatusResponse:
    command = UpdateOrderDetails(
        order_id=order_id,
        estimated_shipping_date=_parse_date(body.estimated_shipping_date),
        priority=body.priority,
        notes=body.notes,
        actor_id=x_actor_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="order_updated")


@order_router.patch(
    "/{order_id}/status",
    response_model=OrderStatusResponse,
    responses={403: {"model": ApprovalRequiredResponse}},
)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
):
    """Move an order to picked, shipped or cancelled.

    A shipment that would leave unshipped items behind is refused with 403
    and an approval payload until the request sets approve_partial_fulfillment.
    """
    if body.status == "picked":
        lines = None
        if body.item_quantities:
            lines = json.dumps([line.model_dump() for line in body.item_quantities])
        command = PickOrder(order_id=order_id, lines=lines, actor_id=x_actor_id)
        result = process_with_product_locks(command, _order_product_ids(order_id))
    elif body.status == "shipped":
        command = ShipOrder(
            order_id=order_id,
            approve_partial_fulfillment=body.approve_partial_fulfillment,
            actor_id=x_actor_id,
            actor_role=x_actor_role,
        )
        result = current_domain.process(command, asynchronous=False)
    else:
        command = CancelOrder(order_id=order_id, actor_id=x_actor_id)
        result = process_with_product_locks(command, _order_product_ids(order_id))

    if isinstance(result, ApprovalRequired):
        payload = ApprovalRequiredResponse(
            message="Order has unshipped items; shipping requires partial fulfillment approval",
            **asdict(result),
        )
        return JSONResponse(status_code=403, content=payload.model_dump())
    return OrderStatusResponse(**asdict(result))


@order_router.post("/{order_id}/returns", response_model=StatusResponse)
async def record_return(
    order_id: str,
    body: RecordReturnRequest,
    x_actor_id: str | None = Header(default=None),
) -> StatusResponse:
    command = RecordReturn(
        order_id=order_id,
        lines=json.dumps([line.model_dump() for line in body.lines]),
        reason=body.reason,
        actor_id=x_actor_id,
    )
    process_with_product_locks(command, [line.product_id for line in body.lines])
    return StatusResponse(status="return_recorded")


@order_router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: str,
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> None:
    command = DeleteOrder(order_id=order_id, actor_id=x_actor_id, actor_role=x_actor_role)
    current_domain.process(command, asynchronous=False)


@order_router.get("/{order_id}/changelog", response_model=list[ChangelogEntryResponse])
async def get_order_changelog(order_id: str) -> list[ChangelogEntryResponse]:
    return [
        ChangelogEntryResponse(
            id=str(entry.id),
            action=entry.action,
            user_id=entry.user_id,
            changes=entry.changes_data,
            previous_values=entry.previous_values_data,
            notes=entry.notes,
            recorded_at=entry.recorded_at.isoformat(),
        )
        for entry in changelog_for(order_id)
    ]


@order_router.get("/{order_id}/unshipped-items", response_model=list[UnshippedItemResponse])
async def get_order_unshipped_items(order_id: str) -> list[UnshippedItemResponse]:
    load_order(order_id)
    return [_unshipped_item_response(item) for item in UnshippedItemLedger().list_by_order(order_id)]


# ---------------------------------------------------------------------------
# Unshipped Item Router
# ---------------------------------------------------------------------------
unshipped_item_router = APIRouter(prefix="/unshipped-items", tags=["unshipped-items"])


@unshipped_item_router.get("", response_model=list[UnshippedItemResponse])
async def list_unshipped_items(customer_id: str) -> list[UnshippedItemResponse]:
    return [_unshipped_item_response(item) for item in UnshippedItemLedger().list_by_customer(customer_id)]


@unshipped_item_router.get("/pending-authorization", response_model=list[UnshippedItemResponse])
async def list_pending_authorization() -> list[UnshippedItemResponse]:
    return [_unshipped_item_response(item) for item in UnshippedItemLedger().list_pending_authorization()]


@unshipped_item_router.post("/authorize", response_model=ItemIdsResponse)
async def authorize_unshipped_items(
    body: AuthorizeUnshippedItemsRequest,
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> ItemIdsResponse:
    command = AuthorizeUnshippedItems(
        item_ids=json.dumps(body.item_ids),
        actor_id=x_actor_id,
        actor_role=x_actor_role,
    )
    result = current_domain.process(command, asynchronous=False)
    return ItemIdsResponse(item_ids=result)


@unshipped_item_router.post("/fulfill", response_model=ItemIdsResponse)
async def fulfill_unshipped_items(
    body: FulfillUnshippedItemsRequest,
    x_actor_id: str | None = Header(default=None),
) -> ItemIdsResponse:
    command = FulfillUnshippedItems(
        item_ids=json.dumps(body.item_ids),
        fulfilled_in_order_id=body.fulfilled_in_order_id,
        actor_id=x_actor_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return ItemIdsResponse(item_ids=result)
