"""Fulfillment FastAPI application.

Web server that processes fulfillment commands synchronously via HTTP.
Each request runs inside the fulfillment domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay in src/fulfillment/domain.toml:
#   - unset / "test" → memory database, inline broker
#   - "production"   → PostgreSQL database, Redis broker
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fulfillment.domain import fulfillment  # noqa: E402
from fulfillment.utils.logging import add_context, clear_context  # noqa: E402

fulfillment.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Fulfillment API",
    description="Warehouse orders, partial fulfillment and stock reconciliation",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the fulfillment domain context and bind the caller to log events."""
    clear_context()
    add_context(
        method=request.method,
        path=request.url.path,
        actor_id=request.headers.get("x-actor-id"),
    )
    with fulfillment.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from fulfillment.api import (  # noqa: E402
    order_router,
    product_router,
    register_exception_handlers,
    unshipped_item_router,
)

app.include_router(product_router)
app.include_router(order_router)
app.include_router(unshipped_item_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": fulfillment.name})
