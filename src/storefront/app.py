"""Storefront checkout FastAPI application.

Every request runs inside the storefront domain context. The domain is
initialized on startup; PROTEAN_ENV picks the configuration overlay
(memory provider by default, PostgreSQL in production).

Usage:
    uvicorn storefront.app:app --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.domain import storefront
from storefront.ordering.api import checkout_router, order_router, shipping_router
from storefront.payments.api import payment_router
from storefront.utils.logging import add_context, clear_context, get_log_buffer


@asynccontextmanager
async def lifespan(app: FastAPI):
    storefront.init()
    yield


app = FastAPI(
    title="Storefront Checkout API",
    description="Checkout settlement: shipping quotes, payment, orders",
    lifespan=lifespan,
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
    """Push the storefront domain context for each request."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(shipping_router)
app.include_router(payment_router)


# ---------------------------------------------------------------------------
# Health / diagnostics
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": storefront.name})


@app.get("/diagnostics/logs")
async def recent_logs(level: str | None = None, limit: int = 100):
    """Most recent entries from the in-memory log buffer."""
    buffer = get_log_buffer()
    entries = [
        {key: value if isinstance(value, str | int | float | bool | None) else str(value) for key, value in entry.items()}
        for entry in buffer.entries(level=level, limit=limit)
    ]
    return JSONResponse(content={"stats": buffer.stats(), "entries": entries})
