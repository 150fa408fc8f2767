"""Storefront FastAPI application.

Processes commands synchronously via HTTP. Every storefront route runs
inside the storefront domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (handlers fire in UoW)
#   - "production" → event_processing = "async" (handlers fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storefront.domain import storefront  # noqa: E402
from storefront.utils.logging import bind_request, clear_request, configure_logging

configure_logging()
storefront.init()

_DOMAIN_PREFIXES = ("/products", "/addresses", "/cart", "/orders", "/reviews", "/admin")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Cart, checkout, payment reconciliation, fulfilment and reviews",
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
    """Push the storefront domain context for each domain request."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        bind_request(method=request.method, path=request.url.path, user_id=request.headers.get("x-user-id"))
        try:
            with storefront.domain_context():
                response = await call_next(request)
        finally:
            clear_request()
        return response
    # No domain match — pass through (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import ROUTERS, register_storefront_exception_handlers  # noqa: E402

for router in ROUTERS:
    app.include_router(router)

register_storefront_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": storefront.name}})
