"""Dispatch FastAPI application.

Web server for the pilot app and the order/onboarding back office.
Commands are processed synchronously; every request runs inside the
dispatch domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → in-memory stores, sync processing
#   - "production" → PostgreSQL + Redis, event_processing = "async" (Engine)
from dispatch.domain import dispatch  # noqa: E402
from dispatch.utils.logging import add_context, clear_context
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

dispatch.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Dispatch API",
    description="Order fulfillment and delivery dispatch",
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
    """Push the dispatch domain context for domain routes."""
    if request.url.path.startswith("/dispatch"):
        clear_context()
        add_context(method=request.method, path=request.url.path)
        with dispatch.domain_context():
            return await call_next(request)
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from dispatch.api import (  # noqa: E402
    dispatch_router,
    order_router,
    pilot_router,
    register_dispatch_error_handlers,
)

register_dispatch_error_handlers(app)
app.include_router(order_router)
app.include_router(pilot_router)
app.include_router(dispatch_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": dispatch.name})
