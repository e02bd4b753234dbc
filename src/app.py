"""Logistics FastAPI application.

Web server that processes shipment, assignment and payment commands
synchronously via HTTP. Every request runs inside the logistics domain
context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml ("test",
# "production", ...).
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from logistics.domain import logistics  # noqa: E402
from logistics.utils.logging import add_context, clear_context  # noqa: E402

logistics.init()

_DOMAIN_PREFIXES = ("/shipments", "/assignments", "/payments", "/track")


def _needs_domain(path: str) -> bool:
    return path.startswith(_DOMAIN_PREFIXES)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Logistics API",
    description="Shipment lifecycle, driver assignments, payments and public tracking",
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
    """Push the logistics domain context for each API request."""
    if _needs_domain(request.url.path):
        add_context(
            method=request.method,
            path=request.url.path,
            actor_id=request.headers.get("x-actor-id"),
        )
        try:
            with logistics.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers and error boundary
# ---------------------------------------------------------------------------
from logistics.api.errors import register_error_handlers  # noqa: E402
from logistics.api.routes import (  # noqa: E402
    assignment_router,
    payment_router,
    shipment_router,
    track_router,
)

register_error_handlers(app)
app.include_router(shipment_router)
app.include_router(assignment_router)
app.include_router(payment_router)
app.include_router(track_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": logistics.name},
        }
    )
