"""
GigConnect Backend - FastAPI Application

Freelance marketplace API: Supabase-authenticated users, gigs, orders with
bank-transfer escrow confirmed by Paystack webhooks, MongoDB chat/projects,
and arq background workers for payouts, notifications and reconciliation.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from context import AppContext
from domain.errors import DomainError
from domain.responses import error_body
from middleware.rate_limit import rate_limit
from routes import (
    admin,
    auth,
    chat,
    gigs,
    health,
    orders,
    payments,
    projects,
    uploads,
    users,
    webhooks,
)

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: validate settings, open SQL/Mongo/Redis. Shutdown: close them."""
    # Ensure data/ directory exists for SQLite
    os.makedirs("data", exist_ok=True)

    settings.validate_production_settings()

    app.state.context = await AppContext.create(settings)
    logger.info(f"🚀 GigConnect API ready ({settings.environment})")

    yield  # app runs here

    await app.state.context.shutdown()
    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="GigConnect API",
    description="Freelance marketplace backend with Paystack-backed escrow",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

API_PREFIX = f"/api/{settings.api_version}"

_general_limit = rate_limit(
    max_requests=settings.general_rate_limit,
    window_seconds=settings.general_rate_window_seconds,
    scope="api",
)

app.include_router(health.router)
app.include_router(webhooks.router)

for module in (auth, users, gigs, orders, payments, chat, projects, uploads, admin):
    app.include_router(module.router, prefix=API_PREFIX, dependencies=[Depends(_general_limit)])


# ── Exception Handlers ──────────────────────────────────────────────

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """
    Wrap every HTTP error in `{success: false, error, details?}`.

    DomainError carries `message`/`details`; plain HTTPExceptions use their
    detail string. Headers (Retry-After, WWW-Authenticate) are preserved.
    """
    if isinstance(exc, DomainError):
        body = error_body(exc.message, exc.details)
    elif exc.status_code == 404 and exc.detail == "Not Found":
        body = error_body("Endpoint not found")
    else:
        detail = exc.detail
        body = error_body(detail if isinstance(detail, str) else "Request failed")

    return JSONResponse(
        status_code=exc.status_code,
        content=body,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Validation failed", details))


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Production responses never carry raw exception text; the traceback is
    always logged server-side.
    """
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
    message = "Internal server error" if settings.is_production else str(exc) or "Internal server error"
    return JSONResponse(status_code=500, content=error_body(message))


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level=settings.log_level.lower())
