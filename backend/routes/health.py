"""
Health check and API root.
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from config import settings
from context import AppContext, get_context

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(ctx: AppContext = Depends(get_context)):
    """Health check - probes SQL, MongoDB and Redis (the configured ones)."""
    report = await ctx.health_check()
    body = {
        "status": "healthy" if report["healthy"] else "unhealthy",
        "services": report["checks"],
        "environment": settings.environment,
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if not report["healthy"]:
        logger.error(f"Health check failed: {report['checks']}")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body


@router.get("/")
async def api_root():
    base = f"/api/{settings.api_version}"
    return {
        "message": "GigConnect Backend API",
        "version": settings.app_version,
        "environment": settings.environment,
        "endpoints": {
            "health": "/health",
            "auth": f"{base}/auth",
            "users": f"{base}/users",
            "gigs": f"{base}/gigs",
            "orders": f"{base}/orders",
            "payments": f"{base}/payments",
            "chat": f"{base}/chat",
            "projects": f"{base}/projects",
            "uploads": f"{base}/uploads",
            "admin": f"{base}/admin",
            "webhooks": "/webhooks",
        },
    }
