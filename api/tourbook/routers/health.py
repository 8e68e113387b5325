"""
Health Check Endpoints
"""
from fastapi import APIRouter, Depends

from tourbook.context import AppContext, get_context

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "tourbook-api"}


@router.get("/health/ready")
async def readiness_check(ctx: AppContext = Depends(get_context)):
    """
    Readiness check - reports which datastores finished bootstrapping
    """
    return {
        "status": "ready" if ctx.status.all_up else "degraded",
        "checks": ctx.status.snapshot(),
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness check - is the service running"""
    return {"status": "alive"}
