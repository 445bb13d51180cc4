"""
API v1 Router

All API endpoints of the security service.
"""

from fastapi import APIRouter

from security_service.api.v1.endpoints import market_days, metrics, securities, security_metrics

router = APIRouter()

# Include all endpoint routers
router.include_router(market_days.router, prefix="/market-days", tags=["Market Days"])
router.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
router.include_router(security_metrics.router, prefix="/security-metrics", tags=["Security Metrics"])
router.include_router(securities.router, prefix="/securities", tags=["Securities"])
