"""
Metric API Endpoints

Reference data about the supported indicator families.
"""

from fastapi import APIRouter

from security_service.schemas.metrics import MetricFamily, MetricFamilyInfo, category_for

router = APIRouter()


@router.get("/families", response_model=list[MetricFamilyInfo])
async def list_metric_families():
    """Supported metric families and their indicator category."""
    return [
        MetricFamilyInfo(family=family, indicator_category=category_for(family))
        for family in MetricFamily
    ]
