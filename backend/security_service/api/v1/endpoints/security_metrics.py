"""
Security Metric API Endpoints

Computed indicator values: compute, list, read, create and update.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from security_service.api.v1.errors import http_error
from security_service.schemas.metrics import (
    ComputeIndicatorRequest,
    ComputedMetricValue,
    SecurityMetricCreate,
    SecurityMetricPage,
    SecurityMetricUpdate,
)
from security_service.services.base import ServiceError
from security_service.services.providers import get_security_metric_service
from security_service.services.security_metrics import SecurityMetricService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/compute", response_model=ComputedMetricValue)
async def compute_indicator(
    request: ComputeIndicatorRequest,
    service: SecurityMetricService = Depends(get_security_metric_service),
):
    """
    Compute one indicator for a security from the bars ending at cutoff_date.

    Fails with 400 when fewer bars than the metric period exist.
    """
    try:
        return await service.compute_indicator(request)
    except ServiceError as e:
        logger.info(f"Compute failed for {request.model_dump()}: {e}")
        raise http_error(e)


@router.get("", response_model=SecurityMetricPage)
async def list_security_metrics(
    security_id: Optional[int] = Query(default=None, gt=0),
    day: Optional[date] = Query(default=None, alias="date"),
    metric_id: Optional[int] = Query(default=None, gt=0),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=0, ge=0, le=500, description="0 returns all rows"),
    service: SecurityMetricService = Depends(get_security_metric_service),
):
    try:
        values, total = await service.list_values(
            security_id=security_id,
            day=day,
            metric_id=metric_id,
            page=page,
            per_page=per_page,
        )
    except ServiceError as e:
        raise http_error(e)

    return SecurityMetricPage(data=values, total=total)


@router.get("/{value_id}", response_model=ComputedMetricValue)
async def get_security_metric(
    value_id: int,
    service: SecurityMetricService = Depends(get_security_metric_service),
):
    try:
        return await service.read_value(value_id)
    except ServiceError as e:
        raise http_error(e)


@router.post("", response_model=ComputedMetricValue, status_code=201)
async def create_security_metric(
    payload: SecurityMetricCreate,
    service: SecurityMetricService = Depends(get_security_metric_service),
):
    """Store a value, or compute it from bars when calculate_value is set."""
    try:
        return await service.create_value(payload)
    except ServiceError as e:
        raise http_error(e)


@router.patch("/{value_id}", response_model=ComputedMetricValue)
async def update_security_metric(
    value_id: int,
    payload: SecurityMetricUpdate,
    service: SecurityMetricService = Depends(get_security_metric_service),
):
    try:
        return await service.update_value(value_id, payload.value)
    except ServiceError as e:
        raise http_error(e)
