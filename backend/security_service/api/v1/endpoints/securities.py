"""
Security API Endpoints

Securities with their latest bar and normalized indicators.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from security_service.api.v1.errors import http_error
from security_service.schemas.metrics import SecurityWithMetrics
from security_service.services.base import ServiceError
from security_service.services.providers import get_security_service
from security_service.services.securities import SecurityService

router = APIRouter()

MAX_IDS = 100


def _parse_ids(ids: str) -> list[int]:
    try:
        parsed = [int(part) for part in ids.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail="ids must be a comma separated list of integers")

    if not parsed:
        raise HTTPException(status_code=400, detail="ids must not be empty")
    if len(parsed) > MAX_IDS:
        raise HTTPException(status_code=400, detail=f"at most {MAX_IDS} ids per request")
    return parsed


@router.get("", response_model=list[SecurityWithMetrics])
async def list_securities_with_metrics(
    ids: str = Query(..., description="Comma separated security ids, e.g. 1,2,3"),
    as_of: Optional[date] = Query(default=None, description="Defaults to today"),
    service: SecurityService = Depends(get_security_service),
):
    """
    Securities with the latest trading day's bar and normalized metrics.

    Results follow the order of `ids`. Any failure fails the whole request.
    """
    try:
        return await service.get_securities_with_metrics(_parse_ids(ids), as_of=as_of)
    except ServiceError as e:
        raise http_error(e)


@router.get("/{security_id}", response_model=SecurityWithMetrics)
async def get_security_with_metrics(
    security_id: int,
    as_of: Optional[date] = Query(default=None, description="Defaults to today"),
    service: SecurityService = Depends(get_security_service),
):
    try:
        return await service.get_security_with_metrics(security_id, as_of=as_of)
    except ServiceError as e:
        raise http_error(e)
