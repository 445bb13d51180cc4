"""
CONTRACT 1: Market Data

Read-only market entities owned by the persistence layer:
securities, daily bars and trading days.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENTITIES
# =============================================================================


class Bar(BaseModel):
    """One trading day's OHLCV for one security."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    security_id: int
    date: date
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: int = Field(..., ge=0)


class Security(BaseModel):
    """Identity of a listed security."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    isin: str = Field(..., description="International Securities Identification Number")
    symbol: str
    name: str
    industry: Optional[str] = None
    ltp: Optional[float] = Field(default=None, description="Last traded price")


# =============================================================================
# TRADING DAYS
# =============================================================================


class TradingDaysMeta(BaseModel):
    total: int


class TradingDaysResponse(BaseModel):
    """Trading days, most recent first unless asked otherwise."""

    data: list[date]
    meta: TradingDaysMeta
