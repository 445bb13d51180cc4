"""
CONTRACT 2: Derived Metrics

Input: MetricDefinition + window of Bars
Output: ComputedMetricValue / NormalizedMetric

Pure data contracts. All math lives in services.indicators.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from security_service.schemas.market import Bar, Security


# =============================================================================
# ENUMS
# =============================================================================


class MetricFamily(str, Enum):
    SMA = "SMA"
    EMA = "EMA"
    RSI = "RSI"
    ROC = "ROC"
    ATR = "ATR"
    VMA = "VMA"


class IndicatorCategory(str, Enum):
    TREND = "Trend"
    MOMENTUM = "Momentum"
    VOLATILITY = "Volatility"
    VOLUME = "Volume"


FAMILY_CATEGORIES: dict[MetricFamily, IndicatorCategory] = {
    MetricFamily.SMA: IndicatorCategory.TREND,
    MetricFamily.EMA: IndicatorCategory.TREND,
    MetricFamily.RSI: IndicatorCategory.MOMENTUM,
    MetricFamily.ROC: IndicatorCategory.MOMENTUM,
    MetricFamily.ATR: IndicatorCategory.VOLATILITY,
    MetricFamily.VMA: IndicatorCategory.VOLUME,
}


def category_for(family: MetricFamily) -> IndicatorCategory:
    """Indicator category of a metric family."""
    return FAMILY_CATEGORIES[family]


# =============================================================================
# REFERENCE DATA
# =============================================================================


class MetricDefinition(BaseModel):
    """A named indicator with a fixed family and period."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: str
    family: MetricFamily
    period: int = Field(..., gt=0)

    @property
    def indicator_category(self) -> IndicatorCategory:
        return category_for(self.family)


class MetricFamilyInfo(BaseModel):
    family: MetricFamily
    indicator_category: IndicatorCategory


# =============================================================================
# COMPUTED VALUES
# =============================================================================


class ComputedMetricValue(BaseModel):
    """One indicator value for one security on one trading day."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    security_id: int
    metric_id: int
    date: date
    value: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NormalizedMetric(ComputedMetricValue):
    """Computed value annotated with its definition and a comparable score."""

    metric: MetricDefinition
    indicator_category: IndicatorCategory
    normalized_value: Optional[float] = Field(
        default=None,
        description="Recomputed from the reference bar on every read",
    )


class SecurityWithMetrics(BaseModel):
    """A security with its latest bar and normalized indicators."""

    security: Security
    bar: Optional[Bar] = None
    metrics: list[NormalizedMetric] = Field(default_factory=list)


# =============================================================================
# REQUESTS
# =============================================================================


class ComputeIndicatorRequest(BaseModel):
    """Compute one indicator for a security with a window ending at the cutoff."""

    security_id: int = Field(..., gt=0)
    metric_id: int = Field(..., gt=0)
    cutoff_date: date
    persist: bool = Field(default=True, description="Store the value and invalidate the cache")


class SecurityMetricCreate(BaseModel):
    """Create a computed value, either supplied or calculated from bars."""

    security_id: int = Field(..., gt=0)
    metric_id: int = Field(..., gt=0)
    date: date
    value: Optional[float] = None
    calculate_value: bool = False

    @model_validator(mode="after")
    def _value_or_calculate(self):
        if self.value is None and not self.calculate_value:
            raise ValueError("either value or calculate_value must be provided")
        return self


class SecurityMetricUpdate(BaseModel):
    value: float


class SecurityMetricPage(BaseModel):
    data: list[ComputedMetricValue]
    total: int
