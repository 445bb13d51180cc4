"""
Indicator Engine Service

CONTRACT:
    Input:  ComputeIndicatorRequest (security, metric, cutoff date)
    Output: ComputedMetricValue

RESPONSIBILITIES:
    - Compute SMA, EMA, RSI, ROC, ATR and VMA over a bar window
    - Refuse to compute on a window shorter than the metric period
    - Normalize raw values against the reference bar for display

Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from security_service.services.indicators.interface import IndicatorServiceInterface
from security_service.services.indicators.service import IndicatorService
from security_service.services.indicators.calculations import compute
from security_service.services.indicators.normalization import normalize

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "compute",
    "normalize",
]
