"""
Indicator Normalization

Maps a raw indicator value onto a comparable score using the
reference bar (the trading day's close and volume).
Recomputed on every read; never stored.
"""

from typing import Optional, Union

from security_service.schemas.market import Bar
from security_service.schemas.metrics import MetricFamily

RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30


def _relative_distance(reference: float, value: float) -> Optional[float]:
    if reference == 0:
        return None
    return (reference - value) / reference


def normalize_rsi(value: float) -> float:
    """Scale to [0, 1], penalizing overbought and oversold readings."""
    base = value / 100
    if value > RSI_OVERBOUGHT:
        return RSI_OVERBOUGHT / 100 - base
    if value < RSI_OVERSOLD:
        return base - RSI_OVERSOLD / 100
    return base


def normalize(family: Union[MetricFamily, str], raw_value: float, reference_bar: Bar) -> Optional[float]:
    """
    Normalized score for one indicator value.

    Returns None when the reference close/volume the rule divides by is zero.
    Families without a rule pass through unchanged.
    """
    try:
        family = MetricFamily(family)
    except ValueError:
        return raw_value

    if family in (MetricFamily.SMA, MetricFamily.EMA):
        return _relative_distance(reference_bar.close, raw_value)

    if family == MetricFamily.RSI:
        return normalize_rsi(raw_value)

    if family == MetricFamily.ROC:
        return raw_value / 100

    if family == MetricFamily.ATR:
        if reference_bar.close == 0:
            return None
        return raw_value / reference_bar.close

    if family == MetricFamily.VMA:
        return _relative_distance(float(reference_bar.volume), raw_value)

    return raw_value
