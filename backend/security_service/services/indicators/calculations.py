"""
Technical Indicator Calculations

Pure NumPy implementations of the window indicators.
Each function takes arrays ordered oldest -> newest and returns one value.
"""

from dataclasses import dataclass
from typing import Callable, Sequence, Union

import numpy as np

from security_service.schemas.market import Bar
from security_service.schemas.metrics import MetricFamily
from security_service.services.base import (
    InsufficientDataError,
    InvalidRangeError,
    UnsupportedMetricFamilyError,
)

SERVICE_NAME = "IndicatorEngine"


@dataclass
class OHLCVWindow:
    """OHLCV arrays for one window, oldest first."""

    opens: np.ndarray
    highs: np.ndarray
    lows: np.ndarray
    closes: np.ndarray
    volumes: np.ndarray

    @classmethod
    def from_bars(cls, bars_newest_first: Sequence[Bar]) -> "OHLCVWindow":
        bars = list(reversed(bars_newest_first))
        return cls(
            opens=np.array([b.open for b in bars], dtype=float),
            highs=np.array([b.high for b in bars], dtype=float),
            lows=np.array([b.low for b in bars], dtype=float),
            closes=np.array([b.close for b in bars], dtype=float),
            volumes=np.array([b.volume for b in bars], dtype=float),
        )


# =============================================================================
# TREND
# =============================================================================


def sma(closes: np.ndarray) -> float:
    """Simple Moving Average of the whole window."""
    return float(np.mean(closes))


def ema(closes: np.ndarray, period: int) -> float:
    """
    Exponential Moving Average.

    Seeded with the mean of the oldest `period` closes, then blended
    forward with k = 2 / (period + 1). On a window of exactly `period`
    bars this equals the SMA.
    """
    value = float(np.mean(closes[:period]))
    k = 2.0 / (period + 1)
    for close in closes[period:]:
        value = close * k + value * (1 - k)
    return float(value)


# =============================================================================
# MOMENTUM
# =============================================================================


def rsi(closes: np.ndarray) -> float:
    """Relative Strength Index over day-over-day deltas in the window."""
    deltas = np.diff(closes)
    total_gain = float(deltas[deltas > 0].sum())
    total_loss = float(-deltas[deltas < 0].sum())

    if total_loss == 0:
        return 100.0

    rs = total_gain / total_loss
    return 100.0 - (100.0 / (1.0 + rs))


def roc(closes: np.ndarray) -> float:
    """Rate of Change between the oldest and newest close, as a fraction."""
    oldest = closes[0]
    return float((closes[-1] - oldest) / oldest)


# =============================================================================
# VOLATILITY
# =============================================================================


def true_range(highs: np.ndarray, lows: np.ndarray, prev_closes: np.ndarray) -> np.ndarray:
    """True range of each bar against the previous close."""
    return np.maximum(
        highs - lows,
        np.maximum(np.abs(highs - prev_closes), np.abs(lows - prev_closes)),
    )


def atr(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int) -> float:
    """
    Average True Range.

    Sums the true range of the period - 1 consecutive pairs but divides
    by period. Kept as-is for compatibility with stored values.
    """
    tr = true_range(highs[1:], lows[1:], closes[:-1])
    return float(tr.sum() / period)


# =============================================================================
# VOLUME
# =============================================================================


def vma(volumes: np.ndarray) -> float:
    """Volume Moving Average."""
    return float(np.mean(volumes))


# =============================================================================
# DISPATCH
# =============================================================================

_CALCULATORS: dict[MetricFamily, Callable[[OHLCVWindow, int], float]] = {
    MetricFamily.SMA: lambda w, period: sma(w.closes),
    MetricFamily.EMA: lambda w, period: ema(w.closes, period),
    MetricFamily.RSI: lambda w, period: rsi(w.closes),
    MetricFamily.ROC: lambda w, period: roc(w.closes),
    MetricFamily.ATR: lambda w, period: atr(w.highs, w.lows, w.closes, period),
    MetricFamily.VMA: lambda w, period: vma(w.volumes),
}


def resolve_family(family: Union[MetricFamily, str]) -> MetricFamily:
    """Parse a family name, rejecting anything outside the known set."""
    try:
        return MetricFamily(family)
    except ValueError:
        raise UnsupportedMetricFamilyError(
            SERVICE_NAME, f"Unsupported metric family: {family}", {"family": str(family)}
        )


def compute(family: Union[MetricFamily, str], period: int, bars_newest_first: Sequence[Bar]) -> float:
    """
    Compute one indicator value.

    Args:
        family: Indicator family
        period: Window length, > 0
        bars_newest_first: At least `period` bars, index 0 = most recent.
            Only the newest `period` bars are used.

    Raises:
        InsufficientDataError: fewer than `period` bars
        InvalidRangeError: period < 1
        UnsupportedMetricFamilyError: unknown family
    """
    family = resolve_family(family)
    if period < 1:
        raise InvalidRangeError(SERVICE_NAME, f"period must be positive, got {period}", {"period": period})

    if len(bars_newest_first) < period:
        raise InsufficientDataError(
            SERVICE_NAME,
            required=period,
            available=len(bars_newest_first),
            label=f"{family.value}_{period}",
        )

    calculator = _CALCULATORS.get(family)
    if calculator is None:
        raise UnsupportedMetricFamilyError(SERVICE_NAME, f"Unsupported metric family: {family.value}")

    window = OHLCVWindow.from_bars(bars_newest_first[:period])
    return calculator(window, period)
