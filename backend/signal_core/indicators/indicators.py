"""Technical indicators for candidate generation.

Every function here is pure and never raises on short input: when the
window is too short for the requested period the result is ``None``
(or ``False`` for boolean detectors), which callers treat as "this
strategy does not fire this cycle". A legitimate value of 0.0 is never
used as a sentinel.

Values are accepted as any sequence of numbers (Decimal prices from
``Bar`` included) and computed in float64.
"""

from decimal import Decimal
from typing import NamedTuple, Sequence

import numpy as np

from signal_core.models.bar import Bar
from signal_core.models.signal import Side

Number = Decimal | float | int


def _to_array(values: Sequence[Number]) -> np.ndarray:
    return np.array([float(v) for v in values], dtype=np.float64)


def _closes(bars: Sequence[Bar]) -> np.ndarray:
    return _to_array([b.close for b in bars])


def _volumes(bars: Sequence[Bar]) -> np.ndarray:
    return _to_array([b.volume for b in bars])


# =============================================================================
# Moving averages
# =============================================================================

def _window_ema(arr: np.ndarray, end: int, period: int) -> float:
    """EMA over ``arr[end - period + 1 : end + 1]`` seeded with its first value."""
    k = 2.0 / (period + 1)
    value = arr[end - period + 1]
    for price in arr[end - period + 2 : end + 1]:
        value += k * (price - value)
    return float(value)


def sma(values: Sequence[Number], period: int) -> float | None:
    """
    Calculate Simple Moving Average of the last ``period`` values.

    Args:
        values: Sequence of price values (oldest first)
        period: SMA period

    Returns:
        Mean of the last ``period`` values, or None if not enough data
    """
    if period <= 0 or len(values) < period:
        return None
    arr = _to_array(values[-period:])
    return float(np.mean(arr))


def ema(values: Sequence[Number], period: int) -> float | None:
    """
    Calculate Exponential Moving Average of the last ``period`` values.

    The average is seeded with the value at position ``len - period`` (not
    with an SMA warm-up) and smoothed forward with ``k = 2 / (period + 1)``.
    Only the last ``period`` values contribute.

    Args:
        values: Sequence of price values (oldest first)
        period: EMA period

    Returns:
        EMA value, or None if not enough data
    """
    if period <= 0 or len(values) < period:
        return None
    arr = _to_array(values[-period:])
    return _window_ema(arr, len(arr) - 1, period)


def rsi(
    values: Sequence[Number],
    period: int = 14,
    flat: float | None = 50.0,
) -> float | None:
    """
    Calculate Relative Strength Index over the last ``period`` deltas.

    Gains and losses are summed over the window; a zero loss total is
    replaced by 1. A window with no movement at all returns ``flat``.

    Args:
        values: Sequence of price values (oldest first)
        period: Number of one-bar deltas
        flat: Result for a window without any movement

    Returns:
        RSI in [0, 100], ``flat`` for an unchanged window, or None if
        fewer than ``period + 1`` values
    """
    if period <= 0 or len(values) < period + 1:
        return None
    deltas = np.diff(_to_array(values[-(period + 1):]))
    gains = float(deltas[deltas > 0].sum())
    losses = float(-deltas[deltas < 0].sum())
    if gains == 0 and losses == 0:
        return flat
    rs = gains / (losses or 1.0)
    return 100.0 - 100.0 / (1.0 + rs)


# =============================================================================
# MACD
# =============================================================================

class MacdValues(NamedTuple):
    line: float
    signal: float


def macd_values(
    values: Sequence[Number],
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9,
) -> MacdValues | None:
    """
    Calculate the MACD line and its signal line.

    The MACD line at bar ``i`` is EMA(fast) - EMA(slow) evaluated on the
    prefix ending at ``i`` (each EMA seeded inside its own window, exactly
    as ``ema`` does). The signal line is the EMA of that series over the
    last ``signal_period`` points. Each prefix value only depends on the
    trailing ``slow`` closes, so the series is built in O(n * slow).

    Returns:
        MacdValues, or None if fewer than ``slow + signal_period`` values
    """
    if len(values) < slow + signal_period:
        return None

    arr = _to_array(values)
    series = np.array(
        [
            _window_ema(arr, i, fast) - _window_ema(arr, i, slow)
            for i in range(slow - 1, len(arr))
        ],
        dtype=np.float64,
    )
    if len(series) < signal_period:
        return None

    line = float(series[-1])
    signal = _window_ema(series, len(series) - 1, signal_period)
    return MacdValues(line=line, signal=signal)


def macd(
    values: Sequence[Number],
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9,
) -> Side | None:
    """BUY when the MACD line is above its signal line, SELL when below."""
    result = macd_values(values, fast, slow, signal_period)
    if result is None:
        return None
    if result.line > result.signal:
        return Side.BUY
    if result.line < result.signal:
        return Side.SELL
    return None


# =============================================================================
# Bands and volatility
# =============================================================================

class BollingerBands(NamedTuple):
    upper: float
    middle: float
    lower: float


def bollinger_bands(
    values: Sequence[Number],
    period: int = 20,
    mult: float = 2.0,
) -> BollingerBands | None:
    """
    Calculate Bollinger Bands over the last ``period`` values.

    Uses the population standard deviation.

    Returns:
        BollingerBands(upper, middle, lower), or None if not enough data
    """
    if period <= 0 or len(values) < period:
        return None
    arr = _to_array(values[-period:])
    mean = float(np.mean(arr))
    sd = float(np.std(arr))
    return BollingerBands(upper=mean + mult * sd, middle=mean, lower=mean - mult * sd)


def atr(bars: Sequence[Bar], period: int = 14) -> float | None:
    """
    Calculate Average True Range using Wilder's smoothing.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close)),
    the first TR being high - low. Seeded with the mean of the first
    ``period`` TRs.

    Returns:
        Latest ATR, or None if fewer than ``period`` bars
    """
    if period <= 0 or len(bars) < period:
        return None

    highs = _to_array([b.high for b in bars])
    lows = _to_array([b.low for b in bars])
    closes = _closes(bars)

    tr = np.empty_like(highs)
    tr[0] = highs[0] - lows[0]
    prev_close = closes[:-1]
    tr[1:] = np.maximum.reduce([
        highs[1:] - lows[1:],
        np.abs(highs[1:] - prev_close),
        np.abs(lows[1:] - prev_close),
    ])

    value = float(np.mean(tr[:period]))
    alpha = 1.0 / period
    for x in tr[period:]:
        value = alpha * x + (1 - alpha) * value
    return value


def price_range(bars: Sequence[Bar], period: int = 14) -> float:
    """Max minus min of the last ``period`` closes (0 with fewer than 2 bars)."""
    if len(bars) < 2:
        return 0.0
    closes = _closes(bars[-period:])
    return float(closes.max() - closes.min())


def close_stddev(bars: Sequence[Bar]) -> float:
    """Population standard deviation of every close in the window."""
    if len(bars) < 2:
        return 0.0
    return float(np.std(_closes(bars)))


# =============================================================================
# Pattern detectors
# =============================================================================

def volume_spike(bars: Sequence[Bar], lookback: int = 10, mult: float = 1.8) -> Side | None:
    """
    Detect a volume spike on the latest bar.

    The latest volume is compared against the mean volume of the last
    ``lookback`` bars (latest included).

    Returns:
        BUY for a spike on a bullish bar, SELL otherwise; None if no spike
    """
    if len(bars) < lookback:
        return None
    avg = float(np.mean(_volumes(bars[-lookback:])))
    last = bars[-1]
    if float(last.volume) > avg * mult:
        return Side.BUY if last.is_bullish else Side.SELL
    return None


def breakout(bars: Sequence[Bar], lookback: int = 20, volume_mult: float = 1.2) -> Side | None:
    """
    Detect a range breakout confirmed by volume.

    The latest bar is compared against the ``lookback`` bars before it:
    close above their highest high (or below their lowest low) with
    volume above ``volume_mult`` times their mean volume.

    Returns:
        BUY for an upside breakout, SELL for a downside one, else None
    """
    if len(bars) < lookback + 1:
        return None
    prior = bars[-(lookback + 1):-1]
    max_high = max(b.high for b in prior)
    min_low = min(b.low for b in prior)
    avg_volume = float(np.mean(_volumes(prior)))

    last = bars[-1]
    volume_ok = float(last.volume) > avg_volume * volume_mult
    if last.close > max_high and volume_ok:
        return Side.BUY
    if last.close < min_low and volume_ok:
        return Side.SELL
    return None


class EmaStack(NamedTuple):
    ema9: float
    ema21: float
    ema72: float
    ema200: float


def ema_stack(values: Sequence[Number]) -> EmaStack | None:
    """EMA 9/21/72/200 of the window, or None unless all four are defined."""
    if len(values) < 200:
        return None
    return EmaStack(
        ema9=ema(values, 9),
        ema21=ema(values, 21),
        ema72=ema(values, 72),
        ema200=ema(values, 200),
    )


def ema_fan(bars: Sequence[Bar], stack: EmaStack | None = None) -> Side | None:
    """
    Detect a fully ordered EMA fan.

    Bullish: EMA200 < EMA72 < EMA21 < EMA9 and close above EMA9.
    Bearish: the mirror image with close below EMA9.
    """
    if stack is None:
        stack = ema_stack([b.close for b in bars])
    if stack is None:
        return None
    close = float(bars[-1].close)
    if stack.ema200 < stack.ema72 < stack.ema21 < stack.ema9 and close > stack.ema9:
        return Side.BUY
    if stack.ema200 > stack.ema72 > stack.ema21 > stack.ema9 and close < stack.ema9:
        return Side.SELL
    return None


def ema_pullback(
    bars: Sequence[Bar],
    period: int = 200,
    lookback: int = 8,
    tolerance: float = 0.0025,
) -> bool:
    """True if any of the last ``lookback`` closes came within ``tolerance`` of EMA(period)."""
    ema_value = ema([b.close for b in bars], period)
    if ema_value is None or ema_value == 0:
        return False
    closes = _closes(bars[-lookback:])
    return bool(np.any(np.abs(closes - ema_value) / ema_value < tolerance))


def scalp_pattern(
    bars: Sequence[Bar],
    volume_mult: float = 1.5,
    min_body_ratio: float = 0.6,
    rsi_period: int = 6,
) -> Side | None:
    """
    Detect a high-volume, full-bodied momentum bar.

    Requires the latest volume above ``volume_mult`` times the previous
    bar's and a body covering more than ``min_body_ratio`` of the range.
    The side follows the close-to-close move and is rejected when RSI is
    already overbought (BUY) or oversold (SELL). Unchanged closes over the
    RSI window, or an RSI of 0, reject the pattern outright.
    """
    if len(bars) < 10:
        return None
    last, prev = bars[-1], bars[-2]
    rsi_value = rsi([b.close for b in bars], rsi_period, flat=None)
    if not rsi_value:
        return None

    if float(last.volume) <= float(prev.volume) * volume_mult:
        return None
    body_ratio = float(last.body_size) / (float(last.range_size) + 1e-9)
    if body_ratio <= min_body_ratio:
        return None

    side = Side.BUY if last.close > prev.close else Side.SELL
    if side is Side.BUY and rsi_value < 70:
        return side
    if side is Side.SELL and rsi_value > 30:
        return side
    return None
