"""Generic strategy set, evaluated for every symbol."""

from signal_core.indicators import bollinger_bands, macd, rsi, sma, volume_spike
from signal_core.models.config import (
    BOLLINGER,
    MACD_CROSS,
    MA_CROSSOVER,
    RSI_EXTREME,
    VOLUME_SPIKE,
)
from signal_core.models.signal import Side
from signal_core.strategy.protocol import StrategyInput, Trigger
from signal_core.strategy.registry import GENERIC, register_strategy


@register_strategy(MA_CROSSOVER, group=GENERIC)
def ma_crossover(window: StrategyInput) -> list[Trigger]:
    """SMA9 on the right side of SMA21, with price beyond SMA9."""
    ma9 = sma(window.closes, 9)
    ma21 = sma(window.closes, 21)
    if ma9 is None or ma21 is None:
        return []

    close = window.last_close
    if ma9 > ma21 and close > ma9:
        return [Trigger(Side.BUY, "MA9>MA21")]
    if ma9 < ma21 and close < ma9:
        return [Trigger(Side.SELL, "MA9<MA21")]
    return []


@register_strategy(RSI_EXTREME, group=GENERIC)
def rsi_extreme(window: StrategyInput) -> list[Trigger]:
    """Mean reversion from RSI(14) extremes."""
    value = rsi(window.closes, 14)
    if value is None:
        return []
    if value < 30:
        return [Trigger(Side.BUY, "RSI < 30")]
    if value > 70:
        return [Trigger(Side.SELL, "RSI > 70")]
    return []


@register_strategy(MACD_CROSS, group=GENERIC)
def macd_cross(window: StrategyInput) -> list[Trigger]:
    side = macd(window.closes, 12, 26, 9)
    if side is None:
        return []
    return [Trigger(side, f"MACD {side.value}")]


@register_strategy(BOLLINGER, group=GENERIC)
def bollinger_breach(window: StrategyInput) -> list[Trigger]:
    """Close outside the 20/2 Bollinger Bands, traded back toward the mean."""
    bands = bollinger_bands(window.closes, 20, 2.0)
    if bands is None:
        return []

    close = window.last_close
    if close < bands.lower:
        return [Trigger(Side.BUY, "Close < lower BB")]
    if close > bands.upper:
        return [Trigger(Side.SELL, "Close > upper BB")]
    return []


@register_strategy(VOLUME_SPIKE, group=GENERIC)
def volume_spike_rule(window: StrategyInput) -> list[Trigger]:
    side = volume_spike(window.bars)
    if side is None:
        return []
    return [Trigger(side, "Volume spike")]
