"""Technical indicators (pure math, no I/O)."""

from signal_core.indicators.indicators import (
    BollingerBands,
    EmaStack,
    MacdValues,
    atr,
    bollinger_bands,
    breakout,
    close_stddev,
    ema,
    ema_fan,
    ema_pullback,
    ema_stack,
    macd,
    macd_values,
    price_range,
    rsi,
    scalp_pattern,
    sma,
    volume_spike,
)

__all__ = [
    "BollingerBands",
    "EmaStack",
    "MacdValues",
    "atr",
    "bollinger_bands",
    "breakout",
    "close_stddev",
    "ema",
    "ema_fan",
    "ema_pullback",
    "ema_stack",
    "macd",
    "macd_values",
    "price_range",
    "rsi",
    "scalp_pattern",
    "sma",
    "volume_spike",
]
