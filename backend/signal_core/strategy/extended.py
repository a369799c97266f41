"""Extended strategy set, evaluated only for privileged symbols."""

from signal_core.indicators import breakout, ema_fan, ema_pullback, scalp_pattern
from signal_core.models.config import BREAKOUT, EMA_FAN, EMA_PULLBACK, SCALP_PATTERN
from signal_core.models.signal import Side
from signal_core.strategy.protocol import StrategyInput, Trigger
from signal_core.strategy.registry import EXTENDED, register_strategy


@register_strategy(EMA_FAN, group=EXTENDED)
def ema_fan_trend(window: StrategyInput) -> list[Trigger]:
    """Fully ordered EMA 9/21/72/200 fan."""
    stack = window.stack
    if stack is None:
        return []
    side = ema_fan(window.bars, stack)
    if side is None:
        return []
    label = "bullish" if side is Side.BUY else "bearish"
    return [Trigger(side, f"EMA fan {label}")]


@register_strategy(EMA_PULLBACK, group=EXTENDED)
def ema200_pullback(window: StrategyInput) -> list[Trigger]:
    """Recent touch of EMA200, traded in the direction of EMA72 vs EMA200."""
    stack = window.stack
    if stack is None or not ema_pullback(window.bars, 200, 8):
        return []
    side = Side.BUY if stack.ema200 < stack.ema72 else Side.SELL
    return [Trigger(side, "Pullback EMA200")]


@register_strategy(SCALP_PATTERN, group=EXTENDED)
def scalp(window: StrategyInput) -> list[Trigger]:
    side = scalp_pattern(window.bars)
    if side is None:
        return []
    return [Trigger(side, "Scalp pattern + volume")]


@register_strategy(BREAKOUT, group=EXTENDED)
def range_breakout(window: StrategyInput) -> list[Trigger]:
    side = breakout(window.bars, 20)
    if side is None:
        return []
    return [Trigger(side, "Breakout with volume")]
