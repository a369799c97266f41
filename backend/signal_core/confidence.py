"""Confidence scoring for signal candidates.

A candidate's confidence starts from its weight relative to the heaviest
strategy and is then adjusted, in this order, by:

1. news proximity penalty (folded into the base score)
2. higher-timeframe trend alignment
3. intraday market strength (volume imbalance of the last 10 bars)
4. cross-asset correlation dampening
5. the global fear index gate

The order matters because rounding happens between steps.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Sequence

import numpy as np

from signal_core.indicators import ema
from signal_core.models.bar import Bar
from signal_core.models.config import EngineConfig
from signal_core.models.context import EvaluationContext, HigherTimeframeBars, NewsItem
from signal_core.models.signal import Side, SignalCandidate

logger = logging.getLogger(__name__)

# Fewer higher-timeframe bars than this and the self fallback is tried instead
MIN_HIGHER_BARS = 50


def round_half_up(value: float) -> int:
    """Round halves toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"

    def opposes(self, side: Side) -> bool:
        return (self is Trend.UP and side is Side.SELL) or (
            self is Trend.DOWN and side is Side.BUY
        )


@dataclass(frozen=True)
class TrendReading:
    direction: Trend
    ema200: float
    source: str  # "higher_tf" or "fallback_self_ema"


@dataclass(frozen=True)
class ConfidenceFactors:
    """Context-derived inputs shared by every candidate of one evaluation."""

    news_penalty: float = 0.0
    trend: TrendReading | None = None
    market_strength: float = 0.0
    correlation: float = 0.0
    fear_index: float = 20.0


# =============================================================================
# Individual factors
# =============================================================================

def news_penalty(
    symbol: str,
    news: Sequence[NewsItem],
    now: datetime,
    config: EngineConfig,
) -> float:
    """
    Penalty for news published within the configured window around ``now``.

    Items are scanned in the order given and the first in-window item
    decides: the relevant penalty if the symbol is privileged and the
    title names it or a macro keyword, the generic penalty otherwise.
    Later, possibly more relevant items are never looked at.
    """
    window = config.news_window
    now = _as_utc(now)
    for item in news:
        if item.published_at is None:
            continue
        if abs(now - _as_utc(item.published_at)) > window:
            continue

        title = item.title.lower()
        mentions = symbol.lower() in title or any(kw in title for kw in config.macro_keywords)
        if config.is_privileged(symbol) and mentions:
            return config.news_penalty_relevant
        return config.news_penalty_other
    return 0.0


def _trend_from(bars: Sequence[Bar], source: str) -> TrendReading | None:
    closes = [b.close for b in bars]
    ema200 = ema(closes, 200)
    ema72 = ema(closes, 72)
    if ema200 is None or ema72 is None:
        return None
    direction = Trend.UP if ema72 > ema200 else Trend.DOWN
    return TrendReading(direction=direction, ema200=ema200, source=source)


def higher_trend(higher: HigherTimeframeBars, bars: Sequence[Bar]) -> TrendReading | None:
    """
    Trend direction from EMA72 vs EMA200 on the higher timeframe.

    Daily bars are preferred over weekly ones. When neither is supplied,
    or the chosen set has fewer than 50 bars, the evaluation window itself
    is used if it holds at least 200 bars. A chosen set of 50-199 bars
    yields no reading at all (EMA200 is undefined and no fallback is tried).
    """
    chosen = higher.preferred()
    if chosen is None or len(chosen) < MIN_HIGHER_BARS:
        if len(bars) >= 200:
            return _trend_from(bars, "fallback_self_ema")
        return None
    return _trend_from(chosen, "higher_tf")


def market_strength(bars: Sequence[Bar], lookback: int = 10) -> float:
    """(up volume - down volume) / total directional volume over the last bars.

    Returns a value in [-1, 1]; 0 with fewer than ``lookback`` bars.
    """
    if len(bars) < lookback:
        return 0.0
    recent = bars[-lookback:]
    volumes = np.array([float(b.volume) for b in recent], dtype=np.float64)
    up = np.array([b.is_bullish for b in recent])
    down = np.array([b.is_bearish for b in recent])
    up_vol = float(volumes[up].sum())
    down_vol = float(volumes[down].sum())
    return (up_vol - down_vol) / ((up_vol + down_vol) or 1.0)


# =============================================================================
# ConfidenceModifier
# =============================================================================

class ConfidenceModifier:
    """Score candidates against the evaluation context."""

    def __init__(self, config: EngineConfig):
        self.config = config

    def factors(
        self,
        symbol: str,
        bars: Sequence[Bar],
        context: EvaluationContext,
        now: datetime,
    ) -> ConfidenceFactors:
        """Compute the context factors once per evaluation."""
        return ConfidenceFactors(
            news_penalty=news_penalty(symbol, context.news, now, self.config),
            trend=higher_trend(context.higher, bars),
            market_strength=market_strength(bars),
            correlation=context.correlation_for(symbol),
            fear_index=context.fear_index,
        )

    def score(self, candidate: SignalCandidate, factors: ConfidenceFactors) -> int:
        """
        Compute a candidate's confidence.

        The base score is clamped to [50, 100]; the later multipliers may
        push the result below 50 (the selector discards such candidates)
        or above 100 (clamped by ``apply``).
        """
        cfg = self.config
        base = candidate.weight / cfg.max_weight * 100 * (1 - factors.news_penalty)
        conf: float = round_half_up(min(100.0, max(50.0, base)))

        if factors.trend is not None:
            if factors.trend.direction.opposes(candidate.side):
                conf *= cfg.counter_trend_factor
            else:
                conf = min(100.0, conf * cfg.trend_aligned_factor)

        conf = round_half_up(
            conf
            * (1 + factors.market_strength * cfg.strength_factor)
            * (1 - factors.correlation * cfg.correlation_factor)
        )

        if factors.fear_index > cfg.fear_threshold:
            conf = round_half_up(conf * cfg.fear_factor)

        return int(conf)

    def apply(
        self,
        candidates: list[SignalCandidate],
        factors: ConfidenceFactors,
    ) -> list[SignalCandidate]:
        """Write the (upper-clamped) confidence back onto every candidate."""
        for candidate in candidates:
            candidate.confidence = min(100, self.score(candidate, factors))
        return candidates
