"""Engine configuration models."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from pydantic import BaseModel, model_validator

# Strategy names (keys of the weight table)
SCALP_PATTERN = "scalp_pattern"
BREAKOUT = "breakout"
MACD_CROSS = "macd"
EMA_FAN = "ema_fan"
EMA_PULLBACK = "pullback_ema200"
MA_CROSSOVER = "ma_crossover"
BOLLINGER = "bollinger"
VOLUME_SPIKE = "volume_spike"
RSI_EXTREME = "rsi"

# Fixed weights (higher = more robust historically)
DEFAULT_WEIGHTS: dict[str, int] = {
    SCALP_PATTERN: 40,
    BREAKOUT: 33,
    MACD_CROSS: 30,
    EMA_FAN: 28,
    EMA_PULLBACK: 25,  # round(EMA_FAN * 0.9)
    MA_CROSSOVER: 24,
    BOLLINGER: 18,
    VOLUME_SPIKE: 16,
    RSI_EXTREME: 14,
}

PRIVILEGED_SYMBOLS: list[str] = [
    "GOLD",
    "EURUSD",
    "GBPUSD",
    "USDJPY",
    "BTCUSD",
    "ETHUSD",
    "Apple",
    "MICROSOFT",
    "US500Cash",
    "US30Cash",
]


class EngineConfig(BaseModel):
    """Tunable parameters of the signal engine."""

    weights: dict[str, int] = dict(DEFAULT_WEIGHTS)

    # Symbols that also run the extended strategy set
    privileged_symbols: list[str] = list(PRIVILEGED_SYMBOLS)

    # Daily cap on scalp emissions for one designated symbol
    scalp_cap_symbol: str = "GOLD"
    scalp_daily_cap: int = 3

    # Cooldowns between emissions on the same symbol
    asset_cooldown_seconds: int = 10 * 60
    scalp_cooldown_seconds: int = 5 * 60

    # News proximity penalty
    news_window_minutes: int = 30
    news_penalty_relevant: float = 0.35
    news_penalty_other: float = 0.10
    macro_keywords: list[str] = ["fed", "cpi", "inflation"]

    # Confidence multipliers
    counter_trend_factor: float = 0.45
    trend_aligned_factor: float = 1.08
    strength_factor: float = 0.15
    correlation_factor: float = 0.25
    fear_threshold: float = 25.0
    fear_factor: float = 0.8
    min_confidence: int = 50

    # Lifetimes
    signal_expire_seconds: int = 30 * 60
    candidate_expire_seconds: int = 5 * 60

    # Trade levels attached to emitted signals
    atr_period: int = 14
    atr_stop_mult: Decimal = Decimal("1.5")
    fib_targets: list[Decimal] = [
        Decimal("0.382"),
        Decimal("0.618"),
        Decimal("1.0"),
    ]
    default_balance: Decimal = Decimal("10000")

    # Smallest window the engine will look at
    min_bars: int = 5

    @model_validator(mode="after")
    def _validate(self):
        if not self.weights:
            raise ValueError("weights must define at least one strategy")
        bad = {name: w for name, w in self.weights.items() if w <= 0}
        if bad:
            raise ValueError(f"weights must be positive, got {bad}")
        if not 0 <= self.min_confidence <= 100:
            raise ValueError(
                f"min_confidence must be in [0, 100], got {self.min_confidence}"
            )
        if self.scalp_daily_cap < 0:
            raise ValueError("scalp_daily_cap must be >= 0")
        return self

    @property
    def max_weight(self) -> int:
        return max(self.weights.values())

    def weight_for(self, strategy: str) -> int:
        """Look up a strategy's fixed weight (KeyError if unknown)."""
        return self.weights[strategy]

    def is_privileged(self, symbol: str) -> bool:
        return symbol in self.privileged_symbols

    def cooldown_for(self, strategy: str) -> timedelta:
        if strategy == SCALP_PATTERN:
            return timedelta(seconds=self.scalp_cooldown_seconds)
        return timedelta(seconds=self.asset_cooldown_seconds)

    @property
    def news_window(self) -> timedelta:
        return timedelta(minutes=self.news_window_minutes)

    @property
    def signal_lifetime(self) -> timedelta:
        return timedelta(seconds=self.signal_expire_seconds)

    @property
    def candidate_lifetime(self) -> timedelta:
        return timedelta(seconds=self.candidate_expire_seconds)
