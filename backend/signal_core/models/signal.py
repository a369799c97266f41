"""Signal candidate and emitted signal models."""

import hashlib
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field


class Side(str, Enum):
    """Trade direction."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def sign(self) -> int:
        """+1 for BUY, -1 for SELL (direction of favourable price moves)."""
        return 1 if self is Side.BUY else -1


class SignalCandidate(BaseModel):
    """A strategy's proposed signal before confidence adjustment and rate limiting.

    ``weight`` comes from the engine's static weight table and is never
    modified after creation. ``confidence`` stays ``None`` until the
    confidence modifier has scored the candidate.
    """

    symbol: str
    side: Side
    strategy: str
    weight: int
    reasons: list[str] = Field(default_factory=list)
    generated_at: datetime
    timeframe: str | None = None
    confidence: int | None = None


def _generate_signal_id(strategy: str, symbol: str, signal_time: datetime, side: str) -> str:
    """Generate deterministic signal ID based on signal attributes.

    The same emission replayed from the same bars gets the same ID.
    """
    ts_str = signal_time.strftime("%Y%m%d%H%M%S%f")
    key = f"{strategy}:{symbol}:{ts_str}:{side}"
    return hashlib.sha256(key.encode()).hexdigest()[:32]


class EmittedSignal(BaseModel):
    """A signal that passed selection and the cooldown gate."""

    id: str = ""  # Will be set in model_post_init
    asset: str
    side: Side
    strategy: str
    timeframe: str | None = None
    confidence: int = Field(ge=50, le=100)
    reasons: list[str] = Field(default_factory=list)
    weight: int
    entry_price: Decimal
    stop_loss: Decimal | None = None
    take_profits: list[Decimal] | None = None
    quantity: Decimal | None = None
    time: datetime
    expires_at: datetime

    def model_post_init(self, __context) -> None:
        """Generate deterministic ID after model initialization."""
        if not self.id:
            object.__setattr__(
                self,
                "id",
                _generate_signal_id(self.strategy, self.asset, self.time, self.side.value),
            )

    @property
    def risk_amount(self) -> Decimal | None:
        """Distance from entry to stop loss, if a stop was computed."""
        if self.stop_loss is None:
            return None
        return abs(self.entry_price - self.stop_loss)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
