"""Bar (OHLCV candlestick) data models."""

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field


class Bar(BaseModel):
    """One OHLCV sample for a symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if this is a bearish (red) candle."""
        return self.close < self.open

    @property
    def body_size(self) -> Decimal:
        """Get the absolute size of the candle body."""
        return abs(self.close - self.open)

    @property
    def range_size(self) -> Decimal:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low


class BarBuffer(BaseModel):
    """Bounded, time-ordered window of recent bars for one symbol/timeframe."""

    symbol: str
    timeframe: str = "5m"
    bars: list[Bar] = Field(default_factory=list)
    max_size: int = 500

    def add(self, bar: Bar) -> None:
        """Add a bar to the buffer, maintaining max size."""
        if self.bars and bar.time <= self.bars[-1].time:
            # Same bucket: replace the in-progress bar; older bars are dropped
            if bar.time == self.bars[-1].time:
                self.bars[-1] = bar
            return

        self.bars.append(bar)
        if len(self.bars) > self.max_size:
            self.bars = self.bars[-self.max_size :]

    def __len__(self) -> int:
        return len(self.bars)
