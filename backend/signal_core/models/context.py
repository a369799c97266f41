"""Per-evaluation context models (news, higher timeframes, market-wide gauges)."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from signal_core.models.bar import Bar

DEFAULT_FEAR_INDEX = 20.0


class NewsItem(BaseModel):
    """A headline supplied by the news collaborator."""

    model_config = ConfigDict(frozen=True)

    title: str = "Untitled"
    published_at: datetime | None = None
    symbols: frozenset[str] = frozenset()
    source: str = ""
    url: str = "#"
    impact: str = "low"


class HigherTimeframeBars(BaseModel):
    """Bar windows on slower timeframes, used for trend alignment."""

    daily: list[Bar] | None = None
    weekly: list[Bar] | None = None

    def preferred(self) -> list[Bar] | None:
        """Daily bars when supplied, else weekly bars, else None."""
        if self.daily is not None:
            return self.daily
        return self.weekly


class EvaluationContext(BaseModel):
    """Everything the engine knows about the world besides the bar window.

    Every field is optional. Absent values fall back to neutral defaults
    (fear index 20, no correlation dampening, no news, no higher timeframe).
    ``timeframe`` and ``session`` are advisory and not consumed by any
    confidence modifier.
    """

    model_config = ConfigDict(populate_by_name=True)

    timeframe: str = "5m"
    higher: HigherTimeframeBars = Field(default_factory=HigherTimeframeBars)
    news: list[NewsItem] = Field(default_factory=list)
    session: str | None = None
    fear_index: float = Field(
        default=DEFAULT_FEAR_INDEX,
        validation_alias=AliasChoices("fear_index", "vix"),
    )
    correlated: dict[str, float] = Field(default_factory=dict)

    @field_validator("timeframe")
    @classmethod
    def _normalize_timeframe(cls, value: str) -> str:
        return value.lower()

    @field_validator("fear_index", mode="before")
    @classmethod
    def _default_fear_index(cls, value):
        # Zero or missing readings fall back to the neutral level
        if not value:
            return DEFAULT_FEAR_INDEX
        return value

    @field_validator("correlated")
    @classmethod
    def _check_correlation_range(cls, value: dict[str, float]) -> dict[str, float]:
        for symbol, factor in value.items():
            if not 0.0 <= factor <= 1.0:
                raise ValueError(
                    f"correlation factor for {symbol} must be in [0, 1], got {factor}"
                )
        return value

    def correlation_for(self, symbol: str) -> float:
        return self.correlated.get(symbol, 0.0)
