"""Strategy rule interface.

This module provides:
- StrategyInput: one symbol's bar window prepared for rule evaluation
- Trigger: a rule's raw output (side + human-readable reason)
- StrategyRule: callable Protocol every registered rule satisfies
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from functools import cached_property
from typing import Protocol, Sequence, runtime_checkable

from signal_core.indicators import EmaStack, ema_stack
from signal_core.models.bar import Bar
from signal_core.models.signal import Side


@dataclass
class StrategyInput:
    """Bar window for one symbol, with lazily shared derived series."""

    symbol: str
    bars: Sequence[Bar]
    closes: list[Decimal] = field(init=False)

    def __post_init__(self) -> None:
        self.closes = [b.close for b in self.bars]

    @property
    def last(self) -> Bar:
        return self.bars[-1]

    @property
    def last_close(self) -> float:
        return float(self.bars[-1].close)

    @cached_property
    def stack(self) -> EmaStack | None:
        """EMA 9/21/72/200, shared by the EMA fan and pullback rules."""
        return ema_stack(self.closes)


@dataclass(frozen=True)
class Trigger:
    """A positive strategy condition."""

    side: Side
    reason: str


@runtime_checkable
class StrategyRule(Protocol):
    """A pure function from a bar window to zero or more triggers."""

    def __call__(self, window: StrategyInput) -> list[Trigger]:
        ...
