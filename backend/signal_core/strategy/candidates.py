"""Candidate generation: run the registered rules over one symbol's window."""

import logging
from datetime import datetime
from typing import Sequence

from signal_core.models.bar import Bar
from signal_core.models.config import EngineConfig
from signal_core.models.signal import SignalCandidate
from signal_core.strategy.protocol import StrategyInput
from signal_core.strategy.registry import EXTENDED, GENERIC, strategies_in

logger = logging.getLogger(__name__)


class CandidateGenerator:
    """Evaluate the strategy sets for a symbol and tag each hit with its weight.

    Every symbol runs the generic set; symbols listed in
    ``config.privileged_symbols`` also run the extended set. Each trigger
    becomes exactly one SignalCandidate whose weight is looked up from
    the config's weight table by strategy name.
    """

    def __init__(self, config: EngineConfig):
        self.config = config

    def groups_for(self, symbol: str) -> list[str]:
        if self.config.is_privileged(symbol):
            return [GENERIC, EXTENDED]
        return [GENERIC]

    def generate(
        self,
        symbol: str,
        bars: Sequence[Bar],
        now: datetime,
        timeframe: str | None = None,
    ) -> list[SignalCandidate]:
        window = StrategyInput(symbol=symbol, bars=bars)
        candidates: list[SignalCandidate] = []

        for group in self.groups_for(symbol):
            for entry in strategies_in(group):
                for trigger in entry.rule(window):
                    candidates.append(
                        SignalCandidate(
                            symbol=symbol,
                            side=trigger.side,
                            strategy=entry.name,
                            weight=self.config.weight_for(entry.name),
                            reasons=[trigger.reason],
                            generated_at=now,
                            timeframe=timeframe,
                        )
                    )

        if candidates:
            logger.debug(
                f"{symbol}: {len(candidates)} candidates "
                + ", ".join(f"{c.strategy}:{c.side.value}" for c in candidates)
            )
        return candidates
