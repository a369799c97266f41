"""Multi-strategy signal engine.

This module is pure business logic with no I/O dependencies. The host
calls ``evaluate`` once per symbol on its own schedule and receives an
EmittedSignal or None.

Per evaluation:
    bars + context -> CandidateGenerator -> daily scalp cap
    -> ConfidenceModifier -> select_winner -> cooldown gate -> EmittedSignal
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from signal_core.confidence import ConfidenceModifier
from signal_core.cooldown import CooldownTracker, EngineState
from signal_core.indicators import atr
from signal_core.models.bar import Bar
from signal_core.models.config import EngineConfig
from signal_core.models.context import EvaluationContext
from signal_core.models.signal import EmittedSignal, Side, SignalCandidate
from signal_core.selector import select_winner
from signal_core.strategy import CandidateGenerator

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SignalEngine:
    """
    Stateful rule evaluator shared across all symbols.

    Owns one CooldownTracker (and therefore one EngineState). The staged
    API (``propose`` then ``emit``) lets a host collect winners from
    several windows before spending the cooldown; ``evaluate`` runs both
    stages for a single window.

    Trade levels on emission:
    - entry = last close
    - stop = entry -/+ ATR(atr_period) * atr_stop_mult
    - take profits = entry +/- stop distance * (1 + f) for each Fibonacci target f
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        state: EngineState | None = None,
    ):
        self.config = config or EngineConfig()
        self.generator = CandidateGenerator(self.config)
        self.modifier = ConfidenceModifier(self.config)
        self.tracker = CooldownTracker(self.config, state)

    @property
    def state(self) -> EngineState:
        return self.tracker.state

    def reset(self) -> None:
        self.tracker.reset()

    # ------------------------------------------------------------------
    # Stage 1: candidates -> winner
    # ------------------------------------------------------------------

    def propose(
        self,
        symbol: str,
        bars: Sequence[Bar],
        context: EvaluationContext | None = None,
        now: datetime | None = None,
    ) -> SignalCandidate | None:
        """
        Generate, score and select this cycle's winning candidate.

        Does not touch the cooldown state.

        Returns:
            The winning SignalCandidate, or None
        """
        if len(bars) < self.config.min_bars:
            return None
        context = context or EvaluationContext()
        now = now or _utcnow()

        candidates = self.generator.generate(symbol, bars, now, context.timeframe)
        if not candidates:
            return None

        candidates = self.tracker.filter_capped(symbol, candidates, now)
        if not candidates:
            return None

        factors = self.modifier.factors(symbol, bars, context, now)
        self.modifier.apply(candidates, factors)
        return select_winner(candidates, self.config.min_confidence)

    # ------------------------------------------------------------------
    # Stage 2: cooldown gate -> emitted signal
    # ------------------------------------------------------------------

    def calculate_levels(
        self,
        side: Side,
        entry_price: Decimal,
        atr_value: float | None,
    ) -> tuple[Decimal | None, list[Decimal] | None]:
        """
        Calculate stop loss and take-profit targets.

        Returns:
            Tuple of (stop_loss, take_profits); both None without an ATR
        """
        if atr_value is None or atr_value <= 0:
            return None, None

        distance = Decimal(str(atr_value)) * self.config.atr_stop_mult
        sign = side.sign
        stop_loss = entry_price - sign * distance
        take_profits = [
            entry_price + sign * distance * (1 + target)
            for target in self.config.fib_targets
        ]
        return stop_loss, take_profits

    def emit(
        self,
        symbol: str,
        candidate: SignalCandidate,
        bars: Sequence[Bar],
        balance: Decimal | float | None = None,
        now: datetime | None = None,
    ) -> EmittedSignal | None:
        """
        Pass a winner through the cooldown gate and build the emitted signal.

        Returns:
            EmittedSignal, or None if the symbol is still cooling down
        """
        now = now or _utcnow()
        if not self.tracker.try_acquire(symbol, candidate.strategy, now):
            return None

        entry_price = bars[-1].close
        stop_loss, take_profits = self.calculate_levels(
            candidate.side, entry_price, atr(bars, self.config.atr_period)
        )
        notional = Decimal(str(balance)) if balance is not None else self.config.default_balance
        quantity = notional / entry_price if entry_price > 0 else None

        signal = EmittedSignal(
            asset=symbol,
            side=candidate.side,
            strategy=candidate.strategy,
            timeframe=candidate.timeframe,
            confidence=candidate.confidence,
            reasons=list(candidate.reasons),
            weight=candidate.weight,
            entry_price=entry_price,
            stop_loss=stop_loss,
            take_profits=take_profits,
            quantity=quantity,
            time=now,
            expires_at=now + self.config.signal_lifetime,
        )
        logger.info(
            f"{signal.side.value} signal: {symbol} @ {entry_price} "
            f"strategy={signal.strategy} confidence={signal.confidence} SL={stop_loss}"
        )
        return signal

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def evaluate(
        self,
        symbol: str,
        bars: Sequence[Bar],
        balance: Decimal | float | None = None,
        context: EvaluationContext | None = None,
        now: datetime | None = None,
    ) -> EmittedSignal | None:
        """
        Run one full evaluation cycle for a symbol.

        Never raises: any unexpected failure is logged and reported as
        "no signal".

        Args:
            symbol: Tradable symbol
            bars: Ascending-time bar window (at least ``min_bars``)
            balance: Fixed notional used to size the signal
            context: Optional evaluation context (neutral defaults)
            now: Evaluation time (defaults to the current UTC time)

        Returns:
            EmittedSignal, or None
        """
        now = now or _utcnow()
        try:
            with self.tracker.symbol_lock(symbol):
                winner = self.propose(symbol, bars, context, now)
                if winner is None:
                    return None
                return self.emit(symbol, winner, bars, balance, now)
        except Exception:
            logger.exception(f"Evaluation failed for {symbol}")
            return None
