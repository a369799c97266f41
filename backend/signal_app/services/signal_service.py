"""Signal service: bar buffering and periodic evaluation around the engine.

The engine itself is synchronous and I/O-free. This service owns the
per-symbol bar windows fed by ingestion, builds the evaluation calls and
fans emitted signals out to async callbacks (broadcast, persistence, ...).
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Awaitable, Callable

from signal_core.engine import SignalEngine
from signal_core.indicators import close_stddev
from signal_core.models import Bar, BarBuffer, EmittedSignal, EvaluationContext
from signal_core.selector import SignalAggregator

logger = logging.getLogger(__name__)

# Type alias for signal callback
SignalCallback = Callable[[EmittedSignal], Awaitable[None]]


class SignalService:
    """Feed bars in, evaluate symbols, notify subscribers of emitted signals.

    Bars are buffered per (symbol, timeframe), capped at ``max_bars``.
    With a single timeframe each symbol is evaluated directly. With several,
    the winner of each timeframe is queued in a SignalAggregator and the
    freshest, most confident one competes for the symbol's cooldown slot.
    """

    def __init__(
        self,
        engine: SignalEngine,
        symbols: list[str],
        timeframes: list[str] | None = None,
        max_bars: int = 500,
        balance: float | Decimal = 10000.0,
    ):
        self.engine = engine
        self.symbols = list(symbols)
        self.timeframes = list(timeframes or ["5m"])
        self.max_bars = max_bars
        self.balance = balance
        self.aggregator = SignalAggregator(engine.config.candidate_lifetime)

        self._buffers: dict[str, BarBuffer] = {}
        self._callbacks: list[SignalCallback] = []

    @property
    def primary_timeframe(self) -> str:
        return self.timeframes[0]

    # ------------------------------------------------------------------
    # Bar buffers
    # ------------------------------------------------------------------

    def get_buffer(self, symbol: str, timeframe: str | None = None) -> BarBuffer:
        """Get or create the buffer for a symbol/timeframe pair."""
        timeframe = timeframe or self.primary_timeframe
        key = f"{symbol}_{timeframe}"
        if key not in self._buffers:
            self._buffers[key] = BarBuffer(
                symbol=symbol, timeframe=timeframe, max_size=self.max_bars
            )
        return self._buffers[key]

    def add_bar(self, bar: Bar, timeframe: str | None = None) -> None:
        self.get_buffer(bar.symbol, timeframe).add(bar)

    def bars(self, symbol: str, timeframe: str | None = None) -> list[Bar]:
        return list(self.get_buffer(symbol, timeframe).bars)

    def volatility(self, symbol: str, timeframe: str | None = None) -> float:
        """Standard deviation of the buffered closes."""
        return close_stddev(self.bars(symbol, timeframe))

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def on_signal(self, callback: SignalCallback) -> None:
        """Register callback for new signals.

        Note: Duplicate callbacks are ignored.
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def off_signal(self, callback: SignalCallback) -> None:
        """Unregister callback for new signals."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def _notify(self, signal: EmittedSignal) -> None:
        for callback in self._callbacks:
            try:
                await callback(signal)
            except Exception as e:
                logger.error(f"Signal callback error: {e}")

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _context_for(self, context: EvaluationContext | None, timeframe: str) -> EvaluationContext:
        context = context or EvaluationContext()
        return context.model_copy(update={"timeframe": timeframe})

    async def evaluate_symbol(
        self,
        symbol: str,
        context: EvaluationContext | None = None,
        timeframe: str | None = None,
        now: datetime | None = None,
    ) -> EmittedSignal | None:
        """Evaluate one symbol on one timeframe and notify on emission."""
        timeframe = timeframe or self.primary_timeframe
        bars = self.bars(symbol, timeframe)
        if len(bars) < self.engine.config.min_bars:
            return None

        signal = self.engine.evaluate(
            symbol,
            bars,
            self.balance,
            self._context_for(context, timeframe),
            now,
        )
        if signal:
            await self._notify(signal)
        return signal

    async def evaluate_timeframes(
        self,
        symbol: str,
        context: EvaluationContext | None = None,
        now: datetime | None = None,
    ) -> EmittedSignal | None:
        """Let the winners of every timeframe compete for one emission."""
        now = now or datetime.now(timezone.utc)

        for timeframe in self.timeframes:
            bars = self.bars(symbol, timeframe)
            if len(bars) < self.engine.config.min_bars:
                continue
            try:
                winner = self.engine.propose(
                    symbol, bars, self._context_for(context, timeframe), now
                )
            except Exception:
                logger.exception(f"Proposal failed for {symbol} {timeframe}")
                continue
            if winner is not None:
                self.aggregator.add(winner)

        chosen = self.aggregator.pick(symbol, now)
        if chosen is None:
            return None

        bars = self.bars(symbol, chosen.timeframe)
        if not bars:
            return None
        try:
            with self.engine.tracker.symbol_lock(symbol):
                signal = self.engine.emit(symbol, chosen, bars, self.balance, now)
        except Exception:
            logger.exception(f"Emission failed for {symbol}")
            return None

        if signal:
            await self._notify(signal)
        return signal

    async def evaluate_all(
        self,
        context: EvaluationContext | None = None,
        now: datetime | None = None,
    ) -> list[EmittedSignal]:
        """Evaluate every tracked symbol once."""
        emitted: list[EmittedSignal] = []
        for symbol in self.symbols:
            if len(self.timeframes) > 1:
                signal = await self.evaluate_timeframes(symbol, context, now)
            else:
                signal = await self.evaluate_symbol(symbol, context, now=now)
            if signal:
                emitted.append(signal)

        if emitted:
            logger.info(
                f"Evaluation cycle emitted {len(emitted)} signals: "
                + ", ".join(f"{s.asset}:{s.side.value}" for s in emitted)
            )
        return emitted
