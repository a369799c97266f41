"""Per-symbol emission cooldowns and the daily scalp cap.

Each symbol is either idle or cooling down. An emission moves it to
cooling-down by stamping ``last_emission[symbol]``; it becomes idle again
once the winning strategy's cooldown has elapsed. Cooldowns are keyed by
symbol only, so an emission from any strategy blocks every strategy on
that symbol.

The scalp strategy on the designated symbol is additionally capped per UTC
calendar day. The cap removes scalp candidates before selection and is
checked again when an emission is recorded.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta, timezone

from pydantic import BaseModel, Field

from signal_core.models.config import SCALP_PATTERN, EngineConfig
from signal_core.models.signal import SignalCandidate

logger = logging.getLogger(__name__)


def _utc_date(now: datetime) -> date:
    if now.tzinfo is None:
        return now.date()
    return now.astimezone(timezone.utc).date()


class EngineState(BaseModel):
    """Mutable engine state that lives for the lifetime of the process."""

    last_emission: dict[str, datetime] = Field(default_factory=dict)
    scalp_daily_count: int = 0
    scalp_daily_date: date | None = None


class CooldownTracker:
    """Owner of EngineState; the only writer of cooldown and cap state.

    Thread-safety: one re-entrant lock per symbol guards that symbol's
    cooldown entry, and one lock guards the daily scalp counter. Callers
    that need a check-then-act sequence across several calls (the engine
    does, from cap filtering to emission) hold ``symbol_lock(symbol)``.
    """

    def __init__(self, config: EngineConfig, state: EngineState | None = None):
        self.config = config
        self.state = state or EngineState()
        self._locks_guard = threading.Lock()
        self._symbol_locks: dict[str, threading.RLock] = {}
        self._daily_lock = threading.Lock()

    def symbol_lock(self, symbol: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._symbol_locks.get(symbol)
            if lock is None:
                lock = threading.RLock()
                self._symbol_locks[symbol] = lock
            return lock

    # ------------------------------------------------------------------
    # Cooldown
    # ------------------------------------------------------------------

    def remaining(self, symbol: str, strategy: str, now: datetime) -> timedelta:
        """Time left before ``strategy`` may emit on ``symbol`` (zero if idle)."""
        last = self.state.last_emission.get(symbol)
        if last is None:
            return timedelta(0)
        left = self.config.cooldown_for(strategy) - (now - last)
        return max(left, timedelta(0))

    def try_acquire(self, symbol: str, strategy: str, now: datetime) -> bool:
        """Check the cooldown and the daily cap, then record an emission.

        A scalp on the capped symbol is refused once today's cap is used up,
        whatever ``filter_capped`` saw when the candidate was proposed.

        Returns:
            True if the emission may proceed (state updated), False if it is
            suppressed (state unchanged)
        """
        with self.symbol_lock(symbol):
            left = self.remaining(symbol, strategy, now)
            if left > timedelta(0):
                logger.debug(
                    f"{symbol}: {strategy} suppressed, cooldown {left.total_seconds():.0f}s left"
                )
                return False

            if not self._is_capped_strategy(symbol, strategy):
                self.state.last_emission[symbol] = now
                return True

            with self._daily_lock:
                self._roll_date(now)
                if self.state.scalp_daily_count >= self.config.scalp_daily_cap:
                    logger.debug(
                        f"{symbol}: {strategy} suppressed, daily cap "
                        f"({self.config.scalp_daily_cap}) reached"
                    )
                    return False
                self.state.scalp_daily_count += 1
            self.state.last_emission[symbol] = now
            return True

    # ------------------------------------------------------------------
    # Daily scalp cap
    # ------------------------------------------------------------------

    def _is_capped_strategy(self, symbol: str, strategy: str) -> bool:
        return strategy == SCALP_PATTERN and symbol == self.config.scalp_cap_symbol

    def _roll_date(self, now: datetime) -> None:
        """Reset the counter the first time a new UTC date is observed (lock held)."""
        today = _utc_date(now)
        if self.state.scalp_daily_date != today:
            if self.state.scalp_daily_date is not None:
                logger.info(
                    f"Scalp counter reset for {today} "
                    f"(was {self.state.scalp_daily_count} on {self.state.scalp_daily_date})"
                )
            self.state.scalp_daily_count = 0
            self.state.scalp_daily_date = today

    def scalp_count(self, now: datetime) -> int:
        with self._daily_lock:
            self._roll_date(now)
            return self.state.scalp_daily_count

    def scalp_cap_reached(self, now: datetime) -> bool:
        return self.scalp_count(now) >= self.config.scalp_daily_cap

    def filter_capped(
        self,
        symbol: str,
        candidates: list[SignalCandidate],
        now: datetime,
    ) -> list[SignalCandidate]:
        """Drop scalp candidates for the capped symbol once today's cap is used up."""
        if symbol != self.config.scalp_cap_symbol:
            return candidates
        if not any(c.strategy == SCALP_PATTERN for c in candidates):
            return candidates
        if not self.scalp_cap_reached(now):
            return candidates

        logger.debug(
            f"{symbol}: daily scalp cap ({self.config.scalp_daily_cap}) reached, "
            "dropping scalp candidates"
        )
        return [c for c in candidates if c.strategy != SCALP_PATTERN]

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def snapshot(self) -> EngineState:
        """Deep copy of the current state."""
        return self.state.model_copy(deep=True)

    def reset(self) -> None:
        """Forget every cooldown and the daily counter."""
        with self._daily_lock:
            self.state = EngineState()
        logger.info("Engine state reset")
