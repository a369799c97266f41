"""Winner selection among scored candidates."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable

from signal_core.models.signal import SignalCandidate

logger = logging.getLogger(__name__)


def select_winner(
    candidates: Iterable[SignalCandidate],
    min_confidence: int = 50,
) -> SignalCandidate | None:
    """
    Pick the cycle's winning candidate.

    Candidates without a confidence, or below ``min_confidence``, are
    dropped. Survivors are ranked by weight, then confidence (both
    descending); weight always dominates. Equal keys keep generation order.

    Returns:
        The winning candidate, or None if nothing survives
    """
    survivors = [
        c for c in candidates
        if c.confidence is not None and c.confidence >= min_confidence
    ]
    if not survivors:
        return None
    survivors.sort(key=lambda c: (-c.weight, -c.confidence))
    return survivors[0]


def pick_freshest(
    candidates: Iterable[SignalCandidate],
    now: datetime,
    lifetime: timedelta,
) -> SignalCandidate | None:
    """Highest-confidence candidate generated within ``lifetime`` of ``now``."""
    fresh = [c for c in candidates if now - c.generated_at <= lifetime]
    if not fresh:
        return None
    return max(fresh, key=lambda c: c.confidence or 0)


class SignalAggregator:
    """Queue of already-selected candidates competing for one emission slot.

    Candidates are queued per symbol (e.g. winners from several timeframes
    or from consecutive cycles). ``pick`` discards anything older than the
    expiration window, removes the highest-confidence survivor from the
    queue and stamps its time to ``now``.
    """

    def __init__(self, lifetime: timedelta = timedelta(minutes=5)):
        self.lifetime = lifetime
        self._pending: dict[str, list[SignalCandidate]] = defaultdict(list)

    def add(self, candidate: SignalCandidate) -> None:
        self._pending[candidate.symbol].append(candidate)

    def pending(self, symbol: str) -> list[SignalCandidate]:
        return list(self._pending.get(symbol, []))

    def pick(self, symbol: str, now: datetime) -> SignalCandidate | None:
        queue = self._pending.get(symbol)
        if not queue:
            return None

        before = len(queue)
        queue[:] = [c for c in queue if now - c.generated_at <= self.lifetime]
        if len(queue) < before:
            logger.debug(f"{symbol}: dropped {before - len(queue)} expired candidates")

        chosen = pick_freshest(queue, now, self.lifetime)
        if chosen is None:
            return None
        queue.remove(chosen)
        chosen.generated_at = now
        return chosen

    def clear(self, symbol: str | None = None) -> None:
        if symbol is None:
            self._pending.clear()
        else:
            self._pending.pop(symbol, None)
