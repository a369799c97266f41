"""Tests for winner selection and the candidate aggregator."""

from datetime import datetime, timedelta, timezone

from signal_core.models import Side, SignalCandidate
from signal_core.selector import SignalAggregator, pick_freshest, select_winner

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _candidate(
    strategy: str,
    weight: int,
    confidence: int | None,
    symbol: str = "GOLD",
    generated_at: datetime = T0,
    timeframe: str = "5m",
) -> SignalCandidate:
    return SignalCandidate(
        symbol=symbol,
        side=Side.BUY,
        strategy=strategy,
        weight=weight,
        confidence=confidence,
        generated_at=generated_at,
        timeframe=timeframe,
    )


class TestSelectWinner:
    """Tests for select_winner."""

    def test_weight_dominates_confidence(self):
        """Test weight outranks confidence."""
        heavy = _candidate("breakout", 33, 60)
        confident = _candidate("rsi", 14, 95)
        assert select_winner([confident, heavy]) is heavy

    def test_confidence_breaks_weight_ties(self):
        """Test confidence breaks weight ties."""
        a = _candidate("a", 30, 70)
        b = _candidate("b", 30, 80)
        assert select_winner([a, b]) is b

    def test_full_tie_keeps_generation_order(self):
        """Test full ties keep generation order."""
        a = _candidate("a", 30, 70)
        b = _candidate("b", 30, 70)
        assert select_winner([a, b]) is a

    def test_low_confidence_dropped(self):
        """Test low-confidence candidates are dropped."""
        heavy_but_weak = _candidate("scalp_pattern", 40, 45)
        light = _candidate("rsi", 14, 50)
        assert select_winner([heavy_but_weak, light]) is light

    def test_unscored_dropped(self):
        """Test unscored candidates are dropped."""
        assert select_winner([_candidate("macd", 30, None)]) is None

    def test_nothing_survives(self):
        """Test no winner when nothing qualifies."""
        assert select_winner([]) is None
        assert select_winner([_candidate("macd", 30, 49)]) is None

    def test_custom_threshold(self):
        """Test a custom confidence threshold."""
        c = _candidate("macd", 30, 60)
        assert select_winner([c], min_confidence=70) is None


class TestPickFreshest:
    """Tests for picking among queued candidates."""

    def test_highest_confidence_within_lifetime(self):
        """Test the most confident live candidate wins."""
        old = _candidate("a", 30, 95, generated_at=T0 - timedelta(minutes=6))
        fresh_low = _candidate("b", 30, 55, generated_at=T0 - timedelta(minutes=1))
        fresh_high = _candidate("c", 14, 75, generated_at=T0 - timedelta(minutes=2))

        chosen = pick_freshest([old, fresh_low, fresh_high], T0, timedelta(minutes=5))
        assert chosen is fresh_high

    def test_boundary_is_inclusive(self):
        """Test a candidate at its lifetime edge is live."""
        c = _candidate("a", 30, 60, generated_at=T0 - timedelta(minutes=5))
        assert pick_freshest([c], T0, timedelta(minutes=5)) is c

    def test_all_expired(self):
        """Test no pick when all candidates expired."""
        c = _candidate("a", 30, 60, generated_at=T0 - timedelta(minutes=10))
        assert pick_freshest([c], T0, timedelta(minutes=5)) is None


class TestSignalAggregator:
    """Tests for SignalAggregator."""

    def test_pick_prefers_fresh_candidates(self):
        """Test expired candidates are skipped."""
        aggregator = SignalAggregator(timedelta(minutes=5))
        aggregator.add(_candidate("a", 30, 90, generated_at=T0 - timedelta(minutes=6)))
        fresh = _candidate("b", 30, 60, generated_at=T0 - timedelta(minutes=1))
        aggregator.add(fresh)

        chosen = aggregator.pick("GOLD", T0)

        assert chosen is fresh
        assert chosen.generated_at == T0
        # Expired and chosen candidates are both gone
        assert aggregator.pending("GOLD") == []

    def test_pick_removes_only_the_winner(self):
        """Test picking removes just the winner."""
        aggregator = SignalAggregator()
        low = _candidate("a", 30, 60, timeframe="15m")
        high = _candidate("b", 30, 80, timeframe="5m")
        aggregator.add(low)
        aggregator.add(high)

        assert aggregator.pick("GOLD", T0) is high
        assert aggregator.pending("GOLD") == [low]
        assert aggregator.pick("GOLD", T0) is low
        assert aggregator.pick("GOLD", T0) is None

    def test_symbols_are_independent(self):
        """Test queues are kept per symbol."""
        aggregator = SignalAggregator()
        aggregator.add(_candidate("a", 30, 60, symbol="GOLD"))

        assert aggregator.pick("EURUSD", T0) is None
        assert len(aggregator.pending("GOLD")) == 1

    def test_clear(self):
        """Test clearing the queue."""
        aggregator = SignalAggregator()
        aggregator.add(_candidate("a", 30, 60, symbol="GOLD"))
        aggregator.add(_candidate("a", 30, 60, symbol="EURUSD"))

        aggregator.clear("GOLD")
        assert aggregator.pending("GOLD") == []
        assert len(aggregator.pending("EURUSD")) == 1

        aggregator.clear()
        assert aggregator.pending("EURUSD") == []
