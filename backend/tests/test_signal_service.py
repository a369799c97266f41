"""Tests for SignalService buffering, callbacks and evaluation cycles."""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

from signal_app.main import build_service, run_periodic
from signal_app.config import Settings
from signal_app.services import SignalService
from signal_core.engine import SignalEngine
from signal_core.models import Bar, EvaluationContext, Side, SignalCandidate
from signal_core.models.config import BREAKOUT, SCALP_PATTERN

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _make_bar(
    i: int,
    close: float,
    open_: float | None = None,
    high: float | None = None,
    low: float | None = None,
    volume: float = 100,
    symbol: str = "GOLD",
) -> Bar:
    open_ = close if open_ is None else open_
    return Bar(
        symbol=symbol,
        time=T0 + timedelta(minutes=5 * i),
        open=Decimal(str(open_)),
        high=Decimal(str(high if high is not None else max(open_, close) + 0.05)),
        low=Decimal(str(low if low is not None else min(open_, close) - 0.05)),
        close=Decimal(str(close)),
        volume=Decimal(str(volume)),
    )


def _breakout_window(symbol: str = "GOLD") -> list[Bar]:
    bars = [_make_bar(i, 100, high=101, low=99, symbol=symbol) for i in range(24)]
    bars.append(
        _make_bar(24, 105, open_=100, high=105.2, low=99.9, volume=200, symbol=symbol)
    )
    return bars


def _flat_window(n: int = 60, symbol: str = "GOLD") -> list[Bar]:
    return [_make_bar(i, 100, symbol=symbol) for i in range(n)]


def _scalp_window(symbol: str = "GOLD") -> list[Bar]:
    bars = [_make_bar(i, 100 + (i % 2), symbol=symbol) for i in range(9)]
    bars.append(
        _make_bar(9, 101, open_=100, high=101.1, low=99.95, volume=200, symbol=symbol)
    )
    return bars


def _make_service(symbols=None, timeframes=None, max_bars: int = 500) -> SignalService:
    return SignalService(
        SignalEngine(),
        symbols=symbols or ["GOLD"],
        timeframes=timeframes,
        max_bars=max_bars,
    )


def _feed(service: SignalService, bars: list[Bar], timeframe: str | None = None) -> None:
    for bar in bars:
        service.add_bar(bar, timeframe)


class TestBuffers:
    """Tests for per-symbol bar buffers."""

    def test_add_bar(self):
        """Test adding bars to a symbol buffer."""
        service = _make_service()
        _feed(service, _breakout_window())

        assert len(service.bars("GOLD")) == 25
        assert service.get_buffer("GOLD").timeframe == "5m"

    def test_buffer_capped(self):
        """Test buffers keep the newest bars."""
        service = _make_service(max_bars=10)
        _feed(service, _breakout_window())

        bars = service.bars("GOLD")
        assert len(bars) == 10
        assert bars[-1].close == Decimal("105")

    def test_timeframes_kept_apart(self):
        """Test each timeframe has its own buffer."""
        service = _make_service(timeframes=["5m", "15m"])
        _feed(service, _breakout_window(), "5m")
        _feed(service, _flat_window(30), "15m")

        assert len(service.bars("GOLD", "5m")) == 25
        assert len(service.bars("GOLD", "15m")) == 30
        assert service.bars("EURUSD") == []

    def test_volatility(self):
        """Test close volatility per symbol."""
        service = _make_service()
        assert service.volatility("GOLD") == 0.0
        _feed(service, [_make_bar(0, 1), _make_bar(1, 2), _make_bar(2, 3), _make_bar(3, 4)])
        assert service.volatility("GOLD") == pytest.approx(1.25 ** 0.5)


class TestEvaluateSymbol:
    """Tests for single-timeframe evaluation."""

    @pytest.mark.asyncio
    async def test_emits_and_notifies(self):
        """Test emission notifies callbacks."""
        service = _make_service()
        callback = AsyncMock()
        service.on_signal(callback)
        _feed(service, _breakout_window())

        signal = await service.evaluate_symbol("GOLD", now=T0)

        assert signal.strategy == BREAKOUT
        assert signal.timeframe == "5m"
        callback.assert_awaited_once_with(signal)

    @pytest.mark.asyncio
    async def test_short_buffer_skipped(self):
        """Test short buffers are skipped."""
        service = _make_service()
        _feed(service, _breakout_window()[:4])
        assert await service.evaluate_symbol("GOLD", now=T0) is None

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_block_others(self):
        """Test a failing callback does not block the rest."""
        service = _make_service()
        failing = AsyncMock(side_effect=RuntimeError("socket closed"))
        healthy = AsyncMock()
        service.on_signal(failing)
        service.on_signal(healthy)
        _feed(service, _breakout_window())

        signal = await service.evaluate_symbol("GOLD", now=T0)

        assert signal is not None
        healthy.assert_awaited_once_with(signal)

    @pytest.mark.asyncio
    async def test_off_signal(self):
        """Test removing a callback."""
        service = _make_service()
        callback = AsyncMock()
        service.on_signal(callback)
        service.on_signal(callback)
        service.off_signal(callback)
        _feed(service, _breakout_window())

        await service.evaluate_symbol("GOLD", now=T0)
        callback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_context_is_passed_through(self):
        """Test the context reaches the engine."""
        service = _make_service()
        _feed(service, _breakout_window())

        signal = await service.evaluate_symbol(
            "GOLD", EvaluationContext(fear_index=30), now=T0
        )
        assert signal.confidence == 76


class TestEvaluateTimeframes:
    """Tests for multi-timeframe aggregation."""

    @pytest.mark.asyncio
    async def test_best_timeframe_wins(self):
        """Test the best candidate across timeframes wins."""
        service = _make_service(timeframes=["5m", "15m"])
        _feed(service, _flat_window(), "5m")
        _feed(service, _breakout_window(), "15m")

        signal = await service.evaluate_timeframes("GOLD", now=T0)

        assert signal.strategy == BREAKOUT
        assert signal.timeframe == "15m"
        assert signal.entry_price == Decimal("105")
        assert signal.side == Side.BUY

    @pytest.mark.asyncio
    async def test_cooldown_applies_across_timeframes(self):
        """Test the cooldown spans timeframes."""
        service = _make_service(timeframes=["5m", "15m"])
        _feed(service, _breakout_window(), "5m")
        _feed(service, _breakout_window(), "15m")

        assert await service.evaluate_timeframes("GOLD", now=T0) is not None
        assert await service.evaluate_timeframes("GOLD", now=T0 + timedelta(minutes=1)) is None

    @pytest.mark.asyncio
    async def test_queued_scalp_refused_after_daily_cap(self):
        """A scalp queued before the cap was used up is not emitted later."""
        service = _make_service(timeframes=["5m", "15m"])
        _feed(service, _scalp_window(), "5m")
        for i in range(3):
            signal = await service.evaluate_timeframes("GOLD", now=T0 + timedelta(minutes=5 * i))
            assert signal.strategy == SCALP_PATTERN

        service.aggregator.add(
            SignalCandidate(
                symbol="GOLD",
                side=Side.BUY,
                strategy=SCALP_PATTERN,
                weight=40,
                confidence=100,
                generated_at=T0 + timedelta(minutes=10),
                timeframe="5m",
            )
        )
        fourth = T0 + timedelta(minutes=15)

        assert await service.evaluate_timeframes("GOLD", now=fourth) is None
        assert service.engine.tracker.scalp_count(fourth) == 3

    @pytest.mark.asyncio
    async def test_nothing_to_aggregate(self):
        """Test no signal when nothing is proposed."""
        service = _make_service(timeframes=["5m", "15m"])
        _feed(service, _flat_window(), "5m")
        assert await service.evaluate_timeframes("GOLD", now=T0) is None


class TestEvaluateAll:
    """Tests for evaluating every symbol."""

    @pytest.mark.asyncio
    async def test_all_symbols(self):
        """Test every symbol is evaluated."""
        service = _make_service(symbols=["GOLD", "EURUSD", "SILVER"])
        _feed(service, _breakout_window("GOLD"))
        _feed(service, _flat_window(symbol="EURUSD"))

        emitted = await service.evaluate_all(now=T0)

        assert [s.asset for s in emitted] == ["GOLD"]

    @pytest.mark.asyncio
    async def test_multi_timeframe_mode(self):
        """Test multi-timeframe evaluation of every symbol."""
        service = _make_service(symbols=["GOLD"], timeframes=["5m", "15m"])
        _feed(service, _breakout_window(), "15m")

        emitted = await service.evaluate_all(now=T0)

        assert len(emitted) == 1
        assert emitted[0].timeframe == "15m"


class TestMain:
    """Tests for service wiring and the periodic loop."""

    def test_build_service(self, tmp_path):
        """Test the service is built from settings."""
        settings = Settings(
            symbols=["GOLD"],
            timeframes=["5m"],
            max_bars=100,
            engine_config_path=str(tmp_path / "missing.yaml"),
        )
        service = build_service(settings)

        assert service.symbols == ["GOLD"]
        assert service.max_bars == 100
        assert service.engine.config.scalp_daily_cap == 3

    @pytest.mark.asyncio
    async def test_run_periodic_survives_errors(self):
        """Test the loop keeps running after errors."""
        service = _make_service()
        calls = []

        def provider():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("context source down")
            return EvaluationContext()

        task = asyncio.create_task(run_periodic(service, 0.01, provider))
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(calls) >= 2
