"""Main entry point: build the engine and run the evaluation loop.

Ingestion and broadcasting are wired in by the host process through
``SignalService.add_bar`` and ``SignalService.on_signal``.
"""

import asyncio
import logging
from typing import Callable

from signal_app.config import Settings, get_settings
from signal_app.engine_config import load_engine_config
from signal_app.services import SignalService
from signal_core.engine import SignalEngine
from signal_core.models import EmittedSignal, EvaluationContext

logger = logging.getLogger(__name__)

ContextProvider = Callable[[], EvaluationContext]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


def build_service(settings: Settings) -> SignalService:
    """Create the engine and the service around it from settings."""
    engine = SignalEngine(load_engine_config(settings.engine_config_path))
    return SignalService(
        engine,
        symbols=settings.symbols,
        timeframes=settings.timeframes,
        max_bars=settings.max_bars,
        balance=settings.default_balance,
    )


async def run_periodic(
    service: SignalService,
    interval: float,
    context_provider: ContextProvider,
) -> None:
    """Evaluate all symbols every ``interval`` seconds until cancelled."""
    logger.info(
        f"Evaluation loop started: {len(service.symbols)} symbols, "
        f"timeframes={service.timeframes}, every {interval}s"
    )
    while True:
        try:
            await service.evaluate_all(context_provider())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Evaluation cycle error: {e}")
        await asyncio.sleep(interval)


async def _log_signal(signal: EmittedSignal) -> None:
    logger.info(
        f"Emitted {signal.asset} {signal.side.value} ({signal.strategy}, "
        f"confidence {signal.confidence}) entry={signal.entry_price} "
        f"expires {signal.expires_at.isoformat()}"
    )


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    service = build_service(settings)
    service.on_signal(_log_signal)

    def context_provider() -> EvaluationContext:
        return EvaluationContext(fear_index=settings.default_fear_index)

    try:
        await run_periodic(service, settings.evaluation_interval_seconds, context_provider)
    except asyncio.CancelledError:
        logger.info("Evaluation loop stopped")


if __name__ == "__main__":
    asyncio.run(main())
