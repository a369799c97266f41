"""Data models shared by the engine and its host."""

from signal_core.models.bar import Bar, BarBuffer
from signal_core.models.config import DEFAULT_WEIGHTS, PRIVILEGED_SYMBOLS, EngineConfig
from signal_core.models.context import (
    EvaluationContext,
    HigherTimeframeBars,
    NewsItem,
)
from signal_core.models.signal import EmittedSignal, Side, SignalCandidate

__all__ = [
    "Bar",
    "BarBuffer",
    "DEFAULT_WEIGHTS",
    "PRIVILEGED_SYMBOLS",
    "EngineConfig",
    "EvaluationContext",
    "HigherTimeframeBars",
    "NewsItem",
    "EmittedSignal",
    "Side",
    "SignalCandidate",
]
