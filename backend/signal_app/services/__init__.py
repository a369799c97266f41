"""Host-side services."""

from signal_app.services.news_context import (
    classify_impact,
    detect_symbols,
    merge_news,
    normalize_article,
)
from signal_app.services.signal_service import SignalCallback, SignalService

__all__ = [
    "classify_impact",
    "detect_symbols",
    "merge_news",
    "normalize_article",
    "SignalCallback",
    "SignalService",
]
