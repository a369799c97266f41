"""Normalization of raw headlines into NewsItem context.

Fetching is done elsewhere (NewsAPI, RSS feeds). This module only turns
raw article dicts into NewsItems, tags the symbols they mention and merges
batches from several sources into one deduplicated, newest-first list.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Iterable

from signal_core.models.context import NewsItem

logger = logging.getLogger(__name__)

# Symbol -> headline pattern
SYMBOL_PATTERNS: dict[str, re.Pattern] = {
    "GOLD": re.compile(r"(XAUUSD|gold)", re.IGNORECASE),
    "SILVER": re.compile(r"(XAGUSD|silver)", re.IGNORECASE),
    "US500Cash": re.compile(r"(S&P|SPX|US500)", re.IGNORECASE),
    "US30Cash": re.compile(r"(Dow|DJI|US30)", re.IGNORECASE),
    "US100Cash": re.compile(r"(Nasdaq|NDX|US100)", re.IGNORECASE),
    "US2000Cash": re.compile(r"(Russell|RUT|US2000)", re.IGNORECASE),
    "UK100Cash": re.compile(r"(FTSE|UK100)", re.IGNORECASE),
    "GER40Cash": re.compile(r"(DAX|GER40)", re.IGNORECASE),
    "JP225Cash": re.compile(r"(Nikkei|JP225)", re.IGNORECASE),
    "HK50Cash": re.compile(r"(Hang Seng|HSI|HK50)", re.IGNORECASE),
    "ChinaHCash": re.compile(r"(Shanghai|ChinaH)", re.IGNORECASE),
    "Apple": re.compile(r"(AAPL|Apple)", re.IGNORECASE),
    "MICROSOFT": re.compile(r"(MSFT|Microsoft)", re.IGNORECASE),
    "Amazon": re.compile(r"(AMZN|Amazon)", re.IGNORECASE),
    "Google": re.compile(r"(GOOGL|Alphabet|Google)", re.IGNORECASE),
    "Tesla": re.compile(r"(TSLA|Tesla)", re.IGNORECASE),
    "Nvidia": re.compile(r"(NVDA|Nvidia)", re.IGNORECASE),
    "JPMorgan": re.compile(r"(JPM|JPMorgan|JP Morgan)", re.IGNORECASE),
    "OILCash": re.compile(r"(Oil|Crude|WTI|Brent)", re.IGNORECASE),
    "NGASCash": re.compile(r"(NGAS|Natural Gas)", re.IGNORECASE),
    "XPTUSD": re.compile(r"(Platinum|XPTUSD)", re.IGNORECASE),
    "XPDUSD": re.compile(r"(Palladium|XPDUSD)", re.IGNORECASE),
}

HIGH_IMPACT = re.compile(r"(FED|CPI|inflation|interest rate|ECB|BOE|GDP)", re.IGNORECASE)

MAX_NEWS_ITEMS = 20


def detect_symbols(text: str) -> frozenset[str]:
    """Symbols whose pattern matches anywhere in ``text``."""
    return frozenset(
        symbol for symbol, pattern in SYMBOL_PATTERNS.items() if pattern.search(text)
    )


def classify_impact(title: str) -> str:
    return "high" if HIGH_IMPACT.search(title) else "low"


def _parse_time(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # Epoch milliseconds
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable news timestamp: {value!r}")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_article(raw: dict, source: str, now: datetime | None = None) -> NewsItem:
    """
    Convert a raw article dict into a NewsItem.

    Recognized keys: ``title``, ``url`` (or ``link``), ``publishedAt``
    (or ``published_at`` / ``pubDate``). A missing title becomes
    "Untitled"; a missing or unparseable date becomes ``now``.
    """
    title = raw.get("title") or "Untitled"
    published = _parse_time(
        raw.get("publishedAt") or raw.get("published_at") or raw.get("pubDate")
    )
    if published is None:
        published = now or datetime.now(timezone.utc)

    return NewsItem(
        title=title,
        published_at=published,
        symbols=detect_symbols(title),
        source=source,
        url=raw.get("url") or raw.get("link") or "#",
        impact=classify_impact(title),
    )


def merge_news(*batches: Iterable[NewsItem], limit: int = MAX_NEWS_ITEMS) -> list[NewsItem]:
    """
    Merge news batches into one list.

    Duplicates (same title and source) keep their first occurrence. The
    result is sorted newest first and truncated to ``limit`` items.
    """
    seen: set[tuple[str, str]] = set()
    merged: list[NewsItem] = []
    for batch in batches:
        for item in batch:
            key = (item.title, item.source)
            if key in seen:
                continue
            seen.add(key)
            merged.append(item)

    oldest = datetime.min.replace(tzinfo=timezone.utc)
    merged.sort(key=lambda n: n.published_at or oldest, reverse=True)
    return merged[:limit]
