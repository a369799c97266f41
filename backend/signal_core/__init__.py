"""Core signal engine logic: indicators, models, strategies and rate limiting.

This package contains pure business logic with no I/O dependencies
(no network, no disk). The host (signal_app/) owns bar ingestion,
news fetching and signal broadcasting, and calls into the engine.
"""
