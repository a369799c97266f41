"""Host application around the signal engine (settings, news context, evaluation loop)."""
