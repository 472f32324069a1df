"""
Display helpers for dashboard values and project credentials.
"""

from __future__ import annotations

import secrets

from pulse.anomaly.stats import round_half_up

API_KEY_PREFIX = "pk_live_"

_HTML_ENTITIES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#x27;",
}


def generate_api_key() -> str:
    """Project API key: pk_live_ followed by 32 random hex characters."""
    return f"{API_KEY_PREFIX}{secrets.token_hex(16)}"


def format_number(num: float) -> str:
    """Abbreviate large counts: 1500 -> '1.5K', 1500000 -> '1.5M'."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return f"{num:g}"


def format_duration(ms: float) -> str:
    """Human-readable latency: '<1ms', '45ms', '1.5s', '1.5m'."""
    if ms < 1:
        return "<1ms"
    if ms < 1000:
        return f"{round_half_up(ms):.0f}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    return f"{ms / 60000:.1f}m"


def sanitize(text: str) -> str:
    """Escape the five HTML-significant characters for safe display."""
    return "".join(_HTML_ENTITIES.get(char, char) for char in text)
