"""Pure display helpers shared by every view."""

from __future__ import annotations

from datetime import datetime, timezone

from src.core.types import Severity

_SEVERITY_COLORS: dict[str, str] = {
    Severity.CRITICAL: "#EF4444",  # red
    Severity.HIGH: "#F97316",      # orange
    Severity.MEDIUM: "#EAB308",    # yellow
    Severity.LOW: "#22C55E",       # green
}
_DEFAULT_COLOR = "#6B7280"

_SEVERITY_EMOJI: dict[str, str] = {
    Severity.CRITICAL: "\U0001F534",
    Severity.HIGH: "\U0001F7E0",
    Severity.MEDIUM: "\U0001F7E1",
    Severity.LOW: "\U0001F7E2",
}
_DEFAULT_EMOJI = "⚪"


def format_value(value: float | None, unit: str | None = None) -> str:
    """Two decimals with thousands separators, unit appended; ``N/A`` if missing."""
    if value is None:
        return "N/A"
    formatted = f"{value:,.2f}"
    return f"{formatted} {unit}" if unit else formatted


def format_threshold(value: float | None, unit: str | None = None) -> str:
    return "Not set" if value is None else format_value(value, unit)


def format_time_since(timestamp: datetime | None, now: datetime | None = None) -> str:
    """Coarse relative age: ``42s ago``, ``5m ago``, ``3h ago``, ``2d ago``."""
    if timestamp is None:
        return "never"
    current = now or datetime.now(timezone.utc)
    seconds = max(0, int((current - timestamp).total_seconds()))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def severity_color(level: str) -> str:
    return _SEVERITY_COLORS.get(level, _DEFAULT_COLOR)


def severity_emoji(level: str) -> str:
    return _SEVERITY_EMOJI.get(level, _DEFAULT_EMOJI)
