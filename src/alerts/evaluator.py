"""Breach evaluation: pure functions over monitors and threshold configs."""

from __future__ import annotations

from collections.abc import Iterable

from src.core.types import AlertItem, AlertThresholdConfig, Monitor


def is_breached(
    value: float | None,
    upper_threshold: float | None = None,
    lower_threshold: float | None = None,
) -> bool:
    """Return True if *value* lies strictly outside the configured bounds.

    Missing data never breaches. Thresholds are checked for presence, not
    truthiness, so a bound of ``0`` takes part in the comparison.
    """
    if value is None:
        return False
    if upper_threshold is not None and value > upper_threshold:
        return True
    if lower_threshold is not None and value < lower_threshold:
        return True
    return False


def evaluate(monitor: Monitor, config: AlertThresholdConfig | None) -> bool:
    """Breach state of *monitor* under *config* (no config means not breached)."""
    if config is None:
        return False
    return is_breached(monitor.current_value, config.upper_threshold, config.lower_threshold)


def index_configs(configs: Iterable[AlertThresholdConfig]) -> dict[str, AlertThresholdConfig]:
    """Map monitor id to config; when several target one monitor the last wins."""
    return {config.monitor_id: config for config in configs}


def build_alert_items(
    monitors: Iterable[Monitor],
    configs: Iterable[AlertThresholdConfig],
) -> list[AlertItem]:
    """Pair each monitor that has a config with it, in monitor fetch order."""
    by_monitor = index_configs(configs)
    items: list[AlertItem] = []
    for monitor in monitors:
        config = by_monitor.get(monitor.id)
        if config is not None:
            items.append(AlertItem(monitor=monitor, config=config, is_active=evaluate(monitor, config)))
    return items


def count_active(
    monitors: Iterable[Monitor],
    configs: dict[str, AlertThresholdConfig],
) -> int:
    """Number of monitors currently breaching their config."""
    return sum(1 for m in monitors if evaluate(m, configs.get(m.id)))
