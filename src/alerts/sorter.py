"""Sort strategies for the monitor list and the alerts view.

All orderings are built from key functions and Python's stable ``sorted``,
so items with equal keys keep their fetch order and a re-sort of unchanged
data never reorders anything.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import StrEnum
from typing import Any, TypeVar

from src.alerts.evaluator import evaluate
from src.core.types import AlertItem, AlertThresholdConfig, Monitor

T = TypeVar("T")


class MonitorSort(StrEnum):
    """Orderings offered by the monitor list."""

    NAME = "name"
    VALUE = "value"
    LAST_UPDATED = "lastUpdated"
    ALERT_STATUS = "alertStatus"
    CUSTOM = "custom"


class AlertSort(StrEnum):
    """Orderings offered by the alerts view."""

    STATUS = "status"
    LEVEL = "level"
    NAME = "name"
    VALUE = "value"
    LAST_UPDATED = "lastUpdated"
    CUSTOM = "custom"


def display_name(monitor: Monitor, aliases: Mapping[str, str] | None = None) -> str:
    """Local alias if one is set, else the backend name, else the id."""
    if aliases:
        alias = aliases.get(monitor.id)
        if alias:
            return alias
    return monitor.name


# ── Key functions ────────────────────────────────────────────────


def _name_key(monitor: Monitor, aliases: Mapping[str, str] | None) -> str:
    return display_name(monitor, aliases).lower()


def _value_key(monitor: Monitor) -> float:
    # Negated for descending order; missing values map to +inf and sort last.
    if monitor.current_value is None:
        return math.inf
    return -monitor.current_value


def _updated_key(monitor: Monitor) -> float:
    if monitor.last_updated_at is None:
        return math.inf
    return -monitor.last_updated_at.timestamp()


def custom_order_key(
    custom_order: Sequence[str],
    aliases: Mapping[str, str] | None = None,
) -> Callable[[Monitor], tuple[int, int, str]]:
    """Key placing listed ids first in list order, the rest by name."""
    positions: dict[str, int] = {}
    for index, monitor_id in enumerate(custom_order):
        positions.setdefault(monitor_id, index)

    def key(monitor: Monitor) -> tuple[int, int, str]:
        position = positions.get(monitor.id)
        if position is not None:
            return (0, position, "")
        return (1, 0, _name_key(monitor, aliases))

    return key


def _sorted_by_monitor(
    items: Iterable[T],
    get_monitor: Callable[[T], Monitor],
    key: Callable[[Monitor], Any],
) -> list[T]:
    return sorted(items, key=lambda item: key(get_monitor(item)))


# ── Public API ───────────────────────────────────────────────────


def sort_monitors(
    monitors: Iterable[Monitor],
    strategy: MonitorSort | str = MonitorSort.NAME,
    *,
    configs: Mapping[str, AlertThresholdConfig] | None = None,
    custom_order: Sequence[str] = (),
    aliases: Mapping[str, str] | None = None,
) -> list[Monitor]:
    """Return *monitors* ordered by *strategy*.

    Args:
        monitors: Monitors in fetch order.
        strategy: One of ``MonitorSort``.
        configs: Alert configs by monitor id, used by ``alertStatus``.
        custom_order: Explicit id sequence for ``custom``.
        aliases: Local aliases, used wherever the display name is compared.
    """
    strategy = MonitorSort(strategy)
    by_id = configs or {}

    if strategy == MonitorSort.NAME:
        return sorted(monitors, key=lambda m: _name_key(m, aliases))
    if strategy == MonitorSort.VALUE:
        return sorted(monitors, key=_value_key)
    if strategy == MonitorSort.LAST_UPDATED:
        return sorted(monitors, key=_updated_key)
    if strategy == MonitorSort.ALERT_STATUS:
        return sorted(
            monitors,
            key=lambda m: (not evaluate(m, by_id.get(m.id)), _name_key(m, aliases)),
        )
    return sorted(monitors, key=custom_order_key(custom_order, aliases))


def sort_alert_items(
    items: Iterable[AlertItem],
    strategy: AlertSort | str = AlertSort.STATUS,
    *,
    custom_order: Sequence[str] = (),
    aliases: Mapping[str, str] | None = None,
) -> list[AlertItem]:
    """Return alert items ordered by *strategy*.

    ``status`` puts breached items first, then orders by severity rank;
    ``level`` orders by severity rank, then breached first.
    """
    strategy = AlertSort(strategy)

    def get_monitor(item: AlertItem) -> Monitor:
        return item.monitor

    if strategy == AlertSort.STATUS:
        return sorted(items, key=lambda i: (not i.is_active, i.config.rank))
    if strategy == AlertSort.LEVEL:
        return sorted(items, key=lambda i: (i.config.rank, not i.is_active))
    if strategy == AlertSort.NAME:
        return _sorted_by_monitor(items, get_monitor, lambda m: _name_key(m, aliases))
    if strategy == AlertSort.VALUE:
        return _sorted_by_monitor(items, get_monitor, _value_key)
    if strategy == AlertSort.LAST_UPDATED:
        return _sorted_by_monitor(items, get_monitor, _updated_key)
    return _sorted_by_monitor(items, get_monitor, custom_order_key(custom_order, aliases))
