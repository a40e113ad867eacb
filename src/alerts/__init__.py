"""Alert evaluation and view ordering."""

from src.alerts.evaluator import (
    build_alert_items,
    count_active,
    evaluate,
    index_configs,
    is_breached,
)
from src.alerts.sorter import (
    AlertSort,
    MonitorSort,
    custom_order_key,
    display_name,
    sort_alert_items,
    sort_monitors,
)

__all__ = [
    "AlertSort",
    "MonitorSort",
    "build_alert_items",
    "count_active",
    "custom_order_key",
    "display_name",
    "evaluate",
    "index_configs",
    "is_breached",
    "sort_alert_items",
    "sort_monitors",
]
