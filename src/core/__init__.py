"""Core module: config, types, logging."""

from src.core.config import (
    BackendSchema,
    DisplayMode,
    RefreshInterval,
    Settings,
    get_settings,
    load_settings,
    parse_id_list,
    reset_settings,
)
from src.core.logging import setup_logging
from src.core.types import (
    AlertItem,
    AlertThresholdConfig,
    ChartData,
    ChartPoint,
    ConstantCard,
    Monitor,
    MonitorKind,
    MonitorStatistics,
    Severity,
    severity_rank,
)

__all__ = [
    "AlertItem",
    "AlertThresholdConfig",
    "BackendSchema",
    "ChartData",
    "ChartPoint",
    "ConstantCard",
    "DisplayMode",
    "Monitor",
    "MonitorKind",
    "MonitorStatistics",
    "RefreshInterval",
    "Settings",
    "Severity",
    "get_settings",
    "load_settings",
    "parse_id_list",
    "reset_settings",
    "setup_logging",
    "severity_rank",
]
