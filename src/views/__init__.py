"""View layer: snapshots, view models, edit actions and refresh loops."""

from src.views.actions import MonitorActions, split_tags
from src.views.builders import (
    AlertsView,
    MenuBarState,
    MonitorRow,
    build_alerts_view,
    build_menu_bar,
    build_monitor_rows,
    render_monitor_detail,
)
from src.views.forms import FormValidationError, validate_alert_form, validate_constant_form
from src.views.loader import DashboardLoader, DashboardSnapshot
from src.views.notify import Notification, NotificationStyle, Notifier
from src.views.refresher import MenuBarController, PeriodicRefresher

__all__ = [
    "AlertsView",
    "DashboardLoader",
    "DashboardSnapshot",
    "FormValidationError",
    "MenuBarController",
    "MenuBarState",
    "MonitorActions",
    "MonitorRow",
    "Notification",
    "NotificationStyle",
    "Notifier",
    "PeriodicRefresher",
    "build_alerts_view",
    "build_menu_bar",
    "build_monitor_rows",
    "render_monitor_detail",
    "split_tags",
    "validate_alert_form",
    "validate_constant_form",
]
