"""View models for the monitor list, the alerts view and the menu bar."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field

from src.alerts.evaluator import build_alert_items, count_active, evaluate
from src.alerts.sorter import (
    AlertSort,
    MonitorSort,
    display_name,
    sort_alert_items,
    sort_monitors,
)
from src.core.config import DisplayMode, PreferencesConfig
from src.core.types import AlertItem, AlertThresholdConfig, ChartData, Monitor
from src.views.formatters import (
    format_threshold,
    format_time_since,
    format_value,
    severity_emoji,
)
from src.views.loader import DashboardSnapshot

DEFAULT_TOOLTIP = "Matsu Monitor"


class MonitorRow(BaseModel):
    """One monitor as a list or menu entry."""

    monitor: Monitor
    name: str
    alias: str | None = None
    tags: list[str] = Field(default_factory=list)
    value_text: str
    updated_text: str
    config: AlertThresholdConfig | None = None
    is_breached: bool = False

    @property
    def badge(self) -> str:
        """Severity emoji when breached, else empty."""
        if self.is_breached and self.config is not None:
            return severity_emoji(self.config.severity)
        return ""


class AlertsView(BaseModel):
    """Alert items split into triggered and merely configured sections."""

    active: list[AlertItem] = Field(default_factory=list)
    configured: list[AlertItem] = Field(default_factory=list)
    aliases: dict[str, str] = Field(default_factory=dict)

    def name_of(self, item: AlertItem) -> str:
        """Display name of *item*'s monitor, local alias first."""
        return display_name(item.monitor, self.aliases)

    @property
    def empty(self) -> bool:
        return not self.active and not self.configured


class MenuBarState(BaseModel):
    """Everything the menu bar renders for one tick."""

    title: str | None = None
    tooltip: str = DEFAULT_TOOLTIP
    active_count: int = 0
    primary: MonitorRow | None = None
    pinned: list[MonitorRow] = Field(default_factory=list)
    tag_groups: dict[str, list[MonitorRow]] = Field(default_factory=dict)
    untagged: list[MonitorRow] = Field(default_factory=list)

    @property
    def has_alerts(self) -> bool:
        return self.active_count > 0


def make_row(monitor: Monitor, snapshot: DashboardSnapshot) -> MonitorRow:
    config = snapshot.config_index.get(monitor.id)
    return MonitorRow(
        monitor=monitor,
        name=display_name(monitor, snapshot.aliases),
        alias=snapshot.aliases.get(monitor.id),
        tags=list(snapshot.tags.get(monitor.id, [])),
        value_text=format_value(monitor.current_value, monitor.unit),
        updated_text=format_time_since(monitor.last_updated_at),
        config=config,
        is_breached=evaluate(monitor, config),
    )


def build_monitor_rows(
    snapshot: DashboardSnapshot,
    strategy: MonitorSort | str = MonitorSort.NAME,
    custom_order: Sequence[str] = (),
) -> list[MonitorRow]:
    """Monitor list rows in the selected order."""
    ordered = sort_monitors(
        snapshot.monitors,
        strategy,
        configs=snapshot.config_index,
        custom_order=custom_order,
        aliases=snapshot.aliases,
    )
    return [make_row(m, snapshot) for m in ordered]


def build_alerts_view(
    snapshot: DashboardSnapshot,
    strategy: AlertSort | str = AlertSort.STATUS,
    custom_order: Sequence[str] = (),
) -> AlertsView:
    """Alerts view: triggered items first section, the rest second, both sorted."""
    items = build_alert_items(snapshot.monitors, snapshot.configs)
    ordered = sort_alert_items(items, strategy, custom_order=custom_order, aliases=snapshot.aliases)
    return AlertsView(
        active=[i for i in ordered if i.is_active],
        configured=[i for i in ordered if not i.is_active],
        aliases=dict(snapshot.aliases),
    )


def _menu_title(row: MonitorRow | None, mode: DisplayMode, loading: bool) -> str | None:
    if row is None:
        return None
    if loading:
        return "..."
    badge = row.badge
    if mode == DisplayMode.ICON_ONLY:
        return badge or None
    if mode == DisplayMode.ICON_NAME_VALUE:
        return f"{badge} {row.name}: {row.value_text}".strip()
    return f"{badge} {row.value_text}".strip()


def _tooltip(active_count: int, primary: MonitorRow | None) -> str:
    if active_count > 0:
        plural = "s" if active_count > 1 else ""
        return f"⚠️ {active_count} active alert{plural}"
    if primary is not None:
        return primary.monitor.name
    return DEFAULT_TOOLTIP


def build_menu_bar(
    snapshot: DashboardSnapshot,
    preferences: PreferencesConfig,
    rotation_index: int = 0,
    loading: bool = False,
) -> MenuBarState:
    """Menu bar state for the current rotation tick.

    Pinned monitors keep the order of ``menu_bar_monitors``; the title shows
    one of them, advancing with *rotation_index*. Every monitor also appears
    under each of its local tags (or in the untagged list).
    """
    by_id = {m.id: m for m in snapshot.monitors}
    pinned = [make_row(by_id[mid], snapshot) for mid in preferences.pinned_monitors if mid in by_id]
    primary = pinned[rotation_index % len(pinned)] if pinned else None

    configs = snapshot.config_index
    active_count = count_active(snapshot.monitors, configs)

    custom_order = preferences.custom_order
    strategy = MonitorSort.CUSTOM if custom_order else MonitorSort.NAME
    ordered = sort_monitors(
        snapshot.monitors, strategy, custom_order=custom_order, aliases=snapshot.aliases,
    )

    grouped: dict[str, list[MonitorRow]] = {}
    untagged: list[MonitorRow] = []
    for monitor in ordered:
        row = make_row(monitor, snapshot)
        if not row.tags:
            untagged.append(row)
            continue
        for tag in row.tags:
            grouped.setdefault(tag, []).append(row)

    tag_groups = {
        tag: sorted(grouped[tag], key=lambda r: r.name.lower())
        for tag in sorted(grouped)
    }

    return MenuBarState(
        title=_menu_title(primary, preferences.menu_bar_display_mode, loading),
        tooltip=_tooltip(active_count, primary),
        active_count=active_count,
        primary=primary,
        pinned=pinned,
        tag_groups=tag_groups,
        untagged=untagged,
    )


def render_monitor_detail(row: MonitorRow, chart: ChartData | None = None, recent: int = 10) -> str:
    """Markdown body of the monitor detail view."""
    monitor = row.monitor
    unit = monitor.unit
    stats = monitor.statistics
    lines = [f"# {row.name}", ""]
    if row.is_breached and row.config is not None:
        lines += [f"## {row.badge} ALERT TRIGGERED", ""]
    lines += [
        "## Current Value",
        f"**{row.value_text}**",
        "",
        f"Last updated: {row.updated_text}",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| **Min** | {format_value(stats.minimum, unit)} |",
        f"| **Average** | {format_value(stats.average, unit)} |",
        f"| **Max** | {format_value(stats.maximum, unit)} |",
        f"| **Total Records** | {stats.total_records} |",
        f"| **Changes Detected** | {stats.change_count} |",
    ]
    if row.config is not None:
        cfg = row.config
        lines += [
            "",
            "## Alert Configuration",
            "",
            f"- **Alert Level:** {severity_emoji(cfg.severity)} {str(cfg.severity).upper()}",
            f"- **Upper Threshold:** {format_threshold(cfg.upper_threshold, unit)}",
            f"- **Lower Threshold:** {format_threshold(cfg.lower_threshold, unit)}",
        ]
    if monitor.description:
        lines += ["", "## Description", monitor.description]
    if chart is not None and chart.points:
        lines += ["", f"## Recent Data Points (Last {recent})", "", "| Time | Value | Status |",
                  "|------|-------|--------|"]
        for point in chart.recent(recent):
            when = point.timestamp.strftime("%Y-%m-%d %H:%M") if point.timestamp else "N/A"
            lines.append(f"| {when} | {format_value(point.value, unit)} | {point.status} |")
    return "\n".join(lines) + "\n"
